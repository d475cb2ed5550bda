"""Utility functions for use by optimizer plugins."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nlpfront.config import OptimizerSystem
    from nlpfront.enums import OptimizerAlgorithm

_MESSAGES = {
    "limits": "parameter limits",
    "nonlinear:eq": "non-linear equality constraints",
    "nonlinear:ineq": "non-linear inequality constraints",
}


def validate_supported_constraints(
    system: OptimizerSystem,
    algorithm: OptimizerAlgorithm,
    supported_constraints: dict[str, set[OptimizerAlgorithm]],
) -> None:
    """Validate if the constraints of a problem are supported by an algorithm.

    Constraint types are identified by the keys `"limits"`, `"nonlinear:eq"`,
    and `"nonlinear:ineq"`. The `supported_constraints` dictionary maps these
    keys to the algorithms that support them, for example:
    ```python
    {
        "limits": {OptimizerAlgorithm.LBFGSB, OptimizerAlgorithm.INTERIOR_POINT},
        "nonlinear:eq": {OptimizerAlgorithm.INTERIOR_POINT},
        "nonlinear:ineq": {OptimizerAlgorithm.INTERIOR_POINT},
    }
    ```

    Args:
        system:                The problem description.
        algorithm:             The algorithm being used.
        supported_constraints: Dict mapping constraint types to sets of
                               algorithms that support them.

    Raises:
        NotImplementedError: If a constraint of the problem is not supported by
                             the algorithm.
    """
    for constraint_type, have_constraint in (
        ("limits", system.has_limits),
        ("nonlinear:eq", system.equality_constraint_count > 0),
        ("nonlinear:ineq", system.inequality_constraint_count > 0),
    ):
        if have_constraint and algorithm not in supported_constraints.get(
            constraint_type, set()
        ):
            msg = f"optimizer {algorithm.name} does not support {_MESSAGES[constraint_type]}"
            raise NotImplementedError(msg)
