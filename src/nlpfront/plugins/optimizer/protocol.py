"""This module defines the protocols of the functions registered with an optimizer.

All registered functions receive the
[`OptimizerSystem`][nlpfront.config.OptimizerSystem] of the optimizer, a
read-only parameter vector, and a flag that is `True` if the parameters differ
from those of the previous call. They report their status with an integer,
where zero signals success and any other value signals a failed evaluation.

Functions that produce arrays write them into a preallocated output array,
which may be a view of the backend's own storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from nlpfront.config import OptimizerSystem


class ObjectiveFunc(Protocol):
    """Protocol for the objective function."""

    def __call__(
        self,
        system: OptimizerSystem,
        parameters: NDArray[np.float64],
        new_point: bool,  # noqa: FBT001
        /,
    ) -> tuple[float, int]:
        """Evaluate the objective function.

        Args:
            system:     The problem description.
            parameters: The parameter vector.
            new_point:  Whether the parameters changed since the previous call.

        Returns:
            The objective value and the status.
        """


class GradientFunc(Protocol):
    """Protocol for the gradient of the objective function."""

    def __call__(
        self,
        system: OptimizerSystem,
        parameters: NDArray[np.float64],
        new_point: bool,  # noqa: FBT001
        gradient: NDArray[np.float64],
        /,
    ) -> int:
        """Evaluate the gradient, storing it into `gradient` (length n).

        Args:
            system:     The problem description.
            parameters: The parameter vector.
            new_point:  Whether the parameters changed since the previous call.
            gradient:   The output array.

        Returns:
            The status.
        """


class ConstraintFunc(Protocol):
    """Protocol for the constraint function."""

    def __call__(
        self,
        system: OptimizerSystem,
        parameters: NDArray[np.float64],
        new_point: bool,  # noqa: FBT001
        constraints: NDArray[np.float64],
        /,
    ) -> int:
        """Evaluate the constraints, storing them into `constraints` (length m).

        Equality constraints come first, followed by the inequality
        constraints.

        Args:
            system:      The problem description.
            parameters:  The parameter vector.
            new_point:   Whether the parameters changed since the previous call.
            constraints: The output array.

        Returns:
            The status.
        """


class ConstraintJacobianFunc(Protocol):
    """Protocol for the Jacobian of the constraint function."""

    def __call__(
        self,
        system: OptimizerSystem,
        parameters: NDArray[np.float64],
        new_point: bool,  # noqa: FBT001
        jacobian: NDArray[np.float64],
        /,
    ) -> int:
        """Evaluate the Jacobian, storing it into `jacobian`.

        The output has shape (m, n): rows correspond to constraints, columns
        to parameters.

        Args:
            system:     The problem description.
            parameters: The parameter vector.
            new_point:  Whether the parameters changed since the previous call.
            jacobian:   The output array.

        Returns:
            The status.
        """


class HessianFunc(Protocol):
    """Protocol for the Hessian of the objective function."""

    def __call__(
        self,
        system: OptimizerSystem,
        parameters: NDArray[np.float64],
        new_point: bool,  # noqa: FBT001
        hessian: NDArray[np.float64],
        /,
    ) -> int:
        """Evaluate the Hessian, storing it into `hessian` with shape (n, n).

        Args:
            system:     The problem description.
            parameters: The parameter vector.
            new_point:  Whether the parameters changed since the previous call.
            hessian:    The output array.

        Returns:
            The status.
        """
