"""Configuration class for the problem descriptor."""

from __future__ import annotations

from typing import Self

import numpy as np
from pydantic import ConfigDict, NonNegativeInt, PositiveInt, model_validator

from nlpfront.config.utils import ImmutableBaseModel, broadcast_limits
from nlpfront.config.validated_types import Array1D  # noqa: TC001


class OptimizerSystem(ImmutableBaseModel):
    r"""Description of the dimensions of an optimization problem.

    An `OptimizerSystem` tells the optimizer how many parameters it optimizes,
    how many constraints the registered constraint function returns, and
    whether the parameters are limited. It does not contain the functions
    themselves; those are registered with the
    [`Optimizer`][nlpfront.Optimizer].

    The constraint function returns a vector of `constraint_count` values. The
    first `equality_constraint_count` values are equality constraints that
    must be zero at a solution, the remaining `inequality_constraint_count`
    values must be non-negative.

    The `lower_limits` and `upper_limits` fields are broadcasted to the number
    of parameters. If only one of them is given, the other is set to $-\infty$
    or $+\infty$. The problem has limits if any of them is finite.

    The object is immutable after validation, and it is referenced, not
    copied, by the optimizer that uses it.

    Attributes:
        parameter_count:             The number of parameters (n).
        equality_constraint_count:   The number of equality constraints.
        inequality_constraint_count: The number of inequality constraints.
        lower_limits:                Optional lower limits of the parameters.
        upper_limits:                Optional upper limits of the parameters.
    """

    parameter_count: PositiveInt
    equality_constraint_count: NonNegativeInt = 0
    inequality_constraint_count: NonNegativeInt = 0
    lower_limits: Array1D | None = None
    upper_limits: Array1D | None = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        validate_default=True,
    )

    @model_validator(mode="after")
    def _broadcast_limits(self) -> Self:
        if self.lower_limits is not None or self.upper_limits is not None:
            lower_limits = broadcast_limits(
                self.lower_limits, -np.inf, "lower_limits", self.parameter_count
            )
            upper_limits = broadcast_limits(
                self.upper_limits, np.inf, "upper_limits", self.parameter_count
            )
            if np.any(lower_limits > upper_limits):
                msg = "The lower limits are larger than the upper limits."
                raise ValueError(msg)
            self._mutable()
            self.lower_limits = lower_limits
            self.upper_limits = upper_limits
        self._immutable()
        return self

    @property
    def constraint_count(self) -> int:
        """Return the total number of constraints.

        Returns:
            The number of equality plus inequality constraints (m).
        """
        return self.equality_constraint_count + self.inequality_constraint_count

    @property
    def has_limits(self) -> bool:
        """Return `True` if any of the parameters has a finite limit.

        Returns:
            Whether the problem has limits.
        """
        return bool(
            (self.lower_limits is not None and np.isfinite(self.lower_limits).any())
            or (self.upper_limits is not None and np.isfinite(self.upper_limits).any())
        )
