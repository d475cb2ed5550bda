"""Configuration class for the common optimizer settings."""

from __future__ import annotations

from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
)


class OptimizerSettings(BaseModel):
    """Settings shared by all optimizer backends.

    Each backend owns one `OptimizerSettings` object, which is updated by the
    setters of the [`Optimizer`][nlpfront.Optimizer]. Assignments are validated,
    so setting for instance a negative tolerance raises a
    `pydantic.ValidationError`.

    The interpretation of some settings depends on the backend:

    - **`convergence_tolerance`**: The stopping tolerance passed to the solver.
    - **`max_iterations`**: The iteration limit. Backends that do not count
      iterations use it to limit the number of function evaluations.
    - **`limited_memory_history`**: The number of correction pairs kept by
      limited-memory quasi-Newton methods.
    - **`diagnostics_level`**: Zero is silent, higher values enable log
      messages and solver output.
    - **`numerical_gradient`**: Estimate the objective gradient by finite
      differences, ignoring any registered gradient function.
    - **`numerical_jacobian`**: Estimate the constraint Jacobian by finite
      differences, ignoring any registered Jacobian function.

    Attributes:
        convergence_tolerance:  Convergence tolerance (default: 1e-4).
        max_iterations:         Maximum number of iterations (default: 1000).
        limited_memory_history: Limited-memory history size (default: 50).
        diagnostics_level:      Diagnostics level (default: 0).
        numerical_gradient:     Use a numerical gradient (default: `False`).
        numerical_jacobian:     Use a numerical Jacobian (default: `False`).
    """

    convergence_tolerance: PositiveFloat = 1e-4
    max_iterations: PositiveInt = 1000
    limited_memory_history: PositiveInt = 50
    diagnostics_level: NonNegativeInt = 0
    numerical_gradient: bool = False
    numerical_jacobian: bool = False

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        validate_default=True,
    )
