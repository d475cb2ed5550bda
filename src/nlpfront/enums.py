"""Enumerations used within the `nlpfront` library."""

from enum import IntEnum, StrEnum


class OptimizerAlgorithm(IntEnum):
    """Enumerates the optimization algorithms that can be requested.

    An [`Optimizer`][nlpfront.Optimizer] is constructed with one of these
    values. Apart from `BEST_AVAILABLE`, each value corresponds to a backend
    provided by one of the optimizer plugins. Some backends depend on optional
    solver libraries; use
    [`Optimizer.is_algorithm_available`][nlpfront.Optimizer.is_algorithm_available]
    to check whether they can be used.
    """

    BEST_AVAILABLE = 0
    """Select an algorithm based on the shape of the problem."""

    INTERIOR_POINT = 1
    """Interior-point method for general nonlinearly constrained problems."""

    LBFGS = 2
    """Limited-memory quasi-Newton method for unconstrained problems."""

    LBFGSB = 3
    """Limited-memory quasi-Newton method for bound-constrained problems."""

    SQP = 4
    """Sequential quadratic programming (requires the optional `nlopt` package)."""


class DifferenceMethod(StrEnum):
    """Enumerates the finite-difference schemes of the differentiator."""

    FORWARD = "forward"
    r"""One-sided differences: $(f(x + h e_i) - f(x)) / h$."""

    CENTRAL = "central"
    r"""Two-sided differences: $(f(x + h e_i) - f(x - h e_i)) / 2h$."""
