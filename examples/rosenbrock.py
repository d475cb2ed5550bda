"""Example of optimization of a multi-dimensional Rosenbrock test function.

This example demonstrates the minimal setup of an unconstrained optimization:
a problem description, an objective function and its gradient. The algorithm
is selected automatically from the shape of the problem.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from nlpfront import Optimizer, OptimizerSystem

DIM = 5


def rosenbrock(
    _: OptimizerSystem, variables: NDArray[np.float64], __: bool
) -> tuple[float, int]:
    """Objective function: the multi-dimensional Rosenbrock function.

    Args:
        variables: The variables to evaluate.

    Returns:
        The objective value, and a zero status.
    """
    x, y = variables[:-1], variables[1:]
    return float(np.sum((1.0 - x) ** 2 + 100.0 * (y - x**2) ** 2)), 0


def rosenbrock_gradient(
    _: OptimizerSystem,
    variables: NDArray[np.float64],
    __: bool,
    gradient: NDArray[np.float64],
) -> int:
    """Gradient of the Rosenbrock function.

    Args:
        variables: The variables to evaluate.
        gradient:  The array to store the gradient in.

    Returns:
        A zero status.
    """
    x, y = variables[:-1], variables[1:]
    gradient[:] = 0.0
    gradient[:-1] += -2.0 * (1.0 - x) - 400.0 * x * (y - x**2)
    gradient[1:] += 200.0 * (y - x**2)
    return 0


def run_optimization() -> tuple[NDArray[np.float64], float]:
    """Run the optimization.

    Returns:
        The optimal variables and objective value.
    """
    optimizer = Optimizer(OptimizerSystem(parameter_count=DIM))
    optimizer.register_objective_func(rosenbrock)
    optimizer.register_gradient_func(rosenbrock_gradient)
    optimizer.set_convergence_tolerance(1e-8)
    optimizer.set_diagnostics_level(1)

    variables = 2 * np.arange(DIM) / DIM + 0.5
    value = optimizer.optimize(variables)

    print(f"  algorithm: {optimizer.algorithm.name}")
    print(f"  variables: {variables}")
    print(f"  objective: {value}\n")

    return variables, value


def main() -> None:
    """Run the example and check the result."""
    variables, value = run_optimization()
    assert np.allclose(value, 0, atol=1e-4)
    assert np.allclose(variables, 1, atol=1e-2)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
