"""Example of a constrained optimization: problem 71 of Hock and Schittkowski.

The problem has limits on all variables, one equality constraint and one
inequality constraint:

    minimize    x1 * x4 * (x1 + x2 + x3) + x3
    subject to  x1**2 + x2**2 + x3**2 + x4**2 = 40
                x1 * x2 * x3 * x4 >= 25
                1 <= x1, x2, x3, x4 <= 5

The example uses the interior-point method. Pass `--sqp` to use sequential
quadratic programming instead, which requires the optional `nlopt` package;
if it is not installed, the optimizer falls back to the interior-point method.
"""

import argparse
import logging

import numpy as np
from numpy.typing import NDArray

from nlpfront import Optimizer, OptimizerAlgorithm, OptimizerSystem

SYSTEM = OptimizerSystem(
    parameter_count=4,
    equality_constraint_count=1,
    inequality_constraint_count=1,
    lower_limits=1.0,
    upper_limits=5.0,
)

SOLUTION = np.array([1.0, 4.74299964, 3.82114998, 1.37940829])


def objective(
    _: OptimizerSystem, x: NDArray[np.float64], __: bool
) -> tuple[float, int]:
    """Objective function.

    Args:
        x: The variables to evaluate.

    Returns:
        The objective value, and a zero status.
    """
    return float(x[0] * x[3] * np.sum(x[:3]) + x[2]), 0


def gradient(
    _: OptimizerSystem, x: NDArray[np.float64], __: bool, out: NDArray[np.float64]
) -> int:
    """Gradient of the objective function.

    Args:
        x:   The variables to evaluate.
        out: The array to store the gradient in.

    Returns:
        A zero status.
    """
    out[0] = x[3] * (2 * x[0] + x[1] + x[2])
    out[1] = x[0] * x[3]
    out[2] = x[0] * x[3] + 1.0
    out[3] = x[0] * np.sum(x[:3])
    return 0


def constraints(
    _: OptimizerSystem, x: NDArray[np.float64], __: bool, out: NDArray[np.float64]
) -> int:
    """Constraint function: the equality constraint first.

    Args:
        x:   The variables to evaluate.
        out: The array to store the constraint values in.

    Returns:
        A zero status.
    """
    out[0] = np.sum(x**2) - 40.0
    out[1] = np.prod(x) - 25.0
    return 0


def jacobian(
    _: OptimizerSystem, x: NDArray[np.float64], __: bool, out: NDArray[np.float64]
) -> int:
    """Jacobian of the constraint function.

    Args:
        x:   The variables to evaluate.
        out: The (2, 4) array to store the Jacobian in.

    Returns:
        A zero status.
    """
    out[0, :] = 2.0 * x
    out[1, :] = [np.prod(np.delete(x, idx)) for idx in range(x.size)]
    return 0


def run_optimization(algorithm: OptimizerAlgorithm) -> tuple[NDArray[np.float64], float]:
    """Run the optimization.

    Args:
        algorithm: The requested algorithm.

    Returns:
        The optimal variables and objective value.
    """
    optimizer = Optimizer(SYSTEM, algorithm)
    optimizer.register_objective_func(objective)
    optimizer.register_gradient_func(gradient)
    optimizer.register_constraint_func(constraints)
    optimizer.register_constraint_jacobian(jacobian)
    optimizer.set_convergence_tolerance(1e-6)
    optimizer.set_diagnostics_level(1)

    variables = np.array([1.0, 5.0, 5.0, 1.0])
    value = optimizer.optimize(variables)

    print(f"  algorithm: {optimizer.algorithm.name}")
    print(f"  variables: {variables}")
    print(f"  objective: {value}\n")

    return variables, value


def main(argv: list[str] | None = None) -> None:
    """Run the example and check the result.

    Args:
        argv: Optional command line arguments.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument("--sqp", action="store_true", help="use the SQP algorithm")
    args = parser.parse_args(argv)

    algorithm = (
        OptimizerAlgorithm.SQP if args.sqp else OptimizerAlgorithm.INTERIOR_POINT
    )
    variables, value = run_optimization(algorithm)
    assert np.allclose(variables, SOLUTION, atol=1e-2)
    assert np.allclose(value, 17.0140173, atol=1e-3)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
