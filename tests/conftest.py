from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import pytest

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlpfront.config import OptimizerSystem

_TARGET = np.array([0.5, 1.5, 2.0])


def _distance_squared(
    _system: OptimizerSystem, parameters: NDArray[np.float64], _new_point: bool
) -> tuple[float, int]:
    return float(np.sum((parameters - _TARGET) ** 2)), 0


def _distance_squared_gradient(
    _system: OptimizerSystem,
    parameters: NDArray[np.float64],
    _new_point: bool,
    gradient: NDArray[np.float64],
) -> int:
    gradient[:] = 2.0 * (parameters - _TARGET)
    return 0


def _distance_squared_hessian(
    _system: OptimizerSystem,
    parameters: NDArray[np.float64],
    _new_point: bool,
    hessian: NDArray[np.float64],
) -> int:
    hessian[:] = 2.0 * np.eye(parameters.size)
    return 0


def _rosenbrock(
    _system: OptimizerSystem, parameters: NDArray[np.float64], _new_point: bool
) -> tuple[float, int]:
    x, y = parameters
    return float((1.0 - x) ** 2 + 100.0 * (y - x**2) ** 2), 0


def _sum_constraints(
    system: OptimizerSystem,
    parameters: NDArray[np.float64],
    _new_point: bool,
    constraints: NDArray[np.float64],
) -> int:
    # Equalities: sum(x) == 1, inequalities: x[0] - x[1] >= 0.
    me = system.equality_constraint_count
    constraints[:me] = np.sum(parameters) - 1.0
    constraints[me:] = parameters[0] - parameters[1]
    return 0


def _sum_constraints_jacobian(
    system: OptimizerSystem,
    parameters: NDArray[np.float64],
    _new_point: bool,
    jacobian: NDArray[np.float64],
) -> int:
    me = system.equality_constraint_count
    jacobian[:me, :] = 1.0
    jacobian[me:, :] = 0.0
    jacobian[me:, 0] = 1.0
    jacobian[me:, 1] = -1.0
    return 0


@pytest.fixture(name="target")
def target_fixture() -> NDArray[np.float64]:
    return _TARGET.copy()


@pytest.fixture(name="objective")
def objective_fixture() -> Any:
    return _distance_squared


@pytest.fixture(name="gradient")
def gradient_fixture() -> Any:
    return _distance_squared_gradient


@pytest.fixture(name="hessian")
def hessian_fixture() -> Any:
    return _distance_squared_hessian


@pytest.fixture(name="rosenbrock")
def rosenbrock_fixture() -> Any:
    return _rosenbrock


@pytest.fixture(name="constraints")
def constraints_fixture() -> Any:
    return _sum_constraints


@pytest.fixture(name="constraints_jacobian")
def constraints_jacobian_fixture() -> Any:
    return _sum_constraints_jacobian
