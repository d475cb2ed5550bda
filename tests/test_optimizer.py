# ruff: noqa: SLF001
from __future__ import annotations

import gc
import logging
from typing import Any

import numpy as np
import pytest
from pydantic import ValidationError

from nlpfront import (
    BackendUnavailableError,
    ConfigError,
    Optimizer,
    OptimizerAlgorithm,
    OptimizerSystem,
)
from nlpfront.enums import DifferenceMethod
from nlpfront.optimization import default_algorithm, select_backend
from nlpfront.plugins import PluginManager, _manager
from nlpfront.plugins.optimizer.base import OptimizerPlugin
from nlpfront.plugins.optimizer.nlopt import NLoptOptimizerPlugin
from nlpfront.plugins.optimizer.scipy import SciPyOptimizer


class UnavailablePlugin(OptimizerPlugin):
    @classmethod
    def create(cls, _0: OptimizerSystem, _1: OptimizerAlgorithm) -> Any:  # type: ignore[override]
        msg = "library not installed"
        raise BackendUnavailableError(msg)

    @classmethod
    def is_supported(cls, algorithm: OptimizerAlgorithm) -> bool:
        return algorithm == OptimizerAlgorithm.SQP

    @classmethod
    def is_available(cls) -> bool:
        return False


class BrokenPlugin(UnavailablePlugin):
    @classmethod
    def create(cls, _0: OptimizerSystem, _1: OptimizerAlgorithm) -> Any:  # type: ignore[override]
        msg = "broken"
        raise RuntimeError(msg)


def _plugin_manager(plugin: type[OptimizerPlugin]) -> PluginManager:
    plugin_manager = PluginManager()
    plugin_manager.add_plugin("mocked", plugin, prioritize=True)
    return plugin_manager


@pytest.mark.parametrize(
    ("system", "expected"),
    [
        ({"parameter_count": 2}, OptimizerAlgorithm.LBFGS),
        ({"parameter_count": 2, "lower_limits": 0.0}, OptimizerAlgorithm.LBFGSB),
        ({"parameter_count": 2, "upper_limits": 1.0}, OptimizerAlgorithm.LBFGSB),
        (
            {"parameter_count": 2, "lower_limits": -np.inf, "upper_limits": np.inf},
            OptimizerAlgorithm.LBFGS,
        ),
        (
            {"parameter_count": 2, "equality_constraint_count": 1},
            OptimizerAlgorithm.INTERIOR_POINT,
        ),
        (
            {"parameter_count": 2, "inequality_constraint_count": 1},
            OptimizerAlgorithm.INTERIOR_POINT,
        ),
        (
            {
                "parameter_count": 2,
                "inequality_constraint_count": 1,
                "lower_limits": 0.0,
            },
            OptimizerAlgorithm.INTERIOR_POINT,
        ),
    ],
)
def test_best_available(system: dict[str, Any], expected: OptimizerAlgorithm) -> None:
    optimizer_system = OptimizerSystem.model_validate(system)

    assert default_algorithm(optimizer_system) == expected
    assert Optimizer(optimizer_system).algorithm == expected
    assert (
        Optimizer(optimizer_system, OptimizerAlgorithm.BEST_AVAILABLE).algorithm
        == expected
    )


@pytest.mark.parametrize(
    "algorithm",
    [
        OptimizerAlgorithm.LBFGS,
        OptimizerAlgorithm.LBFGSB,
        OptimizerAlgorithm.INTERIOR_POINT,
    ],
)
def test_explicit_algorithm(algorithm: OptimizerAlgorithm) -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=2), algorithm)

    assert optimizer.algorithm == algorithm
    assert isinstance(optimizer._backend, SciPyOptimizer)


@pytest.mark.parametrize(
    ("system", "expected"),
    [
        ({"parameter_count": 2}, OptimizerAlgorithm.LBFGS),
        ({"parameter_count": 2, "lower_limits": 0.0}, OptimizerAlgorithm.LBFGSB),
        (
            {"parameter_count": 2, "inequality_constraint_count": 1},
            OptimizerAlgorithm.INTERIOR_POINT,
        ),
    ],
)
def test_unavailable_falls_back(
    system: dict[str, Any],
    expected: OptimizerAlgorithm,
    caplog: pytest.LogCaptureFixture,
) -> None:
    optimizer_system = OptimizerSystem.model_validate(system)

    with caplog.at_level(logging.WARNING):
        optimizer = Optimizer(
            optimizer_system,
            OptimizerAlgorithm.SQP,
            plugin_manager=_plugin_manager(UnavailablePlugin),
        )
    assert optimizer.algorithm == expected
    assert "Algorithm SQP is not available (library not installed)" in caplog.text


def test_nlopt_unavailable_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        NLoptOptimizerPlugin, "is_available", classmethod(lambda cls: False)
    )
    system = OptimizerSystem(parameter_count=2, equality_constraint_count=1)

    assert not Optimizer.is_algorithm_available(OptimizerAlgorithm.SQP)
    optimizer = Optimizer(system, OptimizerAlgorithm.SQP)
    assert optimizer.algorithm == OptimizerAlgorithm.INTERIOR_POINT


def test_other_construction_errors_propagate() -> None:
    with pytest.raises(RuntimeError, match="broken"):
        Optimizer(
            OptimizerSystem(parameter_count=2),
            OptimizerAlgorithm.SQP,
            plugin_manager=_plugin_manager(BrokenPlugin),
        )


@pytest.mark.parametrize(
    ("system", "message"),
    [
        ({"parameter_count": 2, "lower_limits": 0.0}, "parameter limits"),
        (
            {"parameter_count": 2, "equality_constraint_count": 1},
            "non-linear equality constraints",
        ),
        (
            {"parameter_count": 2, "inequality_constraint_count": 1},
            "non-linear inequality constraints",
        ),
    ],
)
def test_unsupported_constraints(system: dict[str, Any], message: str) -> None:
    with pytest.raises(
        NotImplementedError, match=f"optimizer LBFGS does not support {message}"
    ):
        Optimizer(OptimizerSystem.model_validate(system), OptimizerAlgorithm.LBFGS)


def test_lbfgsb_does_not_support_constraints() -> None:
    system = OptimizerSystem(parameter_count=2, inequality_constraint_count=1)
    with pytest.raises(NotImplementedError):
        Optimizer(system, OptimizerAlgorithm.LBFGSB)


def test_select_backend() -> None:
    system = OptimizerSystem(parameter_count=2)

    backend = select_backend(system)
    assert backend.algorithm == OptimizerAlgorithm.LBFGS
    assert backend.system is system
    assert backend.handle is None


def test_is_algorithm_available() -> None:
    assert Optimizer.is_algorithm_available(OptimizerAlgorithm.LBFGS)
    assert Optimizer.is_algorithm_available(OptimizerAlgorithm.LBFGSB)
    assert Optimizer.is_algorithm_available(OptimizerAlgorithm.INTERIOR_POINT)
    assert not Optimizer.is_algorithm_available(OptimizerAlgorithm.BEST_AVAILABLE)


def test_backend_references() -> None:
    system = OptimizerSystem(parameter_count=2)
    optimizer = Optimizer(system)
    backend = optimizer._backend

    assert backend.system is system
    assert optimizer.system is system
    assert backend.handle is optimizer

    del optimizer
    gc.collect()
    assert backend.handle is None


def test_new_optimizer_new_backend() -> None:
    system = OptimizerSystem(parameter_count=2)

    assert Optimizer(system)._backend is not Optimizer(system)._backend


def test_register_functions(
    objective: Any,
    gradient: Any,
    hessian: Any,
    constraints: Any,
    constraints_jacobian: Any,
) -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=3))
    backend = optimizer._backend

    assert backend.objective_func is None
    assert backend.gradient_func is None
    assert backend.constraint_func is None
    assert backend.constraint_jacobian_func is None
    assert backend.hessian_func is None

    optimizer.register_objective_func(objective)
    optimizer.register_gradient_func(gradient)
    optimizer.register_constraint_func(constraints)
    optimizer.register_constraint_jacobian(constraints_jacobian)
    optimizer.register_hessian(hessian)

    assert backend.objective_func is objective
    assert backend.gradient_func is gradient
    assert backend.constraint_func is constraints
    assert backend.constraint_jacobian_func is constraints_jacobian
    assert backend.hessian_func is hessian

    optimizer.register_gradient_func(hessian)
    assert backend.gradient_func is hessian


def test_settings() -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=2))
    settings = optimizer._backend.settings

    optimizer.set_convergence_tolerance(1e-8)
    optimizer.set_max_iterations(10)
    optimizer.set_limited_memory_history(5)
    optimizer.set_diagnostics_level(2)
    optimizer.use_numerical_gradient(True)  # noqa: FBT003
    optimizer.use_numerical_jacobian(True)  # noqa: FBT003

    assert settings.convergence_tolerance == 1e-8
    assert settings.max_iterations == 10
    assert settings.limited_memory_history == 5
    assert settings.diagnostics_level == 2
    assert settings.numerical_gradient
    assert settings.numerical_jacobian


def test_settings_invalid() -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=2))

    with pytest.raises(ValidationError):
        optimizer.set_convergence_tolerance(-1.0)
    with pytest.raises(ValidationError):
        optimizer.set_max_iterations(0)
    assert optimizer._backend.settings.max_iterations == 1000


def test_advanced_options_lbfgs() -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=2))

    assert optimizer.set_advanced_real_option("gtol", 1e-6)
    assert optimizer.set_advanced_real_option("ftol", np.float64(1e-9))
    assert optimizer.set_advanced_int_option("maxls", 30)
    assert optimizer.set_advanced_int_option("maxfun", np.int64(100))
    assert optimizer._backend.advanced_options == {
        "gtol": 1e-6,
        "ftol": 1e-9,
        "maxls": 30,
        "maxfun": 100,
    }

    assert not optimizer.set_advanced_real_option("foo", 1.0)
    assert not optimizer.set_advanced_real_option("maxls", 1.5)
    assert not optimizer.set_advanced_str_option("gtol", "1e-6")
    assert not optimizer.set_advanced_bool_option("maxls", True)  # noqa: FBT003
    assert not optimizer.set_advanced_int_option("maxls", True)  # noqa: FBT003
    assert not optimizer.set_advanced_real_option("gtol", True)  # noqa: FBT003
    assert not optimizer.set_advanced_str_option("factorization_method", "QRFactorization")
    assert optimizer._backend.advanced_options["maxls"] == 30


def test_advanced_options_interior_point() -> None:
    optimizer = Optimizer(
        OptimizerSystem(parameter_count=2, inequality_constraint_count=1)
    )

    assert optimizer.set_advanced_str_option("factorization_method", "SVDFactorization")
    assert optimizer.set_advanced_bool_option("disp", False)  # noqa: FBT003
    assert optimizer.set_advanced_real_option("initial_tr_radius", 2.0)
    assert not optimizer.set_advanced_str_option("factorization_method", "LU")
    assert not optimizer.set_advanced_int_option("maxls", 10)


def test_finite_difference_method_option() -> None:
    optimizer = Optimizer(
        OptimizerSystem(parameter_count=2, inequality_constraint_count=1)
    )
    backend = optimizer._backend
    assert backend.gradient_differentiator.method == DifferenceMethod.FORWARD
    assert backend.jacobian_differentiator.method == DifferenceMethod.CENTRAL

    assert optimizer.set_advanced_str_option("finite_difference_method", "central")
    assert backend.gradient_differentiator.method == DifferenceMethod.CENTRAL
    assert backend.jacobian_differentiator.method == DifferenceMethod.CENTRAL

    assert not optimizer.set_advanced_str_option("finite_difference_method", "backward")
    assert backend.gradient_differentiator.method == DifferenceMethod.CENTRAL


def test_optimize_without_objective() -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=2))

    with pytest.raises(ConfigError, match="No objective function has been registered"):
        optimizer.optimize(np.zeros(2))


def test_optimize_without_constraint_function(objective: Any) -> None:
    optimizer = Optimizer(
        OptimizerSystem(parameter_count=3, inequality_constraint_count=1)
    )
    optimizer.register_objective_func(objective)

    with pytest.raises(ConfigError, match="no constraint function"):
        optimizer.optimize(np.zeros(3))


def test_optimize_wrong_results_shape(objective: Any) -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=3))
    optimizer.register_objective_func(objective)

    with pytest.raises(ConfigError, match=r"must have shape \(3,\)"):
        optimizer.optimize(np.zeros(2))


@pytest.mark.parametrize("dtype", [np.int64, np.float32])
def test_optimize_wrong_results_dtype(objective: Any, dtype: Any) -> None:
    optimizer = Optimizer(OptimizerSystem(parameter_count=3))
    optimizer.register_objective_func(objective)
    results = np.zeros(3, dtype=dtype)

    with pytest.raises(ConfigError, match="must have dtype float64"):
        optimizer.optimize(results)
    assert np.all(results == 0)


def test_is_algorithm_available_broken_entry_point(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def _broken() -> dict[str, type[OptimizerPlugin]]:
        msg = "Incorrect type for optimizer plugin `broken`"
        raise TypeError(msg)

    monkeypatch.setattr(_manager, "_from_entry_points", _broken)

    with caplog.at_level(logging.WARNING):
        assert Optimizer.is_algorithm_available(OptimizerAlgorithm.LBFGS)
        assert Optimizer.is_algorithm_available(OptimizerAlgorithm.INTERIOR_POINT)
        assert not Optimizer.is_algorithm_available(OptimizerAlgorithm.BEST_AVAILABLE)
    assert "checking built-in plugins only" in caplog.text
    with pytest.raises(TypeError, match="Incorrect type"):
        PluginManager()
