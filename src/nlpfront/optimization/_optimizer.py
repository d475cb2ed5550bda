"""This module defines the optimizer façade."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from nlpfront.enums import OptimizerAlgorithm
from nlpfront.plugins import PluginManager

from ._selection import select_backend

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlpfront.config import OptimizerSystem
    from nlpfront.plugins.optimizer.protocol import (
        ConstraintFunc,
        ConstraintJacobianFunc,
        GradientFunc,
        HessianFunc,
        ObjectiveFunc,
    )

logger = logging.getLogger(__name__)


class Optimizer:
    """A single interface to several nonlinear optimization backends.

    The optimizer is constructed for a problem described by an
    [`OptimizerSystem`][nlpfront.config.OptimizerSystem] and an algorithm. At
    construction it selects and creates a backend that implements the
    algorithm, falling back to an algorithm chosen from the shape of the
    problem if the requested one is `BEST_AVAILABLE` or not available in the
    current environment.

    The objective function, and optionally its gradient, the constraint
    function, its Jacobian and the Hessian of the objective, are registered
    with the `register_*` methods. The settings of the run are changed with
    the `set_*` and `use_*` methods. A call to `optimize` then runs the
    backend from a starting point to a solution.

    **Example**:
    ```py
    import numpy as np

    from nlpfront import Optimizer, OptimizerSystem

    def objective(system, parameters, new_point):
        return float(np.sum((parameters - 1.0) ** 2)), 0

    optimizer = Optimizer(OptimizerSystem(parameter_count=2))
    optimizer.register_objective_func(objective)
    results = np.zeros(2)
    value = optimizer.optimize(results)  # results is close to [1.0, 1.0]
    ```

    The optimizer is not thread-safe. It holds no state besides its backend,
    and a single `optimize` call can be active at any time.
    """

    def __init__(
        self,
        system: OptimizerSystem,
        algorithm: OptimizerAlgorithm = OptimizerAlgorithm.BEST_AVAILABLE,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        """Initialize the optimizer.

        Args:
            system:         The problem description, referenced, not copied.
            algorithm:      The requested algorithm.
            plugin_manager: Optional plugin manager used to find the backend.

        Raises:
            NotImplementedError: If the requested algorithm does not support
                                 the constraints of the problem.
        """
        self._backend = select_backend(system, algorithm, plugin_manager)
        self._backend.set_handle(self)

    @property
    def algorithm(self) -> OptimizerAlgorithm:
        """Return the algorithm implemented by the selected backend.

        Returns:
            The algorithm, never `BEST_AVAILABLE`.
        """
        return self._backend.algorithm

    @property
    def system(self) -> OptimizerSystem:
        """Return the problem description.

        Returns:
            The problem description.
        """
        return self._backend.system

    @staticmethod
    def is_algorithm_available(algorithm: OptimizerAlgorithm) -> bool:
        """Check if an algorithm can be used in the current environment.

        `BEST_AVAILABLE` is not an algorithm by itself, and is reported as not
        available. If the plugins installed via entry points cannot be loaded,
        a warning is logged and only the built-in plugins are checked.

        Args:
            algorithm: The algorithm to check.

        Returns:
            `True` if a backend for the algorithm can be created.
        """
        try:
            plugin_manager = PluginManager()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to load optimizer plugins (%s), checking built-in plugins only",
                exc,
            )
            plugin_manager = PluginManager(include_entry_points=False)
        return plugin_manager.is_available(algorithm)

    def register_objective_func(self, func: ObjectiveFunc) -> None:
        """Register the objective function, replacing any previous one.

        Args:
            func: The objective function.
        """
        self._backend.objective_func = func

    def register_gradient_func(self, func: GradientFunc) -> None:
        """Register the gradient of the objective function.

        If no gradient function is registered, the gradient is estimated by
        finite differences.

        Args:
            func: The gradient function.
        """
        self._backend.gradient_func = func

    def register_constraint_func(self, func: ConstraintFunc) -> None:
        """Register the constraint function, replacing any previous one.

        Args:
            func: The constraint function.
        """
        self._backend.constraint_func = func

    def register_constraint_jacobian(self, func: ConstraintJacobianFunc) -> None:
        """Register the Jacobian of the constraint function.

        If no Jacobian function is registered, the Jacobian is estimated by
        finite differences.

        Args:
            func: The Jacobian function.
        """
        self._backend.constraint_jacobian_func = func

    def register_hessian(self, func: HessianFunc) -> None:
        """Register the Hessian of the objective function.

        Backends that do not use second derivatives ignore this function.

        Args:
            func: The Hessian function.
        """
        self._backend.hessian_func = func

    def set_convergence_tolerance(self, tolerance: float) -> None:
        """Set the convergence tolerance.

        Args:
            tolerance: A positive tolerance.
        """
        self._backend.settings.convergence_tolerance = tolerance

    def set_max_iterations(self, max_iterations: int) -> None:
        """Set the maximum number of iterations.

        Args:
            max_iterations: A positive number of iterations.
        """
        self._backend.settings.max_iterations = max_iterations

    def set_limited_memory_history(self, history: int) -> None:
        """Set the number of corrections stored by limited-memory methods.

        Args:
            history: A positive number of corrections.
        """
        self._backend.settings.limited_memory_history = history

    def set_diagnostics_level(self, level: int) -> None:
        """Set the diagnostics level.

        At level 1, a summary is logged at the start and end of a run. At
        higher levels, progress is logged with each iteration.

        Args:
            level: A non-negative level, zero disables diagnostics.
        """
        self._backend.settings.diagnostics_level = level

    def use_numerical_gradient(self, flag: bool) -> None:  # noqa: FBT001
        """Estimate the gradient by finite differences.

        Args:
            flag: If `True`, a registered gradient function is ignored.
        """
        self._backend.settings.numerical_gradient = flag

    def use_numerical_jacobian(self, flag: bool) -> None:  # noqa: FBT001
        """Estimate the constraint Jacobian by finite differences.

        Args:
            flag: If `True`, a registered Jacobian function is ignored.
        """
        self._backend.settings.numerical_jacobian = flag

    def set_advanced_str_option(self, key: str, value: str) -> bool:
        """Set a backend-specific option with a string value.

        Args:
            key:   The name of the option.
            value: The value.

        Returns:
            `True` if the backend recognizes the option and accepts the value.
        """
        if not isinstance(value, str):
            return False
        return self._set_advanced_option(key, value)

    def set_advanced_real_option(self, key: str, value: float) -> bool:
        """Set a backend-specific option with a floating point value.

        Args:
            key:   The name of the option.
            value: The value.

        Returns:
            `True` if the backend recognizes the option and accepts the value.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
            return False
        return self._set_advanced_option(key, float(value))

    def set_advanced_int_option(self, key: str, value: int) -> bool:
        """Set a backend-specific option with an integer value.

        Args:
            key:   The name of the option.
            value: The value.

        Returns:
            `True` if the backend recognizes the option and accepts the value.
        """
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            return False
        return self._set_advanced_option(key, int(value))

    def set_advanced_bool_option(self, key: str, value: bool) -> bool:  # noqa: FBT001
        """Set a backend-specific option with a boolean value.

        Args:
            key:   The name of the option.
            value: The value.

        Returns:
            `True` if the backend recognizes the option and accepts the value.
        """
        if not isinstance(value, (bool, np.bool_)):
            return False
        return self._set_advanced_option(key, bool(value))

    def _set_advanced_option(self, key: str, value: Any) -> bool:  # noqa: ANN401
        return self._backend.set_advanced_option(key, value)

    def optimize(self, results: NDArray[np.float64]) -> float:
        """Run the optimization.

        Args:
            results: The starting point, overwritten with the solution.

        Returns:
            The value of the objective function at the solution.

        Raises:
            ConfigError:        If the optimizer is not configured correctly.
            OptimizationFailed: If the backend did not find a solution.
        """
        return self._backend.optimize(results)
