"""This module defines base classes for optimizer backends and their plugins."""

from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Final, Literal

import numpy as np

from nlpfront.config import OptimizerSettings
from nlpfront.config.options import OptionsSchemaModel
from nlpfront.differentiator import Differentiator
from nlpfront.enums import DifferenceMethod
from nlpfront.exceptions import ConfigError, EvaluationError
from nlpfront.plugins.base import Plugin

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlpfront.config import OptimizerSystem
    from nlpfront.enums import OptimizerAlgorithm
    from nlpfront.optimization import Optimizer

    from .protocol import (
        ConstraintFunc,
        ConstraintJacobianFunc,
        GradientFunc,
        HessianFunc,
        ObjectiveFunc,
    )

# Options recognized by all backends:
_COMMON_OPTIONS: Final[dict[str, Any]] = {
    "finite_difference_method": Literal["forward", "central"],
}


class OptimizerBackend(ABC):
    """Abstract Base Class for optimizer backends.

    An optimizer backend wraps one optimization algorithm. It stores the
    functions registered by the user in five slots, all `None` by default, and
    the settings of the run. The [`Optimizer`][nlpfront.Optimizer] class owns
    exactly one backend and forwards its operations to it.

    The optimization is started by calling the `optimize` method, which
    subclasses must implement. Implementations drive their solver through a
    [`CallbackAdapters`][nlpfront.plugins.optimizer.CallbackAdapters] object,
    created once per call, which translates between the buffers of the solver
    and the registered functions.

    Each backend owns two differentiators, used to estimate the gradient of
    the objective and the Jacobian of the constraints when requested, or when
    no analytic function is registered. Gradients use forward differences
    and Jacobians use central differences.

    Subclasses must implement:
    - `optimize`: To run the solver.

    Subclasses can optionally set:
    - `_options_schema`: The advanced options recognized by the backend.
    """

    _options_schema: ClassVar[dict[str, Any]] = {"methods": {}}

    def __init__(self, system: OptimizerSystem, algorithm: OptimizerAlgorithm) -> None:
        """Initialize the backend.

        Args:
            system:    The problem description, referenced by the backend.
            algorithm: The algorithm implemented by this backend.
        """
        self._system = system
        self._algorithm = algorithm
        self._handle: weakref.ReferenceType[Optimizer] | None = None

        self.objective_func: ObjectiveFunc | None = None
        self.gradient_func: GradientFunc | None = None
        self.constraint_func: ConstraintFunc | None = None
        self.constraint_jacobian_func: ConstraintJacobianFunc | None = None
        self.hessian_func: HessianFunc | None = None

        self.settings = OptimizerSettings()
        self._advanced_options: dict[str, Any] = {}

        self.gradient_differentiator = Differentiator(self.evaluate_objective)
        self.jacobian_differentiator = Differentiator(
            self.evaluate_constraints, method=DifferenceMethod.CENTRAL
        )

    @abstractmethod
    def optimize(self, results: NDArray[np.float64]) -> float:
        """Run the optimization.

        On entry `results` contains the starting point; on successful exit it
        has been overwritten with the solution.

        Args:
            results: The parameter vector, updated in place.

        Returns:
            The objective value at the solution.
        """

    @property
    def system(self) -> OptimizerSystem:
        """Return the problem description.

        Returns:
            The system passed at construction.
        """
        return self._system

    @property
    def algorithm(self) -> OptimizerAlgorithm:
        """Return the algorithm implemented by this backend.

        Returns:
            The algorithm.
        """
        return self._algorithm

    @property
    def handle(self) -> Optimizer | None:
        """Return the optimizer that owns this backend.

        The backend only keeps a weak reference to its owner.

        Returns:
            The owning optimizer, or `None` if it is not bound or was destroyed.
        """
        return None if self._handle is None else self._handle()

    def set_handle(self, optimizer: Optimizer) -> None:
        """Bind the backend to the optimizer that owns it.

        Args:
            optimizer: The owning optimizer.
        """
        self._handle = weakref.ref(optimizer)

    @property
    def advanced_options(self) -> dict[str, Any]:
        """Return a copy of the advanced options set so far.

        Returns:
            The options, keyed by name.
        """
        return dict(self._advanced_options)

    @property
    def uses_numerical_gradient(self) -> bool:
        """Whether the gradient is estimated by finite differences.

        Returns:
            `True` if requested, or if no gradient function is registered.
        """
        return self.settings.numerical_gradient or self.gradient_func is None

    @property
    def uses_numerical_jacobian(self) -> bool:
        """Whether the constraint Jacobian is estimated by finite differences.

        Returns:
            `True` if requested, or if no Jacobian function is registered.
        """
        return (
            self.settings.numerical_jacobian or self.constraint_jacobian_func is None
        )

    @classmethod
    def options_schema(cls) -> OptionsSchemaModel:
        """Return the schema of the advanced options of this backend.

        Returns:
            The schema, including the options common to all backends.
        """
        return OptionsSchemaModel.model_validate(
            {
                "methods": {
                    name: {**method, "options": {**_COMMON_OPTIONS, **method["options"]}}
                    for name, method in cls._options_schema["methods"].items()
                }
            }
        )

    def set_advanced_option(self, option: str, value: Any) -> bool:  # noqa: ANN401
        """Set an advanced option if the backend recognizes it.

        Args:
            option: The name of the option.
            value:  The value of the option.

        Returns:
            `True` if the option was recognized and set.
        """
        if not self.options_schema().accepts(self._algorithm.name, option, value):
            return False
        if option == "finite_difference_method":
            self.gradient_differentiator.method = value
            self.jacobian_differentiator.method = value
        self._advanced_options[option] = value
        return True

    def evaluate_objective(self, parameters: NDArray[np.float64]) -> float:
        """Evaluate the registered objective function at a new point.

        Args:
            parameters: The parameter vector.

        Returns:
            The objective value.

        Raises:
            EvaluationError: If the function reports a failure.
        """
        assert self.objective_func is not None
        value, status = self.objective_func(self._system, parameters, True)  # noqa: FBT003
        if status != 0:
            msg = f"objective function evaluation failed with status {status}"
            raise EvaluationError(msg)
        return float(value)

    def evaluate_constraints(
        self, parameters: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Evaluate the registered constraint function at a new point.

        Args:
            parameters: The parameter vector.

        Returns:
            The constraint values.

        Raises:
            EvaluationError: If the function reports a failure.
        """
        assert self.constraint_func is not None
        constraints = np.zeros(self._system.constraint_count, dtype=np.float64)
        status = self.constraint_func(self._system, parameters, True, constraints)  # noqa: FBT003
        if status != 0:
            msg = f"constraint function evaluation failed with status {status}"
            raise EvaluationError(msg)
        return constraints

    def _check_configuration(self, results: NDArray[np.float64]) -> None:
        if self.objective_func is None:
            msg = "No objective function has been registered"
            raise ConfigError(msg)
        if self._system.constraint_count > 0 and self.constraint_func is None:
            msg = "The problem has constraints, but no constraint function has been registered"
            raise ConfigError(msg)
        if results.shape != (self._system.parameter_count,):
            msg = (
                f"The results array must have shape ({self._system.parameter_count},)"
                f", got {results.shape}"
            )
            raise ConfigError(msg)
        if results.dtype != np.float64:
            msg = f"The results array must have dtype float64, got {results.dtype}"
            raise ConfigError(msg)


class OptimizerPlugin(Plugin):
    """Abstract Base Class for optimizer plugins (factories).

    Optimizer plugins create [`OptimizerBackend`][nlpfront.plugins.optimizer.base.OptimizerBackend]
    objects for the algorithms they support. The
    [`PluginManager`][nlpfront.plugins.PluginManager] finds the plugin for a
    requested algorithm and calls its `create` method.
    """

    @classmethod
    @abstractmethod
    def create(
        cls, system: OptimizerSystem, algorithm: OptimizerAlgorithm
    ) -> OptimizerBackend:
        """Create an optimizer backend.

        Args:
            system:    The problem description.
            algorithm: The algorithm to create a backend for.

        Returns:
            An initialized backend.

        Raises:
            BackendUnavailableError: If the backend cannot be used in the
                                     current environment.
        """
