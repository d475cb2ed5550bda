"""This module implements the SciPy optimizer plugin."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final, Literal

import numpy as np
from scipy.optimize import BFGS, Bounds, NonlinearConstraint, minimize

from nlpfront.enums import OptimizerAlgorithm
from nlpfront.exceptions import OptimizationFailed

from ._adapters import CallbackAdapters
from .base import OptimizerBackend, OptimizerPlugin
from .utils import validate_supported_constraints

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray
    from scipy.optimize import OptimizeResult

    from nlpfront.config import OptimizerSystem

logger = logging.getLogger(__name__)

_METHODS: Final = {
    OptimizerAlgorithm.LBFGS: "L-BFGS-B",
    OptimizerAlgorithm.LBFGSB: "L-BFGS-B",
    OptimizerAlgorithm.INTERIOR_POINT: "trust-constr",
}

# Categorize the algorithms by the types of constraint they support.

_CONSTRAINT_SUPPORT_LIMITS: Final = {
    OptimizerAlgorithm.LBFGSB,
    OptimizerAlgorithm.INTERIOR_POINT,
}
_CONSTRAINT_SUPPORT_NONLINEAR_EQ: Final = {OptimizerAlgorithm.INTERIOR_POINT}
_CONSTRAINT_SUPPORT_NONLINEAR_INEQ: Final = {OptimizerAlgorithm.INTERIOR_POINT}

_LBFGSB_OPTIONS: Final[dict[str, Any]] = {
    "options": {
        "ftol": float,
        "gtol": float,
        "maxfun": int,
        "maxls": int,
    },
    "url": "https://docs.scipy.org/doc/scipy/reference/optimize.minimize-lbfgsb.html",
}

_OPTIONS_SCHEMA: Final[dict[str, Any]] = {
    "methods": {
        "LBFGS": _LBFGSB_OPTIONS,
        "LBFGSB": _LBFGSB_OPTIONS,
        "INTERIOR_POINT": {
            "options": {
                "disp": bool,
                "verbose": int,
                "gtol": float,
                "xtol": float,
                "barrier_tol": float,
                "sparse_jacobian": bool,
                "initial_tr_radius": float,
                "initial_constr_penalty": float,
                "initial_barrier_parameter": float,
                "initial_barrier_tolerance": float,
                "factorization_method": Literal[
                    "NormalEquation",
                    "AugmentedSystem",
                    "QRFactorization",
                    "SVDFactorization",
                ],
            },
            "url": "https://docs.scipy.org/doc/scipy/reference/optimize.minimize-trustconstr.html",
        },
    },
}


class _EvaluationAborted(Exception):  # noqa: N818
    pass


class SciPyOptimizer(OptimizerBackend):
    """SciPy optimization backend.

    This backend implements the always-available algorithms using
    [`scipy.optimize.minimize`](https://docs.scipy.org/doc/scipy/reference/generated/scipy.optimize.minimize.html):

    - `LBFGS` and `LBFGSB` use the `L-BFGS-B` method, the former without
      limits. The limited-memory history sets the number of stored corrections.
    - `INTERIOR_POINT` uses the `trust-constr` method, which applies a barrier
      (interior-point) approach to inequality constraints. The constraint
      Jacobian structure is queried once per run and the values are assembled
      into a dense matrix. If a Hessian function is registered it provides the
      Hessian of the objective, otherwise a BFGS approximation is used.

    SciPy has no notion of a failed evaluation: if a registered function
    reports a failure, the run is aborted and `OptimizationFailed` is raised.

    The advanced options supported by each algorithm are listed below:

    --8<-- "scipy.md"
    """

    _options_schema: ClassVar[dict[str, Any]] = _OPTIONS_SCHEMA
    _supported_constraints: ClassVar[dict[str, set[OptimizerAlgorithm]]] = {
        "limits": _CONSTRAINT_SUPPORT_LIMITS,
        "nonlinear:eq": _CONSTRAINT_SUPPORT_NONLINEAR_EQ,
        "nonlinear:ineq": _CONSTRAINT_SUPPORT_NONLINEAR_INEQ,
    }

    def __init__(self, system: OptimizerSystem, algorithm: OptimizerAlgorithm) -> None:
        """Initialize the optimizer implemented by the SciPy plugin.

        See the [nlpfront.plugins.optimizer.base.OptimizerBackend][] abstract base class.

        # noqa
        """
        if algorithm not in _METHODS:
            msg = f"SciPy optimizer algorithm {algorithm.name} is not supported"
            raise NotImplementedError(msg)
        super().__init__(system, algorithm)
        self._method = _METHODS[algorithm]
        validate_supported_constraints(
            self.system, algorithm, self._supported_constraints
        )
        self._last_parameters: NDArray[np.float64] | None = None
        self._iteration = 0

    def optimize(self, results: NDArray[np.float64]) -> float:
        """Run the optimization.

        See the [nlpfront.plugins.optimizer.base.OptimizerBackend][] abstract base class.

        # noqa
        """
        self._check_configuration(results)
        adapters = CallbackAdapters(self)
        self._last_parameters = None
        self._iteration = 0

        if self.settings.diagnostics_level > 0:
            logger.info(
                "Starting SciPy %s (%s): %d parameters, %d constraints",
                self.algorithm.name,
                self._method,
                self.system.parameter_count,
                self.system.constraint_count,
            )

        initial_values = np.array(results, dtype=np.float64)
        try:
            result = minimize(
                fun=partial(self._function, adapters),
                x0=initial_values,
                method=self._method,
                jac=partial(self._gradient, adapters),
                hess=(
                    self._initialize_hessian(adapters)
                    if self._method == "trust-constr"
                    else None
                ),
                bounds=self._initialize_bounds(),
                constraints=self._initialize_constraints(adapters, initial_values),
                tol=self.settings.convergence_tolerance,
                options=self._parse_options(),
                callback=(
                    self._callback if self.settings.diagnostics_level > 1 else None
                ),
            )
        except _EvaluationAborted as exc:
            msg = f"SciPy {self.algorithm.name} optimization aborted: {exc}"
            raise OptimizationFailed(msg) from exc

        if not result.success:
            msg = f"SciPy {self.algorithm.name} optimization failed: {result.message}"
            raise OptimizationFailed(msg)

        results[:] = result.x
        if self.settings.diagnostics_level > 0:
            logger.info(
                "SciPy %s finished: objective %g, %d function evaluations",
                self.algorithm.name,
                result.fun,
                result.nfev,
            )
        return float(result.fun)

    def _is_new_point(self, variables: NDArray[np.float64]) -> bool:
        if self._last_parameters is not None and np.array_equal(
            variables, self._last_parameters
        ):
            return False
        self._last_parameters = np.array(variables, dtype=np.float64)
        return True

    def _function(
        self, adapters: CallbackAdapters, variables: NDArray[np.float64]
    ) -> float:
        value = np.zeros(1, dtype=np.float64)
        if not adapters.objective(
            variables.size, variables, self._is_new_point(variables), value
        ):
            msg = "objective function evaluation failed"
            raise _EvaluationAborted(msg)
        return float(value[0])

    def _gradient(
        self, adapters: CallbackAdapters, variables: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        gradient = np.zeros(variables.size, dtype=np.float64)
        if not adapters.gradient(
            variables.size, variables, self._is_new_point(variables), gradient
        ):
            msg = "gradient evaluation failed"
            raise _EvaluationAborted(msg)
        return gradient

    def _initialize_hessian(
        self, adapters: CallbackAdapters
    ) -> Callable[[NDArray[np.float64]], NDArray[np.float64]] | BFGS:
        if self.hessian_func is None:
            return BFGS()

        def _hessian(variables: NDArray[np.float64]) -> NDArray[np.float64]:
            n = variables.size
            values = np.zeros(n * n, dtype=np.float64)
            if not adapters.hessian(
                n, variables, self._is_new_point(variables), None, None, values
            ):
                msg = "Hessian evaluation failed"
                raise _EvaluationAborted(msg)
            return values.reshape(n, n)

        return _hessian

    def _initialize_bounds(self) -> Bounds | None:
        if self.system.has_limits:
            assert self.system.lower_limits is not None
            assert self.system.upper_limits is not None
            return Bounds(self.system.lower_limits, self.system.upper_limits)
        return None

    def _initialize_constraints(
        self, adapters: CallbackAdapters, initial_values: NDArray[np.float64]
    ) -> list[NonlinearConstraint]:
        n = self.system.parameter_count
        m = self.system.constraint_count
        if m == 0:
            return []

        rows = np.zeros(m * n, dtype=np.intc)
        cols = np.zeros(m * n, dtype=np.intc)
        adapters.jacobian(n, initial_values, True, m, rows, cols, None)  # noqa: FBT003

        def _fun(variables: NDArray[np.float64]) -> NDArray[np.float64]:
            constraints = np.zeros(m, dtype=np.float64)
            if not adapters.constraint(
                n, variables, self._is_new_point(variables), m, constraints
            ):
                msg = "constraint function evaluation failed"
                raise _EvaluationAborted(msg)
            return constraints

        def _jac(variables: NDArray[np.float64]) -> NDArray[np.float64]:
            values = np.zeros(m * n, dtype=np.float64)
            if not adapters.jacobian(
                n, variables, self._is_new_point(variables), m, None, None, values
            ):
                msg = "constraint Jacobian evaluation failed"
                raise _EvaluationAborted(msg)
            jacobian = np.zeros((m, n), dtype=np.float64)
            jacobian[rows, cols] = values
            return jacobian

        # Equality constraints are zero, inequality constraints non-negative:
        upper_bounds = np.full(m, np.inf)
        upper_bounds[: self.system.equality_constraint_count] = 0.0
        return [NonlinearConstraint(_fun, np.zeros(m), upper_bounds, jac=_jac)]

    def _parse_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"maxiter": self.settings.max_iterations}
        if self._method == "L-BFGS-B":
            options["maxcor"] = self.settings.limited_memory_history
        options.update(
            (key, value)
            for key, value in self._advanced_options.items()
            if key != "finite_difference_method"
        )
        return options

    def _callback(self, intermediate_result: OptimizeResult) -> None:
        self._iteration += 1
        logger.debug(
            "SciPy %s iteration %d: objective %g",
            self.algorithm.name,
            self._iteration,
            intermediate_result.fun,
        )


class SciPyOptimizerPlugin(OptimizerPlugin):
    """The SciPy optimizer plugin class."""

    @classmethod
    def create(
        cls, system: OptimizerSystem, algorithm: OptimizerAlgorithm
    ) -> SciPyOptimizer:
        """Initialize the optimizer plugin.

        See the [nlpfront.plugins.optimizer.base.OptimizerPlugin][] abstract base class.

        # noqa
        """
        return SciPyOptimizer(system, algorithm)

    @classmethod
    def is_supported(cls, algorithm: OptimizerAlgorithm) -> bool:
        """Check if an algorithm is supported.

        See the [nlpfront.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return algorithm in _METHODS


if __name__ == "__main__":
    from nlpfront.config.options import gen_options_table

    with Path("scipy.md").open("w", encoding="utf-8") as fp:
        fp.write(gen_options_table(_OPTIONS_SCHEMA))
