"""This module implements the optional NLopt optimizer plugin."""

from __future__ import annotations

import logging
from importlib.util import find_spec
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final

import numpy as np

from nlpfront.enums import OptimizerAlgorithm
from nlpfront.exceptions import BackendUnavailableError, OptimizationFailed

from ._adapters import CallbackAdapters
from .base import OptimizerBackend, OptimizerPlugin

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlpfront.config import OptimizerSystem

logger = logging.getLogger(__name__)

_CONSTRAINT_TOLERANCE: Final = 1e-8

_OPTIONS_SCHEMA: Final[dict[str, Any]] = {
    "methods": {
        "SQP": {
            "options": {
                "xtol_rel": float,
                "xtol_abs": float,
                "ftol_abs": float,
                "stopval": float,
                "maxtime": float,
                "maxeval": int,
                "initial_step": float,
            },
            "url": "https://nlopt.readthedocs.io/en/latest/NLopt_Algorithms/#slsqp",
        },
    },
}


class NLoptOptimizer(OptimizerBackend):
    r"""NLopt optimization backend.

    This backend implements the `SQP` algorithm with the `LD_SLSQP` algorithm
    of the [NLopt](https://nlopt.readthedocs.io/) library. It supports limits,
    equality and inequality constraints. NLopt expects inequality constraints
    of the form $c(x) \le 0$, hence the inequality constraints are negated
    before they are passed on.

    The convergence tolerance sets the relative function and parameter
    tolerances, the iteration budget the maximum number of evaluations, and the
    limited-memory history the vector storage of the quasi-Newton update.
    Running out of evaluations is reported as a failure.

    The advanced options supported by each algorithm are listed below:

    --8<-- "nlopt.md"
    """

    _options_schema: ClassVar[dict[str, Any]] = _OPTIONS_SCHEMA

    def __init__(self, system: OptimizerSystem, algorithm: OptimizerAlgorithm) -> None:
        """Initialize the optimizer implemented by the NLopt plugin.

        See the [nlpfront.plugins.optimizer.base.OptimizerBackend][] abstract base class.

        # noqa
        """
        if algorithm != OptimizerAlgorithm.SQP:
            msg = f"NLopt optimizer algorithm {algorithm.name} is not supported"
            raise NotImplementedError(msg)
        super().__init__(system, algorithm)
        self._last_parameters: NDArray[np.float64] | None = None
        self._cached_constraints: (
            tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64] | None]
            | None
        ) = None

    def optimize(self, results: NDArray[np.float64]) -> float:
        """Run the optimization.

        See the [nlpfront.plugins.optimizer.base.OptimizerBackend][] abstract base class.

        # noqa
        """
        import nlopt  # noqa: PLC0415

        self._check_configuration(results)
        adapters = CallbackAdapters(self)
        self._last_parameters = None
        self._cached_constraints = None

        n = self.system.parameter_count
        opt = nlopt.opt(nlopt.LD_SLSQP, n)
        opt.set_min_objective(
            lambda x, grad: self._function(nlopt, adapters, x, grad)
        )
        self._initialize_constraints(nlopt, opt, adapters)
        if self.system.has_limits:
            opt.set_lower_bounds(self.system.lower_limits)
            opt.set_upper_bounds(self.system.upper_limits)
        opt.set_ftol_rel(self.settings.convergence_tolerance)
        opt.set_xtol_rel(self.settings.convergence_tolerance)
        opt.set_maxeval(self.settings.max_iterations)
        opt.set_vector_storage(self.settings.limited_memory_history)
        for key, value in self._advanced_options.items():
            if key != "finite_difference_method":
                getattr(opt, f"set_{key}")(value)

        if self.settings.diagnostics_level > 0:
            logger.info(
                "Starting NLopt SLSQP: %d parameters, %d constraints",
                n,
                self.system.constraint_count,
            )

        try:
            solution = opt.optimize(np.array(results, dtype=np.float64))
        except nlopt.ForcedStop as exc:
            msg = f"NLopt {self.algorithm.name} optimization aborted: {exc}"
            raise OptimizationFailed(msg) from exc
        except (nlopt.RoundoffLimited, RuntimeError) as exc:
            msg = f"NLopt {self.algorithm.name} optimization failed: {exc}"
            raise OptimizationFailed(msg) from exc

        result_code = opt.last_optimize_result()
        if result_code not in {
            nlopt.SUCCESS,
            nlopt.STOPVAL_REACHED,
            nlopt.FTOL_REACHED,
            nlopt.XTOL_REACHED,
        }:
            msg = (
                f"NLopt {self.algorithm.name} optimization failed"
                f" with result code {result_code}"
            )
            raise OptimizationFailed(msg)

        results[:] = solution
        value = float(opt.last_optimum_value())
        if self.settings.diagnostics_level > 0:
            logger.info(
                "NLopt SLSQP finished: objective %g, %d function evaluations",
                value,
                opt.get_numevals(),
            )
        return value

    def _is_new_point(self, variables: NDArray[np.float64]) -> bool:
        if self._last_parameters is not None and np.array_equal(
            variables, self._last_parameters
        ):
            return False
        self._last_parameters = np.array(variables, dtype=np.float64)
        return True

    def _function(
        self,
        nlopt: Any,  # noqa: ANN401
        adapters: CallbackAdapters,
        variables: NDArray[np.float64],
        grad: NDArray[np.float64],
    ) -> float:
        n = variables.size
        value = np.zeros(1, dtype=np.float64)
        if not adapters.objective(n, variables, self._is_new_point(variables), value):
            msg = "objective function evaluation failed"
            raise nlopt.ForcedStop(msg)
        if grad.size > 0 and not adapters.gradient(
            n, variables, self._is_new_point(variables), grad
        ):
            msg = "gradient evaluation failed"
            raise nlopt.ForcedStop(msg)
        if self.settings.diagnostics_level > 1:
            logger.debug("NLopt SLSQP evaluation: objective %g", value[0])
        return float(value[0])

    def _evaluate_constraints(
        self,
        nlopt: Any,  # noqa: ANN401
        adapters: CallbackAdapters,
        variables: NDArray[np.float64],
        *,
        with_jacobian: bool,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64] | None]:
        # The equality and inequality callbacks are called at the same point.
        if self._cached_constraints is not None:
            cached_variables, constraints, jacobian = self._cached_constraints
            if np.array_equal(variables, cached_variables) and (
                jacobian is not None or not with_jacobian
            ):
                return constraints, jacobian

        n = self.system.parameter_count
        m = self.system.constraint_count
        constraints = np.zeros(m, dtype=np.float64)
        if not adapters.constraint(
            n, variables, self._is_new_point(variables), m, constraints
        ):
            msg = "constraint function evaluation failed"
            raise nlopt.ForcedStop(msg)
        jacobian: NDArray[np.float64] | None = None
        if with_jacobian:
            values = np.zeros(m * n, dtype=np.float64)
            if not adapters.jacobian(
                n, variables, self._is_new_point(variables), m, None, None, values
            ):
                msg = "constraint Jacobian evaluation failed"
                raise nlopt.ForcedStop(msg)
            jacobian = values.reshape(m, n)
        self._cached_constraints = (
            np.array(variables, dtype=np.float64),
            constraints,
            jacobian,
        )
        return constraints, jacobian

    def _initialize_constraints(
        self,
        nlopt: Any,  # noqa: ANN401
        opt: Any,  # noqa: ANN401
        adapters: CallbackAdapters,
    ) -> None:
        me = self.system.equality_constraint_count
        mi = self.system.inequality_constraint_count

        def _equalities(
            result: NDArray[np.float64],
            variables: NDArray[np.float64],
            grad: NDArray[np.float64],
        ) -> None:
            constraints, jacobian = self._evaluate_constraints(
                nlopt, adapters, variables, with_jacobian=grad.size > 0
            )
            result[:] = constraints[:me]
            if grad.size > 0:
                assert jacobian is not None
                grad[:] = jacobian[:me, :]

        def _inequalities(
            result: NDArray[np.float64],
            variables: NDArray[np.float64],
            grad: NDArray[np.float64],
        ) -> None:
            constraints, jacobian = self._evaluate_constraints(
                nlopt, adapters, variables, with_jacobian=grad.size > 0
            )
            result[:] = -constraints[me:]
            if grad.size > 0:
                assert jacobian is not None
                grad[:] = -jacobian[me:, :]

        if me > 0:
            opt.add_equality_mconstraint(
                _equalities, np.full(me, _CONSTRAINT_TOLERANCE)
            )
        if mi > 0:
            opt.add_inequality_mconstraint(
                _inequalities, np.full(mi, _CONSTRAINT_TOLERANCE)
            )


class NLoptOptimizerPlugin(OptimizerPlugin):
    """The NLopt optimizer plugin class.

    The plugin is only available if the `nlopt` package is installed.
    """

    @classmethod
    def create(
        cls, system: OptimizerSystem, algorithm: OptimizerAlgorithm
    ) -> NLoptOptimizer:
        """Initialize the optimizer plugin.

        See the [nlpfront.plugins.optimizer.base.OptimizerPlugin][] abstract base class.

        # noqa
        """
        if not cls.is_available():
            msg = "The NLopt optimizer requires the `nlopt` package"
            raise BackendUnavailableError(msg)
        return NLoptOptimizer(system, algorithm)

    @classmethod
    def is_supported(cls, algorithm: OptimizerAlgorithm) -> bool:
        """Check if an algorithm is supported.

        See the [nlpfront.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return algorithm == OptimizerAlgorithm.SQP

    @classmethod
    def is_available(cls) -> bool:
        """Check if the `nlopt` package can be imported.

        See the [nlpfront.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return find_spec("nlopt") is not None


if __name__ == "__main__":
    from nlpfront.config.options import gen_options_table

    with Path("nlopt.md").open("w", encoding="utf-8") as fp:
        fp.write(gen_options_table(_OPTIONS_SCHEMA))
