"""Adapters between solver buffers and the registered functions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .base import OptimizerBackend

logger = logging.getLogger(__name__)

# Solvers expect a nonzero return value on success:
SUCCESS: Final = 1
FAILURE: Final = 0


def _status(status: int) -> int:
    return SUCCESS if status == 0 else FAILURE


def _read_only(x: NDArray[np.float64], n: int) -> NDArray[np.float64]:
    parameters = np.asarray(x, dtype=np.float64)[:n].view()
    parameters.setflags(write=False)
    return parameters


class CallbackAdapters:
    """Translate between the raw calling convention of solvers and user functions.

    Solvers call the adapter methods with the number of parameters, a raw
    parameter buffer, a flag indicating whether the parameters changed since
    the previous call, and output buffers. The adapters invoke the functions
    registered with the backend, or its differentiators, and store the results
    into the output buffers in the layout the solvers expect.

    All adapters return `SUCCESS` (1) or `FAILURE` (0). The registered
    functions use the opposite convention, returning zero on success, which is
    inverted here. Exceptions raised while evaluating are logged and converted
    to `FAILURE`; they never propagate into the solver.

    An adapter object is created at the start of an optimization run and is
    bound to a single backend for the duration of that run.
    """

    def __init__(self, backend: OptimizerBackend) -> None:
        """Initialize the adapters.

        Args:
            backend: The backend holding the registered functions.
        """
        self._backend = backend

    def objective(
        self,
        n: int,
        x: NDArray[np.float64],
        new_x: bool,  # noqa: FBT001
        value: NDArray[np.float64],
    ) -> int:
        """Evaluate the objective function.

        Args:
            n:     The number of parameters.
            x:     The parameter buffer.
            new_x: Whether the parameters are new.
            value: Output buffer receiving the objective value in its first entry.

        Returns:
            `SUCCESS` or `FAILURE`.
        """
        backend = self._backend
        try:
            assert backend.objective_func is not None
            result, status = backend.objective_func(
                backend.system, _read_only(x, n), bool(new_x)
            )
            value[0] = result
        except Exception as exc:  # noqa: BLE001
            logger.warning("The objective function raised an exception: %s", exc)
            return FAILURE
        return _status(status)

    def gradient(
        self,
        n: int,
        x: NDArray[np.float64],
        new_x: bool,  # noqa: FBT001
        gradient: NDArray[np.float64],
    ) -> int:
        """Evaluate the gradient of the objective function.

        In numerical mode, the objective is evaluated at `x` and the gradient
        is estimated by finite differences around that value. Otherwise the
        registered gradient function writes directly into `gradient`.

        Args:
            n:        The number of parameters.
            x:        The parameter buffer.
            new_x:    Whether the parameters are new.
            gradient: Output buffer of length n.

        Returns:
            `SUCCESS` or `FAILURE`.
        """
        backend = self._backend
        parameters = _read_only(x, n)
        try:
            if backend.uses_numerical_gradient:
                value = backend.evaluate_objective(parameters)
                backend.gradient_differentiator.calc_gradient(
                    parameters, value, gradient[:n]
                )
                return SUCCESS
            assert backend.gradient_func is not None
            status = backend.gradient_func(
                backend.system, parameters, bool(new_x), gradient[:n]
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Evaluation of the gradient failed: %s", exc)
            return FAILURE
        return _status(status)

    def constraint(
        self,
        n: int,
        x: NDArray[np.float64],
        new_x: bool,  # noqa: FBT001
        m: int,
        constraints: NDArray[np.float64],
    ) -> int:
        """Evaluate the constraint function.

        Args:
            n:           The number of parameters.
            x:           The parameter buffer.
            new_x:       Whether the parameters are new.
            m:           The number of constraints.
            constraints: Output buffer of length m.

        Returns:
            `SUCCESS` or `FAILURE`.
        """
        backend = self._backend
        try:
            assert backend.constraint_func is not None
            status = backend.constraint_func(
                backend.system, _read_only(x, n), bool(new_x), constraints[:m]
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("The constraint function raised an exception: %s", exc)
            return FAILURE
        return _status(status)

    def jacobian(  # noqa: PLR0913
        self,
        n: int,
        x: NDArray[np.float64] | None,
        new_x: bool,  # noqa: FBT001
        m: int,
        rows: NDArray[np.intc] | None,
        cols: NDArray[np.intc] | None,
        values: NDArray[np.float64] | None,
    ) -> int:
        """Report the structure or the values of the constraint Jacobian.

        If `values` is `None`, the sparsity structure is written into `rows`
        and `cols`. The Jacobian is always reported as dense, hence m * n
        entries are written, constraint by constraint. Otherwise the Jacobian
        is evaluated and its m * n values are written into `values` in the
        same order, i.e. `values[j * n + i]` is the derivative of constraint
        `j` with respect to parameter `i`.

        If there are no constraints, nothing is done.

        Args:
            n:      The number of parameters.
            x:      The parameter buffer (not used for the structure).
            new_x:  Whether the parameters are new.
            m:      The number of constraints.
            rows:   Output buffer for the constraint indices.
            cols:   Output buffer for the parameter indices.
            values: Output buffer for the values, or `None`.

        Returns:
            `SUCCESS` or `FAILURE`.
        """
        if m == 0:
            return SUCCESS

        if values is None:
            if rows is None or cols is None:
                logger.warning("No buffers given for the constraint Jacobian structure")
                return FAILURE
            rows[: m * n] = np.repeat(np.arange(m), n)
            cols[: m * n] = np.tile(np.arange(n), m)
            return SUCCESS

        if x is None:
            logger.warning("No parameters given for the constraint Jacobian")
            return FAILURE
        backend = self._backend
        parameters = _read_only(x, n)
        jacobian = np.zeros((m, n), dtype=np.float64)
        try:
            if backend.uses_numerical_jacobian:
                constraints = backend.evaluate_constraints(parameters)
                backend.jacobian_differentiator.calc_jacobian(
                    parameters, constraints, jacobian
                )
                status = 0
            else:
                assert backend.constraint_jacobian_func is not None
                status = backend.constraint_jacobian_func(
                    backend.system, parameters, bool(new_x), jacobian
                )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Evaluation of the constraint Jacobian failed: %s", exc)
            return FAILURE
        values[: m * n] = jacobian.ravel(order="C")
        return _status(status)

    def hessian(  # noqa: PLR0913
        self,
        n: int,
        x: NDArray[np.float64] | None,
        new_x: bool,  # noqa: FBT001
        rows: NDArray[np.intc] | None,
        cols: NDArray[np.intc] | None,
        values: NDArray[np.float64] | None,
    ) -> int:
        """Report the structure or the values of the Hessian of the objective.

        This follows the same protocol as the `jacobian` adapter: the Hessian
        is reported as a dense n x n matrix, stored row by row.

        Args:
            n:      The number of parameters.
            x:      The parameter buffer (not used for the structure).
            new_x:  Whether the parameters are new.
            rows:   Output buffer for the row indices.
            cols:   Output buffer for the column indices.
            values: Output buffer for the values, or `None`.

        Returns:
            `SUCCESS` or `FAILURE`.
        """
        if values is None:
            if rows is None or cols is None:
                logger.warning("No buffers given for the Hessian structure")
                return FAILURE
            rows[: n * n] = np.repeat(np.arange(n), n)
            cols[: n * n] = np.tile(np.arange(n), n)
            return SUCCESS

        if x is None:
            logger.warning("No parameters given for the Hessian")
            return FAILURE
        backend = self._backend
        hessian = np.zeros((n, n), dtype=np.float64)
        try:
            if backend.hessian_func is None:
                msg = "No Hessian function has been registered"
                raise RuntimeError(msg)  # noqa: TRY301
            status = backend.hessian_func(
                backend.system, _read_only(x, n), bool(new_x), hessian
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Evaluation of the Hessian failed: %s", exc)
            return FAILURE
        values[: n * n] = hessian.ravel(order="C")
        return _status(status)
