"""Finite-difference estimation of gradients and Jacobians.

The [`Differentiator`][nlpfront.differentiator.Differentiator] class wraps a
function of the parameter vector and estimates its derivatives by finite
differences. Optimizer backends own two of them: one wrapping the objective
function to estimate gradients, and one wrapping the constraint function to
estimate Jacobians.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

import numpy as np

from nlpfront.enums import DifferenceMethod

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from numpy.typing import NDArray

_EPS: Final = float(np.finfo(np.float64).eps)

# Relative step sizes that balance truncation and round-off errors:
_STEP_SCALES: Final = {
    DifferenceMethod.FORWARD: np.sqrt(_EPS),
    DifferenceMethod.CENTRAL: np.cbrt(_EPS),
}


class Differentiator:
    r"""Estimate derivatives by finite differences.

    The wrapped function accepts a 1D parameter vector and returns either a
    scalar, for gradient estimation, or a 1D vector, for Jacobian estimation.
    The step size for parameter $x_i$ is $h_i = s \max(|x_i|, 1)$, where the
    scale $s$ depends on the difference method, unless it is given explicitly.

    Forward differences reuse the function value at the unperturbed point,
    which the caller passes in, and cost one evaluation per parameter. Central
    differences cost two evaluations per parameter, but are more accurate.

    The wrapped function receives a read-only vector that is reused for all
    perturbed points, it must copy the vector if it needs to keep it. Any
    exception raised by the wrapped function propagates to the caller.
    """

    def __init__(
        self,
        function: Callable[[NDArray[np.float64]], float | NDArray[np.float64]],
        *,
        method: DifferenceMethod = DifferenceMethod.FORWARD,
        step_scale: float | None = None,
    ) -> None:
        """Initialize the differentiator.

        Args:
            function:   The function to differentiate.
            method:     The difference method to use.
            step_scale: Optional relative step size, overriding the default.
        """
        self._function = function
        self.method = method
        self._step_scale = step_scale

    @property
    def method(self) -> DifferenceMethod:
        """Return the difference method.

        Returns:
            The method used for new estimates.
        """
        return self._method

    @method.setter
    def method(self, method: DifferenceMethod | str) -> None:
        self._method = DifferenceMethod(method)


    def calc_gradient(
        self,
        parameters: NDArray[np.float64],
        value: float,
        out: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """Estimate the gradient of a scalar function.

        Args:
            parameters: The point at which the gradient is estimated.
            value:      The function value at `parameters`.
            out:        Optional output array of the same length as `parameters`.

        Returns:
            The estimated gradient, stored in `out` if it was given.
        """
        if out is None:
            out = np.empty(parameters.size, dtype=np.float64)
        for idx, quotient in self._difference_quotients(
            parameters, np.array([value], dtype=np.float64)
        ):
            out[idx] = quotient[0]
        return out

    def calc_jacobian(
        self,
        parameters: NDArray[np.float64],
        values: NDArray[np.float64],
        out: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """Estimate the Jacobian of a vector function.

        The rows of the result correspond to the function values, the columns
        to the parameters.

        Args:
            parameters: The point at which the Jacobian is estimated.
            values:     The function values at `parameters`.
            out:        Optional output array with shape (m, n).

        Returns:
            The estimated Jacobian, stored in `out` if it was given.
        """
        if out is None:
            out = np.empty((values.size, parameters.size), dtype=np.float64)
        for idx, quotient in self._difference_quotients(parameters, values):
            out[:, idx] = quotient
        return out

    def _evaluate(self, point: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.atleast_1d(np.asarray(self._function(point), dtype=np.float64))

    def _difference_quotients(
        self, parameters: NDArray[np.float64], values: NDArray[np.float64]
    ) -> Iterator[tuple[int, NDArray[np.float64]]]:
        # A single work vector is perturbed one entry at a time and restored
        # afterwards. The function receives a read-only view of it.
        scale = (
            _STEP_SCALES[self._method]
            if self._step_scale is None
            else self._step_scale
        )
        work = np.array(parameters, dtype=np.float64)
        point = work.view()
        point.setflags(write=False)
        for idx in range(work.size):
            original = work[idx]
            step = scale * max(abs(original), 1.0)
            work[idx] = original + step
            upper = work[idx]
            upper_values = self._evaluate(point)
            if self._method == DifferenceMethod.CENTRAL:
                work[idx] = original - step
                lower = work[idx]
                lower_values = self._evaluate(point)
            else:
                lower = original
                lower_values = values
            work[idx] = original
            yield idx, (upper_values - lower_values) / (upper - lower)
