"""Conversion helpers and the immutable base model of the configuration classes."""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel


def read_only_array(values: ArrayLike, **kwargs: Any) -> NDArray[Any]:  # noqa: ANN401
    """Copy values into a numpy array that cannot be written to.

    Args:
        values: A scalar or array-like input.
        kwargs: Keyword arguments passed on to `numpy.array`.

    Returns:
        A new array with its `writeable` flag cleared.
    """
    array = np.array(values, **kwargs)
    array.flags.writeable = False
    return array


def broadcast_limits(
    limits: NDArray[np.float64] | None, fill: float, name: str, size: int
) -> NDArray[np.float64]:
    """Expand parameter limits to one value per parameter.

    Missing limits are replaced by `fill`, normally an infinite value. A
    single value applies to all parameters.

    Args:
        limits: The limits, or `None`.
        fill:   The value used if `limits` is `None`.
        name:   The name of the limits, used in error messages.
        size:   The number of parameters.

    Returns:
        A read-only array of length `size`.

    Raises:
        ValueError: If the limits cannot be broadcasted to `size` values.
    """
    values = np.array(fill if limits is None else limits, dtype=np.float64)
    try:
        return read_only_array(np.broadcast_to(values, (size,)))
    except ValueError as exc:
        msg = f"{name} cannot be broadcasted to a length of {size}"
        raise ValueError(msg) from exc


def _to_float_vector(value: ArrayLike | None) -> NDArray[np.float64] | None:
    if value is None:
        return None
    return read_only_array(value, dtype=np.float64, ndmin=1)


class ImmutableBaseModel(BaseModel):
    """Pydantic model that becomes read-only on request.

    Unlike models configured with `frozen=True`, fields can still be assigned
    by validators that run after construction. These call `_mutable()` before
    assigning and `_immutable()` when done.
    """

    _is_immutable: bool = False

    def _immutable(self) -> None:
        self._is_immutable = True

    def _mutable(self) -> None:
        self._is_immutable = False

    def __setattr__(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Assign an attribute, unless the model is read-only.

        Args:
            name:  The attribute name.
            value: The new value.

        Raises:
            AttributeError: If the model has been made read-only.
        """
        if self._is_immutable and name != "_is_immutable":
            msg = f"{type(self).__name__} is immutable"
            raise AttributeError(msg)
        super().__setattr__(name, value)
