"""Annotated types for Pydantic models providing input conversion and validation.

- [`Array1D`][nlpfront.config.validated_types.Array1D]: Converts input to a
  read-only 1D `np.float64` array.
"""

from typing import Annotated

import numpy as np
from numpy.typing import NDArray
from pydantic import BeforeValidator

from .utils import _to_float_vector

Array1D = Annotated[NDArray[np.float64], BeforeValidator(_to_float_vector)]
"""A read-only 1D array of floating point values; scalars become length one."""
