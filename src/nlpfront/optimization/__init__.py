"""The optimizer façade and the selection of its backend."""

from ._optimizer import Optimizer
from ._selection import default_algorithm, select_backend

__all__ = [
    "Optimizer",
    "default_algorithm",
    "select_backend",
]
