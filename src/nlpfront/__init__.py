"""A pluggable front end for nonlinear optimization backends.

The [`Optimizer`][nlpfront.Optimizer] class presents a single interface to
several optimization algorithms. The problem is described by an
[`OptimizerSystem`][nlpfront.OptimizerSystem], and the algorithm is selected
with an [`OptimizerAlgorithm`][nlpfront.OptimizerAlgorithm] value.
"""

from nlpfront.config import OptimizerSettings, OptimizerSystem
from nlpfront.enums import OptimizerAlgorithm
from nlpfront.exceptions import (
    BackendUnavailableError,
    ConfigError,
    EvaluationError,
    OptimizationFailed,
    OptimizerError,
)
from nlpfront.optimization import Optimizer

__all__ = [
    "BackendUnavailableError",
    "ConfigError",
    "EvaluationError",
    "OptimizationFailed",
    "Optimizer",
    "OptimizerAlgorithm",
    "OptimizerError",
    "OptimizerSettings",
    "OptimizerSystem",
]
