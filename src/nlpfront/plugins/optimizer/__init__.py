"""Framework and implementations for optimizer plugins.

This module provides the necessary components for integrating optimization
algorithms into `nlpfront` via its plugin system. Optimizer plugins allow
`nlpfront` to use various optimization backends.

**Core Concepts:**

* **Plugin Interface:** Optimizer plugins must inherit from the
  [`OptimizerPlugin`][nlpfront.plugins.optimizer.base.OptimizerPlugin] base
  class. This class acts as a factory, defining a `create` method to
  instantiate optimizer backends.
* **Backend Implementation:** The actual optimization logic resides in classes
  that inherit from the
  [`OptimizerBackend`][nlpfront.plugins.optimizer.base.OptimizerBackend]
  abstract base class. These classes are initialized with the
  [`OptimizerSystem`][nlpfront.config.OptimizerSystem] and the requested
  algorithm, and hold the functions registered by the user.
* **Callback Adapters:** Backends drive their solvers through
  [`CallbackAdapters`][nlpfront.plugins.optimizer.CallbackAdapters], which
  translate between raw solver buffers and the registered functions.
* **Discovery:** The [`PluginManager`][nlpfront.plugins.PluginManager] finds
  the plugin for a requested algorithm, either among the built-in plugins or
  via entry points.

**Built-in Optimizer Plugins:**

* [`SciPyOptimizerPlugin`][nlpfront.plugins.optimizer.scipy.SciPyOptimizerPlugin]
  provides the `LBFGS`, `LBFGSB` and `INTERIOR_POINT` algorithms.
* [`NLoptOptimizerPlugin`][nlpfront.plugins.optimizer.nlopt.NLoptOptimizerPlugin]
  provides the `SQP` algorithm, if the `nlopt` package is installed.
"""

from ._adapters import FAILURE, SUCCESS, CallbackAdapters
from .base import OptimizerBackend, OptimizerPlugin

__all__ = [
    "FAILURE",
    "SUCCESS",
    "CallbackAdapters",
    "OptimizerBackend",
    "OptimizerPlugin",
]
