"""Extending `nlpfront` with plugins.

The `nlpfront.plugins` module provides the framework for adding optimization
backends to `nlpfront`. Each backend is created by an optimizer plugin: a
class derived from
[`OptimizerPlugin`][nlpfront.plugins.optimizer.base.OptimizerPlugin] that
reports which algorithms it supports, whether it can be used in the current
environment, and creates backend objects on request.

The [`PluginManager`][nlpfront.plugins.PluginManager] class holds the
built-in plugins and discovers additional plugins installed as separate
packages, using Python's standard entry points mechanism under the
`nlpfront.plugins.optimizer` group.

Plugins are generally not used directly. The
[`Optimizer`][nlpfront.Optimizer] class finds and creates the required
backend based on the algorithm it is constructed with.
"""

from ._manager import PluginManager
from .base import Plugin

__all__ = [
    "Plugin",
    "PluginManager",
]
