"""This module defines the abstract base class for plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nlpfront.enums import OptimizerAlgorithm


class Plugin(ABC):
    """Abstract base class for all `nlpfront` plugins.

    Any class intended to function as a plugin must inherit from this base
    class. It defines the interface used by the
    [`PluginManager`][nlpfront.plugins.PluginManager] to find a plugin for a
    requested algorithm.

    Subclasses must implement the `is_supported` class method to indicate which
    algorithms they provide. If a plugin depends on an optional library, it
    must override `is_available` to report whether that library can be used.
    """

    @classmethod
    @abstractmethod
    def is_supported(cls, algorithm: OptimizerAlgorithm) -> bool:
        """Verify if this plugin supports a specific algorithm.

        Args:
            algorithm: The algorithm to check for support.

        Returns:
            `True` if the plugin supports the specified algorithm.
        """

    @classmethod
    def is_available(cls) -> bool:
        """Check if the plugin can be used in the current environment.

        By default plugins are always available. Plugins wrapping optional
        libraries override this method, which must be free of side effects.

        Returns:
            `True` if the plugin can create objects.
        """
        return True
