"""The plugin manager."""

from __future__ import annotations

from functools import cache
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Final

from .optimizer.base import OptimizerPlugin
from .optimizer.nlopt import NLoptOptimizerPlugin
from .optimizer.scipy import SciPyOptimizerPlugin

if TYPE_CHECKING:
    from nlpfront.enums import OptimizerAlgorithm

_ENTRY_POINT_GROUP: Final = "nlpfront.plugins.optimizer"

_BUILTIN_PLUGINS: Final[dict[str, type[OptimizerPlugin]]] = {
    "scipy": SciPyOptimizerPlugin,
    "nlopt": NLoptOptimizerPlugin,
}


class PluginManager:
    """Manages the discovery and retrieval of optimizer plugins.

    The manager holds the built-in plugins, followed by the plugins found via
    the `nlpfront.plugins.optimizer` entry point group. When asked for an
    algorithm, it returns the first plugin that supports it.

    **Example: Registering a Custom Optimizer Plugin**

    To make a custom optimizer plugin available, define an entry point in the
    `pyproject.toml` file of your package:

    ```toml
    [project.entry-points."nlpfront.plugins.optimizer"]
    my_optimizer = "my_package.my_module:MyOptimizerPlugin"
    ```

    Plugins can also be added directly using
    [`add_plugin`][nlpfront.plugins.PluginManager.add_plugin], which is mainly
    useful for testing.
    """

    def __init__(self, *, include_entry_points: bool = True) -> None:
        """Initialize the plugin manager.

        Args:
            include_entry_points: If `False`, only the built-in plugins are added.

        Raises:
            TypeError: If an entry point does not refer to an optimizer plugin.
        """
        self._plugins: dict[str, type[OptimizerPlugin]] = {}
        for name, plugin in _BUILTIN_PLUGINS.items():
            self.add_plugin(name, plugin)
        if include_entry_points:
            for name, plugin in _from_entry_points().items():
                self.add_plugin(name, plugin)

    def add_plugin(
        self,
        name: str,
        plugin: type[OptimizerPlugin],
        *,
        prioritize: bool = False,
    ) -> None:
        """Add a plugin to the manager.

        Args:
            name:       The name of the plugin.
            plugin:     The plugin class.
            prioritize: If `True`, the plugin is consulted before all others.

        Raises:
            ValueError: If a plugin with the same name was already added.
        """
        name_lower = name.lower()
        if name_lower in self._plugins:
            msg = f"Duplicate plugin name: {name_lower}"
            raise ValueError(msg)
        if prioritize:
            plugins = self._plugins
            self._plugins = {name_lower: plugin}
            self._plugins.update(plugins)
        else:
            self._plugins[name_lower] = plugin

    def get_plugin(self, algorithm: OptimizerAlgorithm) -> type[OptimizerPlugin]:
        """Retrieve the plugin class supporting an algorithm.

        Availability is not taken into account: a plugin is returned even if
        the library it depends on is not installed. Its `create` method will
        then raise a
        [`BackendUnavailableError`][nlpfront.exceptions.BackendUnavailableError].

        Args:
            algorithm: The requested algorithm.

        Returns:
            The first plugin class that supports the algorithm.

        Raises:
            ValueError: If no plugin supports the algorithm.
        """
        for plugin in self._plugins.values():
            if plugin.is_supported(algorithm):
                return plugin
        msg = f"Algorithm not supported: {algorithm.name}"
        raise ValueError(msg)

    def is_available(self, algorithm: OptimizerAlgorithm) -> bool:
        """Check if an algorithm can be used in the current environment.

        Args:
            algorithm: The algorithm to check.

        Returns:
            `True` if a plugin supports the algorithm and is available.
        """
        return any(
            plugin.is_supported(algorithm) and plugin.is_available()
            for plugin in self._plugins.values()
        )


@cache  # Without the cache, repeated calls are very slow
def _from_entry_points() -> dict[str, type[OptimizerPlugin]]:
    plugins: dict[str, type[OptimizerPlugin]] = {}
    for entry_point in entry_points().select(group=_ENTRY_POINT_GROUP):
        plugin = entry_point.load()
        if not (isinstance(plugin, type) and issubclass(plugin, OptimizerPlugin)):
            msg = f"Incorrect type for optimizer plugin `{entry_point.name}`: {plugin}"
            raise TypeError(msg)
        plugins[entry_point.name] = plugin
    return plugins
