"""Selection of the optimizer backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nlpfront.enums import OptimizerAlgorithm
from nlpfront.exceptions import BackendUnavailableError
from nlpfront.plugins import PluginManager

if TYPE_CHECKING:
    from nlpfront.config import OptimizerSystem
    from nlpfront.plugins.optimizer import OptimizerBackend

logger = logging.getLogger(__name__)


def default_algorithm(system: OptimizerSystem) -> OptimizerAlgorithm:
    """Choose an algorithm from the shape of the problem.

    Problems with constraints use the interior-point method, problems with
    only limits use `LBFGSB`, and all other problems use `LBFGS`. The
    backends of these algorithms are always available.

    Args:
        system: The problem description.

    Returns:
        The algorithm suited to the problem.
    """
    if system.constraint_count > 0:
        return OptimizerAlgorithm.INTERIOR_POINT
    if system.has_limits:
        return OptimizerAlgorithm.LBFGSB
    return OptimizerAlgorithm.LBFGS


def select_backend(
    system: OptimizerSystem,
    algorithm: OptimizerAlgorithm = OptimizerAlgorithm.BEST_AVAILABLE,
    plugin_manager: PluginManager | None = None,
) -> OptimizerBackend:
    """Create the backend for an algorithm.

    An explicitly requested algorithm is created by the plugin that supports
    it. If the plugin raises a
    [`BackendUnavailableError`][nlpfront.exceptions.BackendUnavailableError],
    a warning is logged and the algorithm is chosen from the shape of the
    problem instead, as is done for `BEST_AVAILABLE`. Any other error raised
    while creating the backend propagates.

    Args:
        system:         The problem description.
        algorithm:      The requested algorithm.
        plugin_manager: Optional plugin manager to find plugins with.

    Returns:
        A new backend.
    """
    if plugin_manager is None:
        plugin_manager = PluginManager()

    if algorithm != OptimizerAlgorithm.BEST_AVAILABLE:
        try:
            return plugin_manager.get_plugin(algorithm).create(system, algorithm)
        except BackendUnavailableError as exc:
            fallback = default_algorithm(system)
            logger.warning(
                "Algorithm %s is not available (%s), using %s instead",
                algorithm.name,
                exc,
                fallback.name,
            )

    algorithm = default_algorithm(system)
    return plugin_manager.get_plugin(algorithm).create(system, algorithm)
