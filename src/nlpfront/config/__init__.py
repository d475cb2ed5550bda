"""The `nlpfront.config` module provides the configuration classes.

These classes are built using [`pydantic`](https://docs.pydantic.dev/), which
provides robust data validation and parsing capabilities:

- [`OptimizerSystem`][nlpfront.config.OptimizerSystem] describes the shape of
  the problem: the number of parameters and constraints, and the limits of the
  parameters. It is immutable after construction.
- [`OptimizerSettings`][nlpfront.config.OptimizerSettings] holds the settings
  common to all backends, validated on assignment.

Configuration objects can be created directly, or from dictionaries using the
`model_validate` method provided by `pydantic`.
"""

from ._optimizer_settings import OptimizerSettings
from ._optimizer_system import OptimizerSystem

__all__ = [
    "OptimizerSettings",
    "OptimizerSystem",
]
