"""Exceptions raised within the `nlpfront` library."""


class OptimizerError(Exception):
    """Base class of the exceptions raised by `nlpfront`."""


class ConfigError(OptimizerError):
    """Raised when the optimizer is not configured correctly for a run."""


class BackendUnavailableError(OptimizerError):
    """Raised when an optimizer backend cannot be constructed.

    This signals a recoverable condition, typically an optional solver library
    that is not installed. When an explicitly requested backend raises this
    exception, the [`Optimizer`][nlpfront.Optimizer] falls back to an
    algorithm chosen from the shape of the problem.
    """


class EvaluationError(OptimizerError):
    """Raised when a registered callback reports a failed evaluation.

    This exception is used inside the callback adapters and never propagates
    into a backend's solve loop.
    """


class OptimizationFailed(OptimizerError):  # noqa: N818
    """Raised when a backend reports that the optimization did not succeed.

    The message carries the diagnostic returned by the backend, for instance
    when the iteration budget was exhausted before convergence.
    """
