"""recell error hierarchy.

All recell-specific errors inherit from RecellError for easy catching.
"""


class RecellError(Exception):
    """Base error for all recell operations."""


class ConfigError(RecellError, ValueError):
    """Invalid graph configuration."""


class CycleError(RecellError):
    """A stabilization pass did not reach a fixed point.

    Raised to the caller of the write that triggered the pass. The graph is
    left partially stale afterwards and should not be trusted.
    """


class NotObservableError(RecellError, TypeError):
    """A value cannot be made observable (e.g. wrapping a non-container)."""
