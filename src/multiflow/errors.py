"""
Exceptions raised by the multiflow pipeline.

All errors are detected before any stage runs and derive from
``MultiflowError`` (a ``ValueError``), so callers can catch the whole family
or a single kind.
"""


class MultiflowError(ValueError):
    """Base class for invalid multiflow inputs."""


class InvalidInputError(MultiflowError):
    """Non-finite elevations, bad resolution or ill-defined threshold parameters."""


class OutOfBoundsError(MultiflowError):
    """Vent location outside the grid extents."""


class DegenerateGridError(MultiflowError):
    """Grid too small or without any relief to route flow over."""
