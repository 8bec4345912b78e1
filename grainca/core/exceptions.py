"""Exceptions raised by the grain simulation engine."""

from typing import Any, Optional


class GrainSimError(Exception):
    """Base exception for all grain simulation errors.

    Catching this class catches every engine-specific failure.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """
        super().__init__(message)
        self.details = details or {}


class InvalidConfigurationError(GrainSimError, ValueError):
    """Raised for configuration that would produce a degenerate grid.

    This includes:
    - Non-positive grid dimensions
    - Grain or inclusion counts <= 0 or above grid capacity
    - Seed tilings that do not fit the grid
    - Unknown neighbourhood names
    """


class MarkerConsistencyError(GrainSimError, KeyError):
    """Raised when a marker is looked up that was never registered.

    Every marker present in the grid must come from the registry allocator,
    so this always indicates a programming defect.
    """

    def __init__(self, marker: int):
        super().__init__(f"Marker {marker} is not registered", {"marker": marker})
        self.marker = marker

    def __str__(self) -> str:
        return self.args[0]


class UnsupportedModeError(GrainSimError, NotImplementedError):
    """Raised when a step is requested for a task type with no step rule."""
