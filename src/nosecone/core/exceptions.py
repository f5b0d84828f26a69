"""
Custom exceptions for the nose cone generator.

All generator exceptions inherit from NoseConeError for easy catching.
"""

from typing import Any


class NoseConeError(Exception):
    """Base exception for all nose cone generator errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(NoseConeError):
    """Raised when the parameter file is missing, unreadable or invalid."""

    pass


class GeometryError(NoseConeError):
    """Raised when the requested cone geometry cannot be built."""

    pass


class InvalidShapeError(GeometryError):
    """Raised when a shape id does not name a known profile."""

    def __init__(
        self,
        message: str,
        shape: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.shape = shape


class InvalidShapeParameterError(GeometryError):
    """Raised when a shape parameter lies outside the profile's domain."""

    def __init__(
        self,
        message: str,
        shape: str | None = None,
        value: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.shape = shape
        self.value = value


class SlicingError(NoseConeError):
    """Raised when toolpath generation is driven through an invalid state."""

    pass
