"""
Centralized exception hierarchy for domain-specific errors.

This module provides custom exception classes that represent specific
error conditions in the application. Most of the trip-playback conditions
are recovered locally (see ``SourceUnavailable`` and ``GeocodeUnavailable``);
only ``MalformedTripBoundary`` is meant to reach the rendering surface.
"""


class FleetPlaybackError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(FleetPlaybackError):
    """Exception raised when data validation fails."""


class ExternalServiceError(FleetPlaybackError):
    """Exception raised when service calls fail."""


class RateLimitError(ExternalServiceError):
    """Exception raised when rate limits are exceeded."""


class ResourceNotFoundError(FleetPlaybackError):
    """Exception raised when a requested resource is not found."""


class SourceUnavailable(ExternalServiceError):
    """The position feed could not be reached or answered with an error."""


class GeocodeUnavailable(ExternalServiceError):
    """The reverse geocoder failed or returned a malformed response."""


class MalformedTripBoundary(ValidationError):
    """A trip record carries no usable spatial data."""


FleetPlaybackException = FleetPlaybackError
ValidationException = ValidationError
ExternalServiceException = ExternalServiceError
RateLimitException = RateLimitError
ResourceNotFoundException = ResourceNotFoundError
