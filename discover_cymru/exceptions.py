"""
Exceptions raised by the geocoding service.

Provider failures never surface as exceptions; they become negative cache
entries. Only caller-side problems are raised.
"""


class GeocodeError(Exception):
    """Base class for geocoding service errors."""


class MissingApiKeyError(GeocodeError):
    """Raised when no Google Maps API key is configured for a request."""

    def __init__(self, message: str = "Google Maps API key not configured"):
        super().__init__(message)
