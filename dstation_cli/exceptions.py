"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class DStationError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(DStationError):
    """Raised for issues related to configuration loading or validation."""


class AuthenticationError(DStationError):
    """Raised when the NAS rejects the configured credentials."""


class NasTransportError(DStationError):
    """Raised when the NAS could not be reached or its reply could not be read."""


class NasHttpError(DStationError):
    """Raised when the NAS answers with a non-200 HTTP status."""

    def __init__(self, status: int):
        super().__init__(f"HTTP error code: {status}")
        self.status = status


class NasApiError(DStationError):
    """Raised when the NAS answers with a failed response envelope."""

    def __init__(self, code: int | None, message: str):
        super().__init__(f"API error code {code}: {message}")
        self.code = code
        self.message = message
