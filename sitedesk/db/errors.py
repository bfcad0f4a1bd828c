"""Store error hierarchy for every backend.

Session stores, record sinks, attachment stores and directories wrap
driver-specific errors in one of these so callers handle a single family.
"""


class StoreError(Exception):
    """Base exception for all store errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when a backend cannot be reached.

    Examples:
        - Database connection timeout
        - Redis server unavailable
        - Attachment bucket returning 5xx
    """


class NotFoundError(StoreError):
    """Raised when a specific entity lookup fails."""


class ValidationError(StoreError):
    """Raised when a backend rejects or returns malformed data."""
