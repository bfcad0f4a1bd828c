"""API exception hierarchy.

All API exceptions inherit from SiteDeskAPIError, which provides the
status_code and error_code used by the global exception handler.
"""

from sitedesk.api.models.errors import ErrorCode


class SiteDeskAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(SiteDeskAPIError):
    """Raised when request validation fails."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class InvalidAttachmentError(SiteDeskAPIError):
    """Raised when an attachment event carries no usable attachment."""

    status_code = 400
    error_code = ErrorCode.INVALID_ATTACHMENT


class ServiceUnavailableError(SiteDeskAPIError):
    """Raised when a backing service cannot be reached."""

    status_code = 503
    error_code = ErrorCode.SERVICE_UNAVAILABLE
