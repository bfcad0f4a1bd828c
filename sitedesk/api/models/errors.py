"""JSON error bodies returned by every API route."""

from enum import Enum

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_ATTACHMENT = "INVALID_ATTACHMENT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """One failing request field."""

    field: str | None = Field(default=None, description="Dotted location of the field, e.g. body.address")
    message: str


class ErrorBody(BaseModel):
    code: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """Envelope for all API errors.

    Example:
        {"error": {"code": "INVALID_ATTACHMENT", "message": "Attachment content is not valid base64"}}
    """

    error: ErrorBody
