"""API request and response models."""

from sitedesk.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from sitedesk.api.models.events import AttachmentPayload, EventRequest, EventResponse
from sitedesk.api.models.health import ComponentHealth, HealthResponse

__all__ = [
    "AttachmentPayload",
    "ComponentHealth",
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "EventRequest",
    "EventResponse",
    "HealthResponse",
]
