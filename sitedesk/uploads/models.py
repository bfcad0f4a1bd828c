"""Upload outcome models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UploadResult(BaseModel):
    """A stored attachment; only ``reference`` ends up in records."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., description="Stable reference returned by the attachment store")
    mime_type: str = Field(..., description="Validated MIME type")
    checksum: str = Field(..., description="SHA-256 of the stored bytes")


class UploadFailureReason(str, Enum):
    """Why an upload did not produce a reference."""

    INVALID_MIME = "invalid_mime"
    MISSING_CONTENT = "missing_content"
    TIMEOUT = "timeout"
    STORE_ERROR = "store_error"


class UploadFailure(BaseModel):
    """A failed upload attempt."""

    model_config = ConfigDict(frozen=True)

    reason: UploadFailureReason
    detail: str | None = None
    attempted: bool = Field(
        default=True,
        description="False when the attachment was rejected before any transfer",
    )

    @property
    def consumes_retry(self) -> bool:
        return self.attempted
