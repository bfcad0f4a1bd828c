"""Event request and response models for POST /v1/events."""

import base64
import binascii

from pydantic import BaseModel, Field, field_validator

from sitedesk.conversation.models import Attachment, EventKind, InboundEvent, Response


class AttachmentPayload(BaseModel):
    """File sent with an event, either inline or as a channel media id."""

    media_id: str | None = None
    """Channel media identifier, fetched by the engine when no content is inline."""

    mime_type: str | None = None
    """Declared MIME type."""

    sha256: str | None = None
    """Checksum reported by the channel."""

    caption: str | None = None
    """Caption sent with the file."""

    content_base64: str | None = None
    """Inline file bytes, base64 encoded."""

    @field_validator("content_base64")
    @classmethod
    def validate_base64(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("content_base64 is not valid base64") from e
        return v

    def to_attachment(self) -> Attachment:
        return Attachment(
            media_id=self.media_id,
            mime_type=self.mime_type,
            sha256=self.sha256,
            caption=self.caption,
            content=base64.b64decode(self.content_base64) if self.content_base64 else None,
        )


class EventRequest(BaseModel):
    """A normalized inbound event."""

    address: str = Field(..., min_length=1)
    """Sender identity key, e.g. a phone number."""

    kind: EventKind = EventKind.TEXT
    """Payload kind."""

    payload: str = ""
    """Text typed by the user, or the id of the selected option."""

    attachment: AttachmentPayload | None = None
    """Attached file, required when kind is attachment."""

    def to_event(self) -> InboundEvent:
        attachment = self.attachment.to_attachment() if self.attachment else None
        payload = self.payload or (attachment.caption if attachment and attachment.caption else "")
        return InboundEvent(address=self.address, kind=self.kind, payload=payload, attachment=attachment)


class EventResponse(BaseModel):
    """Ordered response fragments for the channel renderer."""

    address: str
    responses: list[Response] = Field(default_factory=list)
