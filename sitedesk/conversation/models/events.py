"""Inbound event models.

Events arrive already normalized by the channel adapter; the engine
never sees channel wire formats.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from sitedesk.conversation.models.session import utc_now


class EventKind(str, Enum):
    """Shape of the inbound payload."""

    TEXT = "text"
    SELECTION = "selection"
    ATTACHMENT = "attachment"


class Attachment(BaseModel):
    """Handle to a file the user sent."""

    model_config = ConfigDict(frozen=True)

    media_id: str | None = Field(default=None, description="Channel media identifier")
    mime_type: str | None = Field(default=None, description="Declared MIME type")
    sha256: str | None = Field(default=None, description="Checksum reported by the channel")
    caption: str | None = Field(default=None, description="Caption sent with the file")
    content: bytes | None = Field(default=None, description="Inline file bytes, if provided")


class InboundEvent(BaseModel):
    """One normalized message from an address."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1, description="Sender identity key")
    kind: EventKind = Field(default=EventKind.TEXT, description="Payload kind")
    payload: str = Field(
        default="",
        description="Text typed by the user, or the id of the selected option",
    )
    attachment: Attachment | None = Field(default=None, description="Attached file")
    received_at: datetime = Field(default_factory=utc_now, description="Arrival time")

    @property
    def text(self) -> str:
        """Payload with surrounding whitespace removed."""
        return self.payload.strip()

    @property
    def value(self) -> str:
        """Payload normalized for keyword and option matching."""
        return self.payload.strip().lower()

    @property
    def has_attachment(self) -> bool:
        return self.kind is EventKind.ATTACHMENT and self.attachment is not None

    @classmethod
    def from_text(cls, address: str, text: str) -> "InboundEvent":
        return cls(address=address, kind=EventKind.TEXT, payload=text)

    @classmethod
    def from_selection(cls, address: str, option_id: str) -> "InboundEvent":
        return cls(address=address, kind=EventKind.SELECTION, payload=option_id)

    @classmethod
    def from_attachment(cls, address: str, attachment: Attachment) -> "InboundEvent":
        return cls(
            address=address,
            kind=EventKind.ATTACHMENT,
            payload=attachment.caption or "",
            attachment=attachment,
        )
