"""Record models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from sitedesk.conversation.models import utc_now


class RecordType(str, Enum):
    """Kinds of record a completed flow produces."""

    ACTIVITY = "activity"
    MATERIAL_REQUEST = "material_request"
    INVENTORY_TRANSACTION = "inventory_transaction"
    INVOICE = "invoice"
    INQUIRY = "inquiry"
    BOOKING = "booking"


class Record(BaseModel):
    """A record as kept by a sink."""

    record_id: str = Field(..., description="Sink-assigned identifier")
    record_type: RecordType = Field(..., description="Record kind")
    fields: dict[str, Any] = Field(default_factory=dict, description="Collected fields")
    created_at: datetime = Field(default_factory=utc_now, description="Write time")
