"""Conversation domain models.

- Session, its flow-local FlowState and persistent SessionContext
- Inbound events and attachments
- Outbound response descriptors
"""

from sitedesk.conversation.models.events import Attachment, EventKind, InboundEvent
from sitedesk.conversation.models.responses import (
    Option,
    Response,
    ResponseKind,
    options_from,
)
from sitedesk.conversation.models.session import (
    FlowState,
    Session,
    SessionContext,
    SessionPatch,
    utc_now,
)

__all__ = [
    "Attachment",
    "EventKind",
    "FlowState",
    "InboundEvent",
    "Option",
    "Response",
    "ResponseKind",
    "Session",
    "SessionContext",
    "SessionPatch",
    "options_from",
    "utc_now",
]
