"""Inbound event endpoint."""

from fastapi import APIRouter

from sitedesk.api.dependencies import EngineDep
from sitedesk.api.exceptions import InvalidAttachmentError
from sitedesk.api.models.events import EventRequest, EventResponse
from sitedesk.conversation.models import EventKind
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/events", response_model=EventResponse)
async def post_event(request: EventRequest, engine: EngineDep) -> EventResponse:
    """Handle one normalized inbound event.

    Returns the response fragments in the order they should be sent.

    Raises:
        InvalidAttachmentError: If an attachment event has neither inline
            content nor a media id
    """
    if request.kind is EventKind.ATTACHMENT:
        attachment = request.attachment
        if attachment is None or (attachment.content_base64 is None and attachment.media_id is None):
            raise InvalidAttachmentError("Attachment events need content_base64 or media_id")

    responses = await engine.handle(request.to_event())
    return EventResponse(address=request.address, responses=responses)
