"""Site visit booking flow for customers."""

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from sitedesk.conversation.models import Option, Response
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields
from sitedesk.flows.parsing import match_option, parse_future_date
from sitedesk.flows.wizard import (
    COMPLETE,
    Advance,
    Completion,
    FlowDefinition,
    InvalidInput,
    Step,
    StepInput,
)
from sitedesk.records.models import RecordType

INTENT = "booking"

SLOTS = ["10:00", "12:00", "15:00", "17:00"]
OPENING = time(9, 0)
CLOSING = time(18, 0)
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def _slot_options() -> list[Option]:
    return [Option(id=slot, title=slot) for slot in SLOTS]


def prompt_date(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Which date would you like to visit? (YYYY-MM-DD or DD/MM/YYYY)")


def parse_date(step: StepInput) -> Advance:
    visit_date = parse_future_date(step.text, step.ctx.today())
    return Advance("select_time", {"visit_date": visit_date.isoformat()})


def prompt_time(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt(
        f"What time on {data.get('visit_date')}? Pick a slot or type a time (HH:MM, 09:00-18:00).",
        _slot_options(),
    )


def parse_time(step: StepInput) -> Advance:
    option = match_option(step.value, _slot_options())
    raw = option.id if option else step.text
    match = TIME_PATTERN.match(raw)
    if not match:
        raise InvalidInput("Please pick a slot or enter a time like 14:30.")
    slot = time(int(match.group(1)), int(match.group(2)))
    if not OPENING <= slot <= CLOSING:
        raise InvalidInput("Visits are between 09:00 and 18:00.")
    return Advance(COMPLETE, {"visit_time": slot.strftime("%H:%M")})


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    slot = datetime.combine(date.fromisoformat(data["visit_date"]), time.fromisoformat(data["visit_time"]))
    fields = {
        "customer_phone": ctx.identity.address,
        "customer_name": ctx.identity.display_name or "Customer",
        "slot_time": slot.isoformat(),
        "status": "pending",
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.BOOKING, fields)
    return Completion(
        responses=[
            Response.confirmation(
                f"Your visit is requested for {data['visit_date']} at {data['visit_time']}. "
                "We'll confirm it shortly."
            )
        ],
        record_id=record_id,
    )


BOOKING = FlowDefinition(
    intent=INTENT,
    title="Book a site visit",
    steps=(
        Step("enter_date", prompt_date, parse_date),
        Step("select_time", prompt_time, parse_time),
    ),
    complete=complete,
)
