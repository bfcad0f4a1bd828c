"""Activity logging flow for field employees."""

from collections.abc import Mapping
from typing import Any

from sitedesk.conversation.models import Option, Response, options_from
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields, site_fields
from sitedesk.flows.parsing import parse_decimal, parse_text, require_option
from sitedesk.flows.wizard import (
    Advance,
    AttachmentStep,
    Completion,
    FlowDefinition,
    Step,
    StepInput,
    attachment_reference,
)
from sitedesk.records.models import RecordType

INTENT = "activity_logging"

OTHER = "other"

CATEGORIES: dict[str, str] = {
    "inspection": "Inspection",
    "site_work": "Site work",
    OTHER: "Other activity",
}

SUBTYPES: dict[str, list[tuple[str, str]]] = {
    "inspection": [
        ("foundation", "Foundation inspection"),
        ("structural", "Structural inspection"),
        ("electrical", "Electrical inspection"),
        ("plumbing", "Plumbing inspection"),
        ("finishes", "Finishes inspection"),
        ("mep", "MEP inspection"),
        ("safety", "Safety inspection"),
        ("final", "Final inspection"),
        (OTHER, "Other inspection"),
    ],
    "site_work": [
        ("excavation", "Excavation"),
        ("concreting", "Concreting"),
        ("masonry", "Masonry"),
        ("plastering", "Plastering"),
        (OTHER, "Other site work"),
    ],
}

MAX_HOURS = 24


def _category_options() -> list[Option]:
    return options_from(list(CATEGORIES.items()))


def _subtype_options(data: Mapping[str, Any]) -> list[Option]:
    return options_from(SUBTYPES.get(data.get("category", ""), []))


def prompt_category(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What kind of activity are you logging?", _category_options())


def parse_category(step: StepInput) -> Advance:
    option = require_option(step.value, _category_options())
    if option.id == OTHER:
        return Advance("enter_description", {"category": OTHER, "subtype": OTHER})
    return Advance("select_subtype", {"category": option.id})


def prompt_subtype(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    title = CATEGORIES.get(data.get("category", ""), "activity")
    return Response.prompt(f"Which {title.lower()}?", _subtype_options(data))


def parse_subtype(step: StepInput) -> Advance:
    option = require_option(step.value, _subtype_options(step.data))
    if option.id == OTHER:
        return Advance("enter_description", {"subtype": OTHER})
    return Advance("enter_hours", {"subtype": option.id, "description": option.title})


def prompt_description(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Please describe the activity (at least 10 characters).")


def parse_description(step: StepInput) -> Advance:
    description = parse_text(step.text, min_length=10, label="description")
    return Advance("enter_hours", {"description": description})


def prompt_hours(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("How many hours did it take? (e.g. 2 or 1.5)")


def parse_hours(step: StepInput) -> Advance:
    hours = parse_decimal(step.text, maximum=MAX_HOURS, label="number of hours")
    return Advance("enter_comments", {"hours": hours})


def prompt_comments(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Any comments? Type 'skip' if none.")


def parse_comments(step: StepInput) -> Advance:
    comments = "" if step.ctx.is_skip(step.value) else step.text
    return Advance("upload_photo", {"comments": comments})


def prompt_photo(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Please send a photo of the work. A photo is required.")


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    fields = {
        "activity_type": f"{data['category']}:{data['subtype']}",
        "category": data["category"],
        "subtype": data["subtype"],
        "description": data.get("description"),
        "hours": data["hours"],
        "comments": data.get("comments", ""),
        "attachment": attachment_reference(data),
        **site_fields(ctx),
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.ACTIVITY, fields)
    summary = (
        "Activity logged.\n"
        f"Site: {fields['site_name']}\n"
        f"Activity: {fields['description']}\n"
        f"Hours: {fields['hours']}"
    )
    return Completion(responses=[Response.confirmation(summary)], record_id=record_id)


ACTIVITY_LOGGING = FlowDefinition(
    intent=INTENT,
    title="Log activity",
    requires_site=True,
    steps=(
        Step("select_category", prompt_category, parse_category),
        Step("select_subtype", prompt_subtype, parse_subtype),
        Step("enter_description", prompt_description, parse_description),
        Step("enter_hours", prompt_hours, parse_hours),
        Step("enter_comments", prompt_comments, parse_comments),
        AttachmentStep("upload_photo", prompt_photo, folder="activities", mandatory=True),
    ),
    complete=complete,
)
