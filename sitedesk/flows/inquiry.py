"""Customer inquiry flow."""

import re
from collections.abc import Mapping
from typing import Any

from sitedesk.conversation.models import Option, Response, options_from
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields
from sitedesk.flows.parsing import parse_text, require_option
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

INTENT = "customer_inquiry"

EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SPACE_USES = [
    ("office", "Office"),
    ("retail", "Retail / showroom"),
    ("warehouse", "Warehouse"),
    ("other", "Other"),
]

BUDGETS = [
    ("under_50k", "Under 50,000 / month"),
    ("50k_150k", "50,000 - 150,000 / month"),
    ("over_150k", "Over 150,000 / month"),
]


def prompt_name(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Great! May I have your full name?")


def parse_name(step: StepInput) -> Advance:
    return Advance("enter_email", {"name": parse_text(step.text, min_length=2, label="name")})


def prompt_email(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt(f"Thanks {data.get('name', '')}. What is your e-mail address?")


def parse_email(step: StepInput) -> Advance:
    if not EMAIL.match(step.text):
        raise InvalidInput("That doesn't look like an e-mail address, e.g. name@example.com.")
    return Advance("enter_occupation", {"email": step.text.lower()})


def prompt_occupation(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What is your occupation or company?")


def parse_occupation(step: StepInput) -> Advance:
    return Advance("enter_space", {"occupation": parse_text(step.text, min_length=2, label="occupation")})


def prompt_space(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("How much space do you need? (e.g. 2000 sq ft)")


def parse_space(step: StepInput) -> Advance:
    requirement = parse_text(step.text, min_length=2, label="space requirement")
    return Advance("enter_space_use", {"space_requirement": requirement})


def prompt_space_use(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What will the space be used for?", options_from(SPACE_USES))


def parse_space_use(step: StepInput) -> Advance:
    option = require_option(step.value, options_from(SPACE_USES))
    return Advance("select_budget", {"space_use": option.id})


def _budget_options() -> list[Option]:
    return options_from(BUDGETS)


def prompt_budget(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What budget range are you considering?", _budget_options())


def parse_budget(step: StepInput) -> Advance:
    option = require_option(step.value, _budget_options())
    return Advance(COMPLETE, {"price_range": option.id})


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    fields = {
        "customer_phone": ctx.identity.address,
        "name": data["name"],
        "email": data["email"],
        "occupation": data["occupation"],
        "space_requirement": data["space_requirement"],
        "space_use": data["space_use"],
        "price_range": data["price_range"],
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.INQUIRY, fields)
    return Completion(
        responses=[
            Response.confirmation(f"Thank you {fields['name']}! Our team will be in touch shortly."),
            Response.prompt(
                "Would you like to book a site visit?",
                [Option(id="booking", title="Book a site visit"), Option(id="menu", title="Main menu")],
            ),
        ],
        record_id=record_id,
    )


CUSTOMER_INQUIRY = FlowDefinition(
    intent=INTENT,
    title="Enquire about space",
    steps=(
        Step("enter_name", prompt_name, parse_name),
        Step("enter_email", prompt_email, parse_email),
        Step("enter_occupation", prompt_occupation, parse_occupation),
        Step("enter_space", prompt_space, parse_space),
        Step("enter_space_use", prompt_space_use, parse_space_use),
        Step("select_budget", prompt_budget, parse_budget),
    ),
    complete=complete,
)
