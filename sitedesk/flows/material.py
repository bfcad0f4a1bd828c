"""Material request flow for field employees."""

import re
from collections.abc import Mapping
from typing import Any

from sitedesk.conversation.models import Option, Response, options_from
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields, site_fields
from sitedesk.flows.parsing import parse_decimal, parse_integer, parse_text, require_option
from sitedesk.flows.wizard import (
    Advance,
    AttachmentStep,
    Completion,
    FlowDefinition,
    InvalidInput,
    Step,
    StepInput,
    attachment_reference,
)
from sitedesk.records.models import RecordType

INTENT = "material_request"

RMC = "rmc"
STEEL = "steel"
AAC_BLOCK = "aac_block"
OTHER = "other"

CATEGORIES = [
    (RMC, "Ready-mix concrete (RMC)"),
    (STEEL, "Steel / rebar"),
    (AAC_BLOCK, "AAC blocks"),
    (OTHER, "Other material"),
]

SPECIFICATIONS: dict[str, list[tuple[str, str]]] = {
    RMC: [("m15", "M15"), ("m25", "M25"), ("m30", "M30")],
    AAC_BLOCK: [
        ("100mm", "100mm"),
        ("150mm", "150mm"),
        ("200mm", "200mm"),
        ("230mm", "230mm"),
        ("250mm", "250mm"),
        ("300mm", "300mm"),
    ],
}

STEEL_DIAMETERS = frozenset({8, 10, 12, 16, 20, 25})
MAX_RMC_CUBIC_METERS = 1000
MAX_AAC_PIECES = 50000
MAX_STEEL_TONNES_PER_LINE = 100

STEEL_LINE = re.compile(
    r"^\s*(\d+)\s*mm\s*[-:=x]?\s*(\d+(?:\.\d+)?)\s*(?:tonnes?|tons?|t|mt)?\s*$",
    re.IGNORECASE,
)
OTHER_QUANTITY = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Z]+)")


def _category_options() -> list[Option]:
    return options_from(CATEGORIES)


def _specification_options(data: Mapping[str, Any]) -> list[Option]:
    return options_from(SPECIFICATIONS.get(data.get("category", ""), []))


def prompt_category(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Which material do you need?", _category_options())


def parse_category(step: StepInput) -> Advance:
    option = require_option(step.value, _category_options())
    if option.id in SPECIFICATIONS:
        return Advance("select_specification", {"category": option.id})
    return Advance("enter_quantity", {"category": option.id, "specification": None})


def prompt_specification(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    if data.get("category") == RMC:
        text = "Which concrete grade?"
    else:
        text = "Which block thickness?"
    return Response.prompt(text, _specification_options(data))


def parse_specification(step: StepInput) -> Advance:
    option = require_option(step.value, _specification_options(step.data))
    return Advance("enter_quantity", {"specification": option.id})


def prompt_quantity(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    category = data.get("category")
    if category == RMC:
        return Response.prompt("How many cubic meters? (e.g. 10 or 7.5)")
    if category == AAC_BLOCK:
        return Response.prompt("How many blocks (pieces)?")
    if category == STEEL:
        sizes = ", ".join(str(d) for d in sorted(STEEL_DIAMETERS))
        return Response.prompt(
            "List each diameter and weight on its own line, e.g.\n"
            "8mm - 2 tonnes\n12mm - 1.5 tonnes\n"
            f"Available diameters: {sizes}mm"
        )
    return Response.prompt("Describe the material and quantity, e.g. 'PVC pipes 20 lengths'.")


def parse_steel_lines(text: str) -> list[dict[str, Any]]:
    """Parse ``"<diameter>mm - <tonnes> tonnes"`` lines."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise InvalidInput("Please list at least one diameter, e.g. '8mm - 2 tonnes'.")

    items: list[dict[str, Any]] = []
    for line in lines:
        match = STEEL_LINE.match(line)
        if not match:
            raise InvalidInput(f"Could not read '{line.strip()}'. Use the form '8mm - 2 tonnes'.")
        diameter = int(match.group(1))
        if diameter not in STEEL_DIAMETERS:
            raise InvalidInput(f"{diameter}mm is not an available diameter.")
        tonnes = parse_decimal(match.group(2), maximum=MAX_STEEL_TONNES_PER_LINE, label="weight")
        items.append({"diameter_mm": diameter, "tonnes": tonnes})
    return items


def parse_quantity(step: StepInput) -> Advance:
    category = step.data.get("category")
    specification = step.data.get("specification") or ""

    if category == RMC:
        quantity = parse_decimal(step.text, maximum=MAX_RMC_CUBIC_METERS, label="volume")
        patch = {
            "material": f"RMC {specification.upper()} concrete",
            "quantity": quantity,
            "unit": "cubic_meters",
        }
    elif category == AAC_BLOCK:
        quantity = parse_integer(step.text, maximum=MAX_AAC_PIECES, label="number of blocks")
        patch = {"material": f"AAC block {specification}", "quantity": quantity, "unit": "pieces"}
    elif category == STEEL:
        items = parse_steel_lines(step.text)
        total = round(sum(item["tonnes"] for item in items), 3)
        diameters = {item["diameter_mm"] for item in items}
        if len(diameters) == 1:
            material = f"Steel rebar {diameters.pop()}mm"
        else:
            material = "Steel/rebar assorted diameters"
        patch = {
            "material": material,
            "quantity": int(total) if float(total).is_integer() else total,
            "unit": "tonnes",
            "line_items": items,
        }
    else:
        description = parse_text(step.text, min_length=5, label="description")
        match = OTHER_QUANTITY.search(description)
        if match:
            quantity = parse_decimal(match.group(1), maximum=1_000_000)
            unit = match.group(2).lower()
        else:
            quantity, unit = 1, "units"
        patch = {"material": description, "quantity": quantity, "unit": unit}

    return Advance("enter_delivery", patch)


def prompt_delivery(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("When should it be delivered? (e.g. 'tomorrow 10am')")


def parse_delivery(step: StepInput) -> Advance:
    delivery = parse_text(step.text, min_length=5, label="delivery time")
    return Advance("upload_reference", {"delivery": delivery})


def prompt_reference(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Send a reference photo if you have one, or type 'skip'.")


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    fields = {
        "material": data["material"],
        "material_type": data["category"],
        "specification": data.get("specification"),
        "quantity": data["quantity"],
        "unit": data["unit"],
        "line_items": data.get("line_items"),
        "delivery": data["delivery"],
        "attachment": attachment_reference(data),
        **site_fields(ctx),
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.MATERIAL_REQUEST, fields)
    unit = fields["unit"].replace("_", " ")
    summary = (
        "Material request submitted.\n"
        f"Site: {fields['site_name']}\n"
        f"Material: {fields['material']}\n"
        f"Quantity: {fields['quantity']} {unit}\n"
        f"Delivery: {fields['delivery']}"
    )
    return Completion(responses=[Response.confirmation(summary)], record_id=record_id)


MATERIAL_REQUEST = FlowDefinition(
    intent=INTENT,
    title="Request material",
    requires_site=True,
    steps=(
        Step("select_category", prompt_category, parse_category),
        Step("select_specification", prompt_specification, parse_specification),
        Step("enter_quantity", prompt_quantity, parse_quantity),
        Step("enter_delivery", prompt_delivery, parse_delivery),
        AttachmentStep("upload_reference", prompt_reference, folder="material-requests", mandatory=False),
    ),
    complete=complete,
)
