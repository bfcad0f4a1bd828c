"""Inventory in/out flow and stock report for field employees."""

from collections.abc import Mapping
from typing import Any

from sitedesk.conversation.models import Option, Response, options_from
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields, site_fields
from sitedesk.flows.parsing import parse_integer, require_option
from sitedesk.flows.wizard import (
    COMPLETE,
    Advance,
    AttachmentStep,
    Completion,
    FlowDefinition,
    InvalidInput,
    Step,
    StepInput,
    attachment_reference,
)
from sitedesk.inventory.models import InventoryCategory
from sitedesk.records.models import RecordType

INTENT = "inventory"

ITEM_IN = "item_in"
ITEM_OUT = "item_out"
STOCK_REPORT = "stock_report"

OPERATIONS = [
    (ITEM_IN, "Item in (received)"),
    (ITEM_OUT, "Item out (issued)"),
    (STOCK_REPORT, "Stock report"),
]

MAX_QUANTITY = 100_000


def _site_id(ctx: FlowContext) -> str:
    site = ctx.site.current
    if site is None:
        raise InvalidInput("Please select a site first.")
    return site.site_id


def prompt_operation(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What would you like to do?", options_from(OPERATIONS))


def parse_operation(step: StepInput) -> Advance:
    option = require_option(step.value, options_from(OPERATIONS))
    if option.id == STOCK_REPORT:
        return Advance(COMPLETE, {"operation": STOCK_REPORT})
    return Advance("select_category", {"operation": option.id})


def _category_options() -> list[Option]:
    return [Option(id=c.value, title=c.title) for c in InventoryCategory]


def prompt_category(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Which category?", _category_options())


def parse_category(step: StepInput) -> Advance:
    option = require_option(step.value, _category_options())
    return Advance("select_item", {"category": option.id})


async def load_items(data: Mapping[str, Any], ctx: FlowContext) -> dict[str, Any]:
    """Offer the category's items with their stock at the current site."""
    site_id = _site_id(ctx)
    catalog = ctx.services.inventory
    items = await catalog.list_items(InventoryCategory(data["category"]))
    if not items:
        raise InvalidInput("There are no items in that category yet. Please choose another.")
    available = []
    for item in items:
        available.append({
            "item_id": item.item_id,
            "name": item.name,
            "unit": item.unit,
            "stock": await catalog.stock_level(item.item_id, site_id),
        })
    return {"available_items": available}


def _item_options(data: Mapping[str, Any]) -> list[Option]:
    return [
        Option(id=item["item_id"], title=item["name"], description=f"In stock: {item['stock']} {item['unit']}")
        for item in data.get("available_items", [])
    ]


def prompt_item(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    lines = [
        f"{index}. {item['name']} (stock: {item['stock']} {item['unit']})"
        for index, item in enumerate(data.get("available_items", []), start=1)
    ]
    return Response.prompt("Which item?\n" + "\n".join(lines), _item_options(data))


def parse_item(step: StepInput) -> Advance:
    option = require_option(step.value, _item_options(step.data))
    item = next(i for i in step.data["available_items"] if i["item_id"] == option.id)
    if step.data.get("operation") == ITEM_OUT and item["stock"] <= 0:
        raise InvalidInput(f"{item['name']} is out of stock at this site.")
    return Advance("enter_quantity", {"item": dict(item)})


def prompt_quantity(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    item = data.get("item", {})
    verb = "received" if data.get("operation") == ITEM_IN else "issued"
    return Response.prompt(f"How many {item.get('unit', 'units')} of {item.get('name', 'this item')} were {verb}?")


def parse_quantity(step: StepInput) -> Advance:
    quantity = parse_integer(step.text, maximum=MAX_QUANTITY)
    item = step.data["item"]
    if step.data.get("operation") == ITEM_OUT and quantity > item["stock"]:
        raise InvalidInput(f"Only {item['stock']} {item['unit']} in stock.")
    return Advance("enter_notes", {"quantity": quantity})


def prompt_notes(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Any notes (supplier, issued to, ...)? Type 'skip' if none.")


def parse_notes(step: StepInput) -> Advance:
    notes = "" if step.ctx.is_skip(step.value) else step.text
    return Advance("upload_photo", {"notes": notes})


def prompt_photo(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Please send a photo of the items. A photo is required.")


async def _stock_report(ctx: FlowContext) -> Completion:
    site = ctx.site.current
    if site is None:
        return Completion(responses=[Response.error("Please select a site first.")], recorded=False)
    lines = await ctx.services.inventory.stock_report(site.site_id)
    if not lines:
        return Completion(responses=[Response.message(f"No inventory items are set up for {site.site_name}.")])
    body = "\n".join(f"- {line.item.name}: {line.quantity} {line.item.unit}" for line in lines)
    return Completion(responses=[Response.message(f"Stock at {site.site_name}:\n{body}")])


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    if data.get("operation") == STOCK_REPORT:
        return await _stock_report(ctx)

    item = data["item"]
    site = ctx.site.current
    if site is None:
        return Completion(
            responses=[Response.error("Please select a site first. Nothing was recorded.")],
            recorded=False,
        )
    site_id = site.site_id
    quantity = data["quantity"]
    previous = await ctx.services.inventory.stock_level(item["item_id"], site_id)
    transaction_type = "in" if data["operation"] == ITEM_IN else "out"
    if transaction_type == "out" and quantity > previous:
        return Completion(
            responses=[
                Response.error(
                    f"Stock changed while you were entering this: only {previous} {item['unit']} left. "
                    "Nothing was recorded."
                )
            ],
            recorded=False,
        )
    new_stock = previous + quantity if transaction_type == "in" else previous - quantity

    fields = {
        "item_id": item["item_id"],
        "item_name": item["name"],
        "category": data["category"],
        "transaction_type": transaction_type,
        "quantity": quantity,
        "unit": item["unit"],
        "previous_stock": previous,
        "new_stock": new_stock,
        "notes": data.get("notes", ""),
        "attachment": attachment_reference(data),
        **site_fields(ctx),
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.INVENTORY_TRANSACTION, fields)
    summary = (
        f"Inventory {'received' if transaction_type == 'in' else 'issued'}.\n"
        f"Item: {item['name']}\n"
        f"Quantity: {quantity} {item['unit']}\n"
        f"Stock: {previous} -> {new_stock}"
    )
    return Completion(responses=[Response.confirmation(summary)], record_id=record_id)


INVENTORY = FlowDefinition(
    intent=INTENT,
    title="Inventory",
    requires_site=True,
    steps=(
        Step("select_operation", prompt_operation, parse_operation),
        Step("select_category", prompt_category, parse_category),
        Step("select_item", prompt_item, parse_item, load=load_items),
        Step("enter_quantity", prompt_quantity, parse_quantity),
        Step("enter_notes", prompt_notes, parse_notes),
        AttachmentStep("upload_photo", prompt_photo, folder="inventory", mandatory=True),
    ),
    complete=complete,
)
