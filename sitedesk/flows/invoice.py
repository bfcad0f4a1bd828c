"""Invoice tracking flow for administrators."""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sitedesk.conversation.models import Response
from sitedesk.engine.context import FlowContext
from sitedesk.flows.base import actor_fields, site_fields
from sitedesk.flows.parsing import parse_decimal, parse_past_date, parse_text
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

INTENT = "invoice_tracking"

MAX_AMOUNT = 1_000_000_000


def prompt_company(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Which company is the invoice from?")


def parse_company(step: StepInput) -> Advance:
    return Advance("enter_description", {"company_name": parse_text(step.text, min_length=2, label="company name")})


def prompt_description(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What is the invoice for?")


def parse_description(step: StepInput) -> Advance:
    description = parse_text(step.text, min_length=3, label="description")
    return Advance("enter_invoice_date", {"invoice_description": description})


def prompt_date(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What is the invoice date? (DD/MM/YYYY)")


def parse_date(step: StepInput) -> Advance:
    invoice_date = parse_past_date(step.text, step.ctx.today())
    return Advance("enter_amount", {"invoice_date": invoice_date.isoformat()})


def prompt_amount(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("What is the invoice amount? (e.g. 15000 or 15000.50)")


def parse_amount(step: StepInput) -> Advance:
    amount = parse_decimal(step.text, maximum=MAX_AMOUNT, label="amount")
    minor = int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return Advance("upload_invoice", {"amount": amount, "amount_minor": minor})


def prompt_invoice(data: Mapping[str, Any], ctx: FlowContext) -> Response:
    return Response.prompt("Send a photo of the invoice, or type 'skip'.")


async def complete(data: dict[str, Any], ctx: FlowContext) -> Completion:
    fields = {
        "company_name": data["company_name"],
        "invoice_description": data["invoice_description"],
        "invoice_date": data["invoice_date"],
        "amount": data["amount"],
        "amount_minor": data["amount_minor"],
        "attachment": attachment_reference(data),
        "notes": "Added by admin via chat",
        **site_fields(ctx),
        **actor_fields(ctx),
    }
    record_id = await ctx.services.records.write(RecordType.INVOICE, fields)
    summary = (
        "Invoice recorded.\n"
        f"Company: {fields['company_name']}\n"
        f"Date: {fields['invoice_date']}\n"
        f"Amount: {fields['amount_minor'] / 100:,.2f}"
    )
    return Completion(responses=[Response.confirmation(summary)], record_id=record_id)


INVOICE_TRACKING = FlowDefinition(
    intent=INTENT,
    title="Track invoice",
    steps=(
        Step("enter_company", prompt_company, parse_company),
        Step("enter_description", prompt_description, parse_description),
        Step("enter_invoice_date", prompt_date, parse_date),
        Step("enter_amount", prompt_amount, parse_amount),
        AttachmentStep("upload_invoice", prompt_invoice, folder="invoices", mandatory=False),
    ),
    complete=complete,
)
