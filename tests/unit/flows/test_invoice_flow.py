"""Tests for the invoice tracking flow."""

from datetime import UTC, datetime

import pytest

from sitedesk.conversation.models import InboundEvent
from sitedesk.flows import INVOICE_TRACKING, Wizard
from sitedesk.records.models import RecordType
from tests.factories import IdentityFactory, flow_context, make_services

ADDRESS = "+10000000001"
# 20:00 UTC is already the next day at the default +05:30 offset
NOW = datetime(2026, 10, 19, 20, 0, tzinfo=UTC)


@pytest.fixture
def ctx():
    return flow_context(IdentityFactory.admin(), make_services(), now=NOW)


async def run(ctx, *replies):
    wizard = Wizard(INVOICE_TRACKING)
    outcome = await wizard.start(ctx)
    for reply in replies:
        outcome = await wizard.handle(outcome.state, InboundEvent.from_text(ADDRESS, reply), ctx)
    return outcome


class TestInvoiceTracking:
    """Tests for invoice collection."""

    @pytest.mark.asyncio
    async def test_records_amount_in_minor_units(self, ctx) -> None:
        """Should keep the exact amount in minor units."""
        outcome = await run(ctx, "Acme Steel", "Rebar delivery", "01/10/2026", "15000.50", "skip")

        assert outcome.completed
        record = ctx.services.records.records[0]
        assert record.record_type is RecordType.INVOICE
        assert record.fields["amount_minor"] == 1500050
        assert record.fields["invoice_date"] == "2026-10-01"
        assert record.fields["attachment"] is None
        assert "15,000.50" in outcome.responses[-1].text

    @pytest.mark.asyncio
    async def test_local_today_is_allowed(self, ctx) -> None:
        """Should accept the local date even when UTC is a day behind."""
        outcome = await run(ctx, "Acme Steel", "Rebar delivery", "20/10/2026")

        assert outcome.state.step == "enter_amount"

    @pytest.mark.asyncio
    async def test_future_date_rejected(self, ctx) -> None:
        outcome = await run(ctx, "Acme Steel", "Rebar delivery", "21/10/2026")

        assert outcome.state.step == "enter_invoice_date"
        assert "future" in outcome.responses[0].hint

    @pytest.mark.asyncio
    async def test_records_admin_as_submitter(self, ctx) -> None:
        await run(ctx, "Acme Steel", "Rebar delivery", "01/10/2026", "100", "skip")

        fields = ctx.services.records.records[0].fields
        assert fields["submitted_by"] == "admin-1"
        assert fields["submitted_as"] == "admin"
        assert fields["delegated_by"] is None
