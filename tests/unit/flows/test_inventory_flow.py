"""Tests for the inventory flow and stock ledger."""

import pytest

from sitedesk.conversation.models import InboundEvent
from sitedesk.flows import INVENTORY, Wizard
from sitedesk.inventory.models import InventoryCategory, InventoryItem
from sitedesk.records.models import RecordType
from sitedesk.records.sinks.inmemory import InMemoryRecordSink
from sitedesk.sites.models import SiteContext
from tests.factories import IdentityFactory, flow_context, make_services, photo

SITE = SiteContext(site_id="S1", site_name="Tower A")
ADDRESS = "+10000000002"
CEMENT = InventoryItem(
    item_id="cement",
    name="Cement bags",
    category=InventoryCategory.BUILDING_MATERIAL,
    unit="bags",
)


@pytest.fixture
def records():
    return InMemoryRecordSink()


@pytest.fixture
def ctx(records):
    return flow_context(IdentityFactory.employee(), make_services(records=records, items=[CEMENT]), site=SITE)


async def run(ctx, *replies):
    wizard = Wizard(INVENTORY)
    outcome = await wizard.start(ctx)
    for reply in replies:
        event = (
            InboundEvent.from_attachment(ADDRESS, photo())
            if reply is photo
            else InboundEvent.from_text(ADDRESS, reply)
        )
        outcome = await wizard.handle(outcome.state, event, ctx)
    return outcome


async def seed_stock(records, quantity: int, site: str = "S1") -> None:
    await records.write(
        RecordType.INVENTORY_TRANSACTION,
        {"item_id": "cement", "site": site, "transaction_type": "in", "quantity": quantity},
    )


class TestInventoryFlow:
    """Tests for item in/out."""

    @pytest.mark.asyncio
    async def test_item_in_updates_stock(self, ctx, records) -> None:
        """Should record an in-transaction with previous and new stock."""
        await seed_stock(records, 5)
        outcome = await run(ctx, "item_in", "building_material", "cement", "20", "skip", photo)

        assert outcome.completed
        record = records.of_type(RecordType.INVENTORY_TRANSACTION)[-1]
        assert record.fields["previous_stock"] == 5
        assert record.fields["new_stock"] == 25
        assert record.fields["notes"] == ""
        assert await ctx.services.inventory.stock_level("cement", "S1") == 25

    @pytest.mark.asyncio
    async def test_item_list_shows_stock(self, ctx, records) -> None:
        await seed_stock(records, 7)
        outcome = await run(ctx, "item_in", "1")

        assert outcome.state.step == "select_item"
        assert "stock: 7 bags" in outcome.responses[-1].text

    @pytest.mark.asyncio
    async def test_item_out_beyond_stock_rejected(self, ctx, records) -> None:
        await seed_stock(records, 3)
        outcome = await run(ctx, "item_out", "building_material", "cement", "4")

        assert outcome.state.step == "enter_quantity"
        assert "Only 3 bags" in outcome.responses[0].hint

    @pytest.mark.asyncio
    async def test_item_out_of_stock_cannot_be_selected(self, ctx) -> None:
        outcome = await run(ctx, "item_out", "building_material", "cement")

        assert outcome.state.step == "select_item"
        assert "out of stock" in outcome.responses[0].hint

    @pytest.mark.asyncio
    async def test_empty_category_rejected(self, ctx) -> None:
        """Should stay on the category step when it has no items."""
        outcome = await run(ctx, "item_in", "electrical_materials")

        assert outcome.state.step == "select_category"
        assert "no items" in outcome.responses[0].hint

    @pytest.mark.asyncio
    async def test_stock_changed_before_completion_is_not_recorded(self, ctx, records) -> None:
        """Should end without a record or a completed outcome when stock ran out meanwhile."""
        await seed_stock(records, 5)
        outcome = await run(ctx, "item_out", "building_material", "cement", "5", "skip")
        assert outcome.state.step == "upload_photo"
        await records.write(
            RecordType.INVENTORY_TRANSACTION,
            {"item_id": "cement", "site": "S1", "transaction_type": "out", "quantity": 3},
        )
        before = len(records.of_type(RecordType.INVENTORY_TRANSACTION))

        outcome = await Wizard(INVENTORY).handle(
            outcome.state, InboundEvent.from_attachment(ADDRESS, photo()), ctx
        )

        assert outcome.state.is_idle
        assert not outcome.completed
        assert outcome.record_id is None
        assert "Nothing was recorded" in outcome.responses[-1].text
        assert len(records.of_type(RecordType.INVENTORY_TRANSACTION)) == before

    @pytest.mark.asyncio
    async def test_stock_per_site(self, ctx, records) -> None:
        """Should not count another site's stock."""
        await seed_stock(records, 9, site="S2")
        assert await ctx.services.inventory.stock_level("cement", "S1") == 0


class TestStockReport:
    @pytest.mark.asyncio
    async def test_report(self, ctx, records) -> None:
        await seed_stock(records, 12)
        outcome = await run(ctx, "stock_report")

        assert outcome.state.is_idle
        assert "Cement bags: 12 bags" in outcome.responses[-1].text
