"""Tests for the material request flow."""

import pytest

from sitedesk.conversation.models import InboundEvent
from sitedesk.flows import MATERIAL_REQUEST, Wizard
from sitedesk.flows.material import parse_steel_lines
from sitedesk.flows.wizard import InvalidInput
from sitedesk.records.models import RecordType
from sitedesk.sites.models import SiteContext
from tests.factories import IdentityFactory, flow_context, make_services

SITE = SiteContext(site_id="S1", site_name="Tower A")
ADDRESS = "+10000000002"


@pytest.fixture
def ctx():
    return flow_context(IdentityFactory.employee(), make_services(), site=SITE)


async def run(ctx, *replies):
    wizard = Wizard(MATERIAL_REQUEST)
    outcome = await wizard.start(ctx)
    for reply in replies:
        outcome = await wizard.handle(outcome.state, InboundEvent.from_text(ADDRESS, reply), ctx)
    return outcome


class TestMaterialRequest:
    """Tests for each material category."""

    @pytest.mark.asyncio
    async def test_rmc_request(self, ctx) -> None:
        """Should record an RMC request with grade, volume and delivery."""
        outcome = await run(ctx, "rmc", "m25", "10", "tomorrow 10am", "skip")

        assert outcome.completed
        record = ctx.services.records.records[0]
        assert record.record_type is RecordType.MATERIAL_REQUEST
        assert record.fields["material"] == "RMC M25 concrete"
        assert record.fields["quantity"] == 10
        assert record.fields["unit"] == "cubic_meters"
        assert record.fields["site"] == "S1"
        assert record.fields["attachment"] is None
        assert record.fields["submitted_by"] == "emp-1"

    @pytest.mark.asyncio
    async def test_aac_blocks_by_number(self, ctx) -> None:
        await run(ctx, "3", "2", "500", "next monday", "skip")

        fields = ctx.services.records.records[0].fields
        assert fields["material"] == "AAC block 150mm"
        assert fields["unit"] == "pieces"
        assert fields["quantity"] == 500

    @pytest.mark.asyncio
    async def test_steel_skips_specification(self, ctx) -> None:
        """Should go straight to quantity and sum the line weights."""
        outcome = await run(ctx, "steel")
        assert outcome.state.step == "enter_quantity"

        outcome = await Wizard(MATERIAL_REQUEST).handle(
            outcome.state, InboundEvent.from_text(ADDRESS, "8mm - 2 tonnes\n12mm - 1.5 tonnes"), ctx
        )
        assert outcome.state.data["quantity"] == 3.5
        assert outcome.state.data["material"] == "Steel/rebar assorted diameters"
        assert len(outcome.state.data["line_items"]) == 2

    @pytest.mark.asyncio
    async def test_other_material_extracts_quantity(self, ctx) -> None:
        outcome = await run(ctx, "other", "PVC pipes 20 lengths")

        assert outcome.state.data["quantity"] == 20
        assert outcome.state.data["unit"] == "lengths"

    @pytest.mark.asyncio
    async def test_rmc_volume_limit(self, ctx) -> None:
        """Should reject volumes above the ceiling and stay on the step."""
        outcome = await run(ctx, "rmc", "m25", "1001")

        assert outcome.state.step == "enter_quantity"
        assert "1000" in outcome.responses[0].hint

    @pytest.mark.asyncio
    async def test_aac_rejects_fraction(self, ctx) -> None:
        outcome = await run(ctx, "aac_block", "100mm", "12.5")

        assert outcome.state.step == "enter_quantity"
        assert outcome.responses[0].hint is not None


class TestSteelLines:
    """Tests for steel line parsing."""

    def test_single_diameter(self) -> None:
        assert parse_steel_lines("16mm 4t") == [{"diameter_mm": 16, "tonnes": 4}]

    def test_unknown_diameter(self) -> None:
        with pytest.raises(InvalidInput, match="14mm"):
            parse_steel_lines("14mm - 2 tonnes")

    def test_unreadable_line(self) -> None:
        with pytest.raises(InvalidInput):
            parse_steel_lines("some steel please")
