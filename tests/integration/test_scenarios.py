"""End-to-end conversations through the engine on in-memory backends."""

import pytest

from sitedesk.conversation.models import ResponseKind
from sitedesk.engine.frame import ACTIVE, DELEGATION_INTENT
from sitedesk.records.models import RecordType
from tests.factories import EngineHarness, IdentityFactory, SiteFactory


@pytest.mark.asyncio
async def test_employee_material_request_on_single_site() -> None:
    """An employee with one site requests concrete without a photo."""
    employee = IdentityFactory.employee(address="A")
    harness = EngineHarness(identities=[employee], sites=[SiteFactory.create("S1")])

    first = await harness.send("A", "start material request")
    assert first[0].text == "Working on site: Site S1"

    for reply in ["rmc", "m25", "10", "tomorrow 10am"]:
        await harness.send("A", reply)
    final = await harness.send("A", "skip")

    records = harness.records.of_type(RecordType.MATERIAL_REQUEST)
    assert len(records) == 1
    fields = records[0].fields
    assert fields["material"] == "RMC M25 concrete"
    assert fields["quantity"] == 10
    assert fields["unit"] == "cubic_meters"
    assert fields["site"] == "S1"
    assert fields["attachment"] is None

    session = await harness.session("A")
    assert session.flow.is_idle
    assert session.context.site.site_id == "S1"
    assert final[-1].kind is ResponseKind.PROMPT


@pytest.mark.asyncio
async def test_admin_logs_activity_as_employee() -> None:
    """An admin picks site S2 once and stays in the employee view afterwards."""
    admin = IdentityFactory.admin(address="B")
    harness = EngineHarness(
        identities=[admin],
        sites=[SiteFactory.create("S1"), SiteFactory.create("S2")],
    )

    await harness.send("B", "employee view")
    await harness.send("B", "S2")
    for reply in ["activity", "inspection", "safety", "3", "All clear"]:
        await harness.send("B", reply)
    responses = await harness.attach("B")

    assert any("Activity logged" in r.text for r in responses)
    records = harness.records.of_type(RecordType.ACTIVITY)
    assert len(records) == 1
    assert records[0].fields["site"] == "S2"
    assert records[0].fields["comments"] == "All clear"

    session = await harness.session("B")
    assert session.intent == DELEGATION_INTENT
    assert session.step == ACTIVE
    assert session.inner is None
    assert session.context.is_delegated
    assert session.context.site.site_id == "S2"

    # A second activity goes straight to the flow without asking for the site again
    again = await harness.send("B", "1")
    assert again[0].text == "What kind of activity are you logging?"


@pytest.mark.asyncio
async def test_employee_picks_site_then_resumes_flow() -> None:
    employee = IdentityFactory.employee()
    harness = EngineHarness(
        identities=[employee],
        sites=[SiteFactory.create("S1", "Alpha"), SiteFactory.create("S2", "Beta")],
    )

    prompt = await harness.send(employee.address, "inventory")
    assert "Which site" in prompt[0].text

    responses = await harness.select(employee.address, "S1")
    assert responses[0].text == "Working on site: Alpha"
    assert (await harness.session(employee.address)).intent == "inventory"

    await harness.send(employee.address, "stock report")
    responses = await harness.send(employee.address, "change site")
    assert "Which site" in responses[0].text
    responses = await harness.send(employee.address, "2")
    assert responses[0].text == "Working on site: Beta"
    assert (await harness.session(employee.address)).flow.is_idle
