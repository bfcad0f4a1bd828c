"""Tests for administrator delegation into other roles."""

import pytest

from sitedesk.conversation.models import FlowState, ResponseKind, Session, SessionContext
from sitedesk.engine.delegation import INNER_FAILURE_MESSAGE
from sitedesk.engine.frame import ACTIVE, DELEGATION_INTENT, SELECTING_TARGET
from sitedesk.identity.models import Role
from sitedesk.records.models import RecordType
from sitedesk.sites.models import SiteContext
from tests.factories import EngineHarness, IdentityFactory, SiteFactory

ADMIN = IdentityFactory.admin()
ADDRESS = ADMIN.address


@pytest.fixture
def harness() -> EngineHarness:
    return EngineHarness(
        identities=[ADMIN, IdentityFactory.employee()],
        sites=[SiteFactory.create("S1"), SiteFactory.create("S2")],
    )


async def enter_employee_view(harness: EngineHarness, site: str = "S2") -> None:
    await harness.send(ADDRESS, "employee view")
    await harness.send(ADDRESS, site)


def assert_outer(session: Session, site_id: str) -> None:
    context = session.context
    assert session.intent == DELEGATION_INTENT
    assert session.step == ACTIVE
    assert session.data == {}
    assert context.is_delegated
    assert context.original_role is Role.ADMIN
    assert context.acting_as is Role.EMPLOYEE
    assert context.site.site_id == site_id
    assert context.site_is_transient


class TestEnterDelegation:
    """Tests for entering a delegated view."""

    @pytest.mark.asyncio
    async def test_employee_view_asks_for_site(self, harness) -> None:
        """Should enter the selecting-target state when several sites exist."""
        responses = await harness.send(ADDRESS, "employee view")

        assert responses[0].text.startswith("You are now using the employee view")
        assert [o.id for o in responses[-1].options] == ["S1", "S2"]
        session = await harness.session(ADDRESS)
        assert session.step == SELECTING_TARGET
        assert session.context.is_delegated
        assert session.inner is None

    @pytest.mark.asyncio
    async def test_site_choice_activates(self, harness) -> None:
        await harness.send(ADDRESS, "employee view")
        responses = await harness.send(ADDRESS, "2")

        assert responses[0].text == "Working on site: Site S2"
        assert responses[-1].text.startswith("Site: Site S2.")
        assert_outer(await harness.session(ADDRESS), "S2")

    @pytest.mark.asyncio
    async def test_invalid_site_choice_keeps_selecting(self, harness) -> None:
        await harness.send(ADDRESS, "employee view")
        responses = await harness.send(ADDRESS, "S9")

        assert responses[0].hint == "Please choose one of the listed sites."
        assert (await harness.session(ADDRESS)).step == SELECTING_TARGET

    @pytest.mark.asyncio
    async def test_single_site_auto_selected(self) -> None:
        harness = EngineHarness(identities=[ADMIN], sites=[SiteFactory.create("S1")])
        responses = await harness.send(ADDRESS, "employee view")

        assert any(r.text == "Working on site: Site S1" for r in responses)
        assert_outer(await harness.session(ADDRESS), "S1")

    @pytest.mark.asyncio
    async def test_no_sites_returns_to_admin_menu(self) -> None:
        harness = EngineHarness(identities=[ADMIN])
        responses = await harness.send(ADDRESS, "employee view")

        session = await harness.session(ADDRESS)
        assert not session.context.is_delegated
        assert session.flow.is_idle
        assert responses[-1].text.startswith("Admin menu")

    @pytest.mark.asyncio
    async def test_customer_view_needs_no_site(self, harness) -> None:
        await harness.send(ADDRESS, "customer view")
        responses = await harness.send(ADDRESS, "hi")

        assert responses[0].text.startswith("Welcome!")
        session = await harness.session(ADDRESS)
        assert session.step == ACTIVE
        assert session.context.site is None


class TestInnerFlows:
    """Tests that inner flows never disturb the outer session."""

    @pytest.mark.asyncio
    async def test_outer_state_survives_every_inner_step(self, harness) -> None:
        """Should keep the outer markers and site through a whole inner flow."""
        await enter_employee_view(harness)

        for reply in ["1", "inspection", "structural", "2", "skip"]:
            await harness.send(ADDRESS, reply)
            session = await harness.session(ADDRESS)
            assert_outer(session, "S2")
            assert session.inner.intent == "activity_logging"

        responses = await harness.attach(ADDRESS)

        session = await harness.session(ADDRESS)
        assert_outer(session, "S2")
        assert session.inner is None
        assert any(r.kind is ResponseKind.CONFIRMATION and "Activity logged" in r.text for r in responses)
        assert responses[-1].kind is ResponseKind.PROMPT

        record = harness.records.of_type(RecordType.ACTIVITY)[0]
        assert record.fields["site"] == "S2"
        assert record.fields["submitted_as"] == "employee"
        assert record.fields["delegated_by"] == "admin"

    @pytest.mark.asyncio
    async def test_next_inner_flow_starts_fresh(self, harness) -> None:
        """Should not leak data from a finished inner flow into the next one."""
        await enter_employee_view(harness)
        for reply in ["2", "rmc", "m25", "10", "tomorrow 10am", "skip"]:
            await harness.send(ADDRESS, reply)
        assert (await harness.session(ADDRESS)).inner is None

        await harness.send(ADDRESS, "material")

        session = await harness.session(ADDRESS)
        assert session.inner == FlowState(intent="material_request", step="select_category")

    @pytest.mark.asyncio
    async def test_cancel_keeps_delegation(self, harness) -> None:
        await enter_employee_view(harness)
        await harness.send(ADDRESS, "1")
        responses = await harness.send(ADDRESS, "cancel")

        assert responses[0].text == "Cancelled. Nothing was saved."
        session = await harness.session(ADDRESS)
        assert_outer(session, "S2")
        assert session.inner is None

    @pytest.mark.asyncio
    async def test_inner_exception_resets_inner_only(self, harness, monkeypatch) -> None:
        await enter_employee_view(harness)
        await harness.send(ADDRESS, "1")

        async def boom(state, event, ctx):
            raise RuntimeError("flow blew up")

        router = harness.engine._dispatcher.router_for(Role.EMPLOYEE)
        monkeypatch.setattr(router, "handle", boom)
        responses = await harness.send(ADDRESS, "inspection")

        assert responses[0].text == INNER_FAILURE_MESSAGE
        session = await harness.session(ADDRESS)
        assert_outer(session, "S2")
        assert session.inner is None

    @pytest.mark.asyncio
    async def test_corrupted_inner_state_resets_inner(self, harness) -> None:
        await enter_employee_view(harness)
        session = await harness.session(ADDRESS)
        session.inner = FlowState(intent="activity_logging", step="no_such_step")
        await harness.store.save(session)

        responses = await harness.send(ADDRESS, "hello")

        session = await harness.session(ADDRESS)
        assert_outer(session, "S2")
        assert session.inner is None
        assert responses[-1].kind is ResponseKind.PROMPT


class TestExitDelegation:
    """Tests for leaving a delegated view."""

    @pytest.mark.asyncio
    async def test_exit_clears_transient_site(self, harness) -> None:
        await enter_employee_view(harness)
        await harness.send(ADDRESS, "1")
        responses = await harness.send(ADDRESS, "exit")

        assert responses[0].text == "Back to your own menu."
        assert responses[-1].text.startswith("Admin menu")
        session = await harness.session(ADDRESS)
        assert session.context == SessionContext()
        assert session.inner is None
        assert session.flow.is_idle

    @pytest.mark.asyncio
    async def test_exit_keeps_preexisting_site(self, harness) -> None:
        site = SiteContext(site_id="S1", site_name="Site S1")
        await harness.store.save(
            Session(address=ADDRESS, context=SessionContext(site=site, site_selection_shown=True))
        )

        await harness.send(ADDRESS, "employee view")
        assert (await harness.session(ADDRESS)).step == ACTIVE

        await harness.send(ADDRESS, "admin")
        session = await harness.session(ADDRESS)
        assert session.context.site == site
        assert not session.context.is_delegated

    @pytest.mark.asyncio
    async def test_exit_after_inner_site_change_restores_own_site(self, harness) -> None:
        """Should give the administrator back their own site after changing site in the employee view."""
        site = SiteContext(site_id="S1", site_name="Site S1")
        await harness.store.save(
            Session(address=ADDRESS, context=SessionContext(site=site, site_selection_shown=True))
        )
        await harness.send(ADDRESS, "employee view")

        await harness.send(ADDRESS, "change site")
        responses = await harness.send(ADDRESS, "S2")
        assert responses[0].text == "Working on site: Site S2"
        assert_outer(await harness.session(ADDRESS), "S2")

        await harness.send(ADDRESS, "exit")
        session = await harness.session(ADDRESS)
        assert session.context == SessionContext(site=site, site_selection_shown=True)

    @pytest.mark.asyncio
    async def test_exit_while_selecting_site(self, harness) -> None:
        await harness.send(ADDRESS, "employee view")
        await harness.send(ADDRESS, "exit")

        assert not (await harness.session(ADDRESS)).context.is_delegated


class TestRecovery:
    """Tests for damaged delegation state."""

    @pytest.mark.asyncio
    async def test_corrupted_outer_step_rechecks_preconditions(self, harness) -> None:
        await harness.store.save(
            Session(
                address=ADDRESS,
                intent=DELEGATION_INTENT,
                step="bogus",
                context=SessionContext(is_delegated=True, original_role=Role.ADMIN, acting_as=Role.EMPLOYEE),
            )
        )

        responses = await harness.send(ADDRESS, "hello")

        assert (await harness.session(ADDRESS)).step == SELECTING_TARGET
        assert len(responses[-1].options) == 2

    @pytest.mark.asyncio
    async def test_incomplete_markers_end_delegation(self, harness) -> None:
        await harness.store.save(
            Session(
                address=ADDRESS,
                intent=DELEGATION_INTENT,
                step=ACTIVE,
                context=SessionContext(is_delegated=True, original_role=Role.ADMIN),
            )
        )

        responses = await harness.send(ADDRESS, "hello")

        session = await harness.session(ADDRESS)
        assert not session.context.is_delegated
        assert session.flow.is_idle
        assert responses[-1].text.startswith("Admin menu")

    @pytest.mark.asyncio
    async def test_non_privileged_identity_loses_markers(self, harness) -> None:
        employee = IdentityFactory.employee()
        await harness.store.save(
            Session(
                address=employee.address,
                intent=DELEGATION_INTENT,
                step=ACTIVE,
                context=SessionContext(is_delegated=True, original_role=Role.ADMIN, acting_as=Role.CUSTOMER),
            )
        )

        await harness.send(employee.address, "hello")

        session = await harness.session(employee.address)
        assert not session.context.is_delegated
        assert session.context.acting_as is None
