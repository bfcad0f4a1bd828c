"""Tests for the site selection flow."""

import pytest

from sitedesk.conversation.models import FlowState, InboundEvent, SessionContext
from sitedesk.db.errors import ConnectionError
from sitedesk.engine.context import FlowContext
from sitedesk.engine.errors import CorruptedSessionError
from sitedesk.flows.site_selection import CHOOSE_SITE, INTENT, PENDING_INTENT_KEY, SiteSelectionFlow, awaiting_site
from sitedesk.sites.directory import InMemorySiteDirectory, SiteDirectory
from sitedesk.sites.models import SiteContext
from sitedesk.sites.scope import SiteScope
from tests.factories import IdentityFactory, SiteFactory, make_services

ADDRESS = "+10000000002"


class BrokenDirectory(SiteDirectory):
    async def list_eligible_sites(self, identity):
        raise ConnectionError("directory down")


def make_ctx(directory: SiteDirectory, context: SessionContext | None = None) -> FlowContext:
    return FlowContext(
        identity=IdentityFactory.employee(),
        site=SiteScope(context or SessionContext()),
        services=make_services(directory=directory),
    )


@pytest.fixture
def two_sites():
    return InMemorySiteDirectory([SiteFactory.create("S1", "Alpha"), SiteFactory.create("S2", "Beta")])


class TestSiteSelectionStart:
    """Tests for starting a selection."""

    @pytest.mark.asyncio
    async def test_several_sites_prompt(self, two_sites) -> None:
        outcome = await SiteSelectionFlow().start(make_ctx(two_sites), {PENDING_INTENT_KEY: "inventory"})

        assert outcome.state == awaiting_site("inventory")
        assert [o.id for o in outcome.responses[0].options] == ["S1", "S2"]

    @pytest.mark.asyncio
    async def test_start_forgets_current_site(self, two_sites) -> None:
        """Should drop the selected site so the user can change it."""
        context = SessionContext(site=SiteContext(site_id="S1", site_name="Alpha"), site_selection_shown=True)
        await SiteSelectionFlow().start(make_ctx(two_sites, context))

        assert context.site is None

    @pytest.mark.asyncio
    async def test_single_site_hands_back_pending(self) -> None:
        directory = InMemorySiteDirectory([SiteFactory.create("S1")])
        outcome = await SiteSelectionFlow().start(make_ctx(directory), {PENDING_INTENT_KEY: "inventory"})

        assert outcome.state.is_idle
        assert outcome.follow_up == "inventory"


class TestSiteSelectionHandle:
    """Tests for handling the user's choice."""

    @pytest.mark.asyncio
    async def test_choice_by_number(self, two_sites) -> None:
        context = SessionContext()
        outcome = await SiteSelectionFlow().handle(
            awaiting_site("material_request"), InboundEvent.from_text(ADDRESS, "2"), make_ctx(two_sites, context)
        )

        assert context.site.site_id == "S2"
        assert context.site_is_transient is False
        assert outcome.follow_up == "material_request"
        assert outcome.state.is_idle

    @pytest.mark.asyncio
    async def test_invalid_choice_keeps_waiting(self, two_sites) -> None:
        state = awaiting_site(None)
        outcome = await SiteSelectionFlow().handle(
            state, InboundEvent.from_text(ADDRESS, "Gamma"), make_ctx(two_sites)
        )

        assert outcome.state == state
        assert outcome.responses[0].hint == "Please choose one of the listed sites."

    @pytest.mark.asyncio
    async def test_directory_failure_keeps_state(self) -> None:
        state = awaiting_site(None)
        outcome = await SiteSelectionFlow().handle(
            state, InboundEvent.from_text(ADDRESS, "1"), make_ctx(BrokenDirectory())
        )

        assert outcome.state == state
        assert "could not load your sites" in outcome.responses[0].text

    @pytest.mark.asyncio
    async def test_unknown_step(self, two_sites) -> None:
        with pytest.raises(CorruptedSessionError):
            await SiteSelectionFlow().handle(
                FlowState(intent=INTENT, step="elsewhere"), InboundEvent.from_text(ADDRESS, "1"), make_ctx(two_sites)
            )

    def test_awaiting_state(self) -> None:
        assert awaiting_site("x").step == CHOOSE_SITE
