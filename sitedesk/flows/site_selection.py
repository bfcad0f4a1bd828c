"""Site selection as a resumable step.

Entered when a flow needs a site and the identity has several to choose
from. Once a valid choice is stored, the flow that asked for it (if any)
is handed back to the caller as a follow-up.
"""

from typing import Any

from sitedesk.conversation.models import FlowState, InboundEvent, Response
from sitedesk.db.errors import StoreError
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.engine.errors import CorruptedSessionError
from sitedesk.observability.logging import get_logger
from sitedesk.sites.resolver import (
    DIRECTORY_ERROR_MESSAGE,
    SiteResolutionStatus,
    selection_prompt,
)

logger = get_logger(__name__)

INTENT = "site_selection"
CHOOSE_SITE = "choose_site"
PENDING_INTENT_KEY = "pending_intent"


def awaiting_site(pending_intent: str | None) -> FlowState:
    return FlowState(intent=INTENT, step=CHOOSE_SITE, data={PENDING_INTENT_KEY: pending_intent})


class SiteSelectionFlow:
    """Asks which site the conversation is about.

    Starting it forgets the current site, so it doubles as "change site".
    """

    intent = INTENT
    title = "Change site"
    requires_site = False

    async def start(self, ctx: FlowContext, seed: dict[str, Any] | None = None) -> Outcome:
        pending = (seed or {}).get(PENDING_INTENT_KEY)
        ctx.site.reset()
        resolution = await ctx.services.sites.resolve(ctx.site_identity, ctx.site)
        if resolution.status is SiteResolutionStatus.NEEDS_SELECTION:
            return Outcome(state=awaiting_site(pending), responses=resolution.responses)
        return Outcome(
            state=FlowState.idle(),
            responses=resolution.responses,
            follow_up=pending if resolution.ready else None,
        )

    async def handle(self, state: FlowState, event: InboundEvent, ctx: FlowContext) -> Outcome:
        if state.step != CHOOSE_SITE:
            raise CorruptedSessionError(state.intent, state.step)

        resolver = ctx.services.sites
        try:
            sites = await resolver.eligible_sites(ctx.site_identity)
        except StoreError as e:
            logger.error("site_directory_unavailable", error=str(e))
            return Outcome(state=state, responses=[Response.error(DIRECTORY_ERROR_MESSAGE)])

        site = await resolver.choose(ctx.site_identity, ctx.site, event.payload, sites=sites)
        if site is None:
            return Outcome(
                state=state,
                responses=[selection_prompt(sites).with_hint("Please choose one of the listed sites.")],
            )
        return Outcome(
            state=FlowState.idle(),
            responses=[Response.confirmation(f"Working on site: {site.site_name}")],
            follow_up=state.data.get(PENDING_INTENT_KEY),
        )
