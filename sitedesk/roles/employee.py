"""Employee main menu, behind verification and a site precondition."""

from abc import ABC, abstractmethod

from sitedesk.conversation.models import FlowState, InboundEvent, Response
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.flows import ACTIVITY_LOGGING, INVENTORY, MATERIAL_REQUEST, FlowRegistry, SiteSelectionFlow, Wizard
from sitedesk.flows.site_selection import INTENT as SITE_SELECTION
from sitedesk.flows.site_selection import awaiting_site
from sitedesk.identity.models import Identity, Role
from sitedesk.observability.logging import get_logger
from sitedesk.roles.base import Menu, MenuEntry, RoleRouter
from sitedesk.sites.resolver import SiteResolutionStatus

logger = get_logger(__name__)

CHANGE_SITE = "change_site"

UNVERIFIED_MESSAGE = (
    "Your number has not been verified yet. "
    "Please ask an administrator to verify your account."
)


class Verifier(ABC):
    """Gate for employees who have not been verified yet."""

    @abstractmethod
    async def challenge(self, identity: Identity, event: InboundEvent) -> list[Response]:
        """Responses for an unverified employee."""


class NoticeVerifier(Verifier):
    """Tells the employee to contact an administrator."""

    async def challenge(self, identity: Identity, event: InboundEvent) -> list[Response]:
        logger.info("unverified_employee")
        return [Response.error(UNVERIFIED_MESSAGE)]


class EmployeeRouter(RoleRouter):
    """Employee menu.

    Synthetic identities built for a delegation are verified by
    construction, so the verification gate never blocks an admin.
    """

    role = Role.EMPLOYEE
    requires_site = True

    def __init__(self, registry: FlowRegistry | None = None, verifier: Verifier | None = None) -> None:
        super().__init__(
            registry
            or FlowRegistry(
                [
                    Wizard(ACTIVITY_LOGGING),
                    Wizard(MATERIAL_REQUEST),
                    Wizard(INVENTORY),
                    SiteSelectionFlow(),
                ]
            )
        )
        self.verifier = verifier or NoticeVerifier()

    def menu(self, ctx: FlowContext) -> Menu:
        site = ctx.site.current
        heading = f"Site: {site.site_name}. What would you like to do?" if site else "What would you like to do?"
        return Menu(
            heading,
            [
                MenuEntry(ACTIVITY_LOGGING.intent, ACTIVITY_LOGGING.title, aliases=("activity", "log_activity")),
                MenuEntry(MATERIAL_REQUEST.intent, MATERIAL_REQUEST.title, aliases=("material", "materials")),
                MenuEntry(INVENTORY.intent, INVENTORY.title, aliases=("stock",)),
                MenuEntry(CHANGE_SITE, "Change site", aliases=("site", "switch_site")),
            ],
        )

    async def handle(self, state: FlowState, event: InboundEvent, ctx: FlowContext) -> Outcome:
        if not ctx.identity.verified and not ctx.identity.is_synthetic:
            return Outcome(state=FlowState.idle(), responses=await self.verifier.challenge(ctx.identity, event))
        return await super().handle(state, event, ctx)

    async def handle_menu(self, event: InboundEvent, ctx: FlowContext) -> Outcome:
        idle = FlowState.idle()
        menu = self.menu(ctx)
        entry = menu.match(event.payload)

        if entry is not None and entry.id == CHANGE_SITE:
            return await self.start_flow(SITE_SELECTION, ctx)

        pending = entry.id if entry is not None else None
        if ctx.site.current is None:
            resolution = await ctx.services.sites.resolve(ctx.site_identity, ctx.site)
            if resolution.status is SiteResolutionStatus.NEEDS_SELECTION:
                return Outcome(state=awaiting_site(pending), responses=resolution.responses)
            if not resolution.ready:
                return Outcome(state=idle, responses=resolution.responses)
            if pending is None:
                return Outcome(state=idle, responses=[*resolution.responses, self.menu_prompt(ctx)])
            return await self.start_flow(pending, ctx, notes=resolution.responses)

        if event.value == "help":
            return Outcome(
                state=idle,
                responses=[self.menu_prompt(ctx, "Reply with a number. Type 'cancel' to stop a flow at any time.")],
            )
        if entry is None:
            name = ctx.identity.display_name or "there"
            return Outcome(state=idle, responses=[self.menu_prompt(ctx, f"Hi {name}! What would you like to do?")])
        return await self.start_flow(entry.id, ctx)
