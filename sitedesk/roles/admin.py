"""Administrator main menu."""

from sitedesk.conversation.models import FlowState, InboundEvent, Response
from sitedesk.db.errors import StoreError
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.flows import INVOICE_TRACKING, FlowRegistry, Wizard
from sitedesk.identity.models import Role
from sitedesk.observability.logging import get_logger
from sitedesk.roles.base import Menu, MenuEntry, RoleRouter

logger = get_logger(__name__)

CUSTOMER_VIEW = "customer_view"
EMPLOYEE_VIEW = "employee_view"
DASHBOARD = "dashboard"
RESET_SESSION = "reset_session"

ADMIN_MENU = Menu(
    "Admin menu. What would you like to do?",
    [
        MenuEntry(CUSTOMER_VIEW, "Customer view", aliases=("customer",)),
        MenuEntry(EMPLOYEE_VIEW, "Employee view", aliases=("employee",)),
        MenuEntry(INVOICE_TRACKING.intent, INVOICE_TRACKING.title, aliases=("invoice",)),
        MenuEntry(DASHBOARD, "Dashboard"),
        MenuEntry(RESET_SESSION, "Reset session", aliases=("reset",)),
    ],
)


class AdminRouter(RoleRouter):
    """Admin menu: delegation into other roles plus admin-only flows."""

    role = Role.ADMIN

    def __init__(self, registry: FlowRegistry | None = None) -> None:
        super().__init__(registry or FlowRegistry([Wizard(INVOICE_TRACKING)]))

    def menu(self, ctx: FlowContext) -> Menu:
        return ADMIN_MENU

    async def handle_menu(self, event: InboundEvent, ctx: FlowContext) -> Outcome:
        idle = FlowState.idle()
        if event.value == "help":
            return Outcome(state=idle, responses=[self._help()])

        entry = ADMIN_MENU.match(event.payload)
        if entry is None:
            name = ctx.identity.display_name or "Admin"
            return Outcome(state=idle, responses=[ADMIN_MENU.prompt(f"Hello {name}! What would you like to do?")])

        if entry.id == CUSTOMER_VIEW:
            return Outcome(state=idle, responses=[], delegate_to=Role.CUSTOMER)
        if entry.id == EMPLOYEE_VIEW:
            return Outcome(state=idle, responses=[], delegate_to=Role.EMPLOYEE)
        if entry.id == DASHBOARD:
            return Outcome(state=idle, responses=[await self._dashboard(ctx)])
        if entry.id == RESET_SESSION:
            ctx.site.reset()
            logger.info("admin_session_reset")
            return Outcome(state=idle, responses=[Response.confirmation("Session reset.")])
        return await self.start_flow(entry.id, ctx)

    async def _dashboard(self, ctx: FlowContext) -> Response:
        try:
            counts = await ctx.services.records.count_by_type()
        except StoreError as e:
            logger.error("dashboard_unavailable", error=str(e))
            return Response.error("Sorry, the dashboard is unavailable right now.")
        if not counts:
            return Response.message("No records yet.")
        lines = [f"{record_type.value}: {count}" for record_type, count in sorted(counts.items())]
        return Response.message("Records so far:\n" + "\n".join(lines))

    def _help(self) -> Response:
        return ADMIN_MENU.prompt(
            "Pick a view to act as an employee or customer, or track an invoice. "
            "Type 'exit' at any time to leave a view."
        )
