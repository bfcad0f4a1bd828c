"""Customer main menu."""

from sitedesk.conversation.models import FlowState, InboundEvent, Response
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.flows import BOOKING, CUSTOMER_INQUIRY, FlowRegistry, Wizard
from sitedesk.identity.models import Role
from sitedesk.roles.base import Menu, MenuEntry, RoleRouter

GREETINGS = frozenset({"hi", "hello", "hey", "start", "menu"})

PROJECT_INFO = (
    "Welcome! We build and lease workspaces for studios, offices and small businesses. "
    "Tell us what you need and we'll get back to you, or book a site visit."
)

CUSTOMER_MENU = Menu(
    "How can we help?",
    [
        MenuEntry(CUSTOMER_INQUIRY.intent, CUSTOMER_INQUIRY.title, aliases=("inquiry", "enquiry", "interested", "yes")),
        MenuEntry(BOOKING.intent, BOOKING.title, aliases=("book", "visit", "book_a_visit")),
    ],
)


class CustomerRouter(RoleRouter):
    """Customers can enquire or book a visit; no site is involved."""

    role = Role.CUSTOMER

    def __init__(self, registry: FlowRegistry | None = None) -> None:
        super().__init__(registry or FlowRegistry([Wizard(CUSTOMER_INQUIRY), Wizard(BOOKING)]))

    def menu(self, ctx: FlowContext) -> Menu:
        return CUSTOMER_MENU

    async def handle_menu(self, event: InboundEvent, ctx: FlowContext) -> Outcome:
        idle = FlowState.idle()
        if event.value in GREETINGS:
            return Outcome(state=idle, responses=[Response.message(PROJECT_INFO), CUSTOMER_MENU.prompt()])
        if event.value == "help":
            return Outcome(
                state=idle,
                responses=[CUSTOMER_MENU.prompt("Reply with a number, or type 'cancel' to stop at any time.")],
            )

        entry = CUSTOMER_MENU.match(event.payload)
        if entry is None:
            return Outcome(state=idle, responses=[CUSTOMER_MENU.prompt()])
        return await self.start_flow(entry.id, ctx)
