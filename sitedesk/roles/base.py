"""Role router base class and menu matching."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sitedesk.conversation.models import FlowState, InboundEvent, Option, Response, ResponseKind
from sitedesk.engine.context import FlowContext, Outcome
from sitedesk.engine.errors import CorruptedSessionError
from sitedesk.flows.base import FlowRegistry
from sitedesk.flows.site_selection import awaiting_site
from sitedesk.identity.models import Role
from sitedesk.observability.logging import get_logger
from sitedesk.sites.resolver import SiteResolutionStatus

logger = get_logger(__name__)

_START_PREFIX = re.compile(r"^(start|begin|new)\s+")
_SPACES = re.compile(r"[\s\-]+")

MAX_FOLLOW_UPS = 3


def normalize_choice(value: str) -> str:
    """Lower-case, drop a leading verb and join words with underscores."""
    value = _START_PREFIX.sub("", value.strip().lower())
    return _SPACES.sub("_", value)


@dataclass(frozen=True)
class MenuEntry:
    """One main-menu choice."""

    id: str
    title: str
    aliases: tuple[str, ...] = ()


class Menu:
    """A numbered list of choices.

    A reply matches an entry by its number, id, title or alias, so
    "2", "material_request" and "start material request" are equivalent.
    """

    def __init__(self, heading: str, entries: list[MenuEntry]) -> None:
        self.heading = heading
        self.entries = entries

    def match(self, value: str) -> MenuEntry | None:
        choice = normalize_choice(value)
        if not choice:
            return None
        if choice.isdigit():
            index = int(choice)
            return self.entries[index - 1] if 1 <= index <= len(self.entries) else None
        for entry in self.entries:
            if choice == entry.id or choice == normalize_choice(entry.title) or choice in entry.aliases:
                return entry
        return None

    def prompt(self, heading: str | None = None) -> Response:
        lines = [f"{index}. {entry.title}" for index, entry in enumerate(self.entries, start=1)]
        return Response.prompt(
            f"{heading or self.heading}\n" + "\n".join(lines),
            [Option(id=entry.id, title=entry.title) for entry in self.entries],
        )


class RoleRouter(ABC):
    """Routes one role's events to its menu or its active flow.

    Routers only ever see the flow-local FlowState; everything persistent
    is reached through the FlowContext.
    """

    role: Role
    requires_site: bool = False

    def __init__(self, registry: FlowRegistry) -> None:
        self.registry = registry

    @abstractmethod
    def menu(self, ctx: FlowContext) -> Menu:
        """The main menu offered in this context."""

    @abstractmethod
    async def handle_menu(self, event: InboundEvent, ctx: FlowContext) -> Outcome:
        """Handle an event while no flow is active."""

    def menu_prompt(self, ctx: FlowContext, heading: str | None = None) -> Response:
        return self.menu(ctx).prompt(heading)

    async def handle(self, state: FlowState, event: InboundEvent, ctx: FlowContext) -> Outcome:
        """Handle one event against this role's flow state.

        Raises:
            CorruptedSessionError: If the state cannot be resumed
        """
        if state.is_corrupted:
            raise CorruptedSessionError(state.intent, state.step)

        if state.intent is None:
            outcome = await self.handle_menu(event, ctx)
        else:
            handler = self.registry.get(state.intent)
            if handler is None:
                raise CorruptedSessionError(state.intent, state.step)
            if ctx.is_cancel(event.value):
                logger.info("flow_cancelled", intent=state.intent, step=state.step)
                outcome = Outcome(
                    state=FlowState.idle(),
                    responses=[Response.message("Cancelled. Nothing was saved.")],
                )
            else:
                outcome = await handler.handle(state, event, ctx)

        return await self.finish(outcome, ctx)

    async def start_flow(self, intent: str, ctx: FlowContext, notes: list[Response] | None = None) -> Outcome:
        """Start a flow, resolving the site first when the flow needs one."""
        notes = list(notes or [])
        handler = self.registry.get(intent)
        if handler is None:
            logger.warning("unknown_flow_requested", intent=intent, role=self.role.value)
            return Outcome(state=FlowState.idle(), responses=notes)

        if handler.requires_site and ctx.site.current is None:
            resolution = await ctx.services.sites.resolve(ctx.site_identity, ctx.site)
            if resolution.status is SiteResolutionStatus.NEEDS_SELECTION:
                return Outcome(state=awaiting_site(intent), responses=[*notes, *resolution.responses])
            if not resolution.ready:
                return Outcome(state=FlowState.idle(), responses=[*notes, *resolution.responses])
            notes.extend(resolution.responses)

        started = await handler.start(ctx)
        started.responses = [*notes, *started.responses]
        return started

    async def finish(self, outcome: Outcome, ctx: FlowContext) -> Outcome:
        """Start any follow-up flow and re-offer the menu once idle."""
        for _ in range(MAX_FOLLOW_UPS):
            if outcome.follow_up is None:
                break
            started = await self.start_flow(outcome.follow_up, ctx, notes=outcome.responses)
            started.completed = started.completed or outcome.completed
            started.record_id = started.record_id or outcome.record_id
            outcome = started

        if outcome.state.intent is None and outcome.delegate_to is None:
            last = outcome.responses[-1] if outcome.responses else None
            if last is None or last.kind is not ResponseKind.PROMPT:
                outcome.responses.append(self.menu_prompt(ctx))
        return outcome
