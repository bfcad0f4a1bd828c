"""Flow handler protocol, registry and helpers shared by the flows."""

from typing import Any, Protocol

from sitedesk.conversation.models import FlowState, InboundEvent
from sitedesk.engine.context import FlowContext, Outcome


class FlowHandler(Protocol):
    """Anything the role routers can start and feed events to."""

    @property
    def intent(self) -> str: ...

    @property
    def title(self) -> str: ...

    @property
    def requires_site(self) -> bool: ...

    async def start(self, ctx: FlowContext, seed: dict[str, Any] | None = None) -> Outcome: ...

    async def handle(self, state: FlowState, event: InboundEvent, ctx: FlowContext) -> Outcome: ...


class FlowRegistry:
    """Maps intents to their handlers."""

    def __init__(self, handlers: list[FlowHandler] | None = None) -> None:
        self._handlers: dict[str, FlowHandler] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: FlowHandler) -> None:
        if handler.intent in self._handlers:
            raise ValueError(f"Intent already registered: {handler.intent}")
        self._handlers[handler.intent] = handler

    def get(self, intent: str | None) -> FlowHandler | None:
        return self._handlers.get(intent) if intent else None

    def __contains__(self, intent: object) -> bool:
        return intent in self._handlers

    def intents(self) -> list[str]:
        return list(self._handlers)


def actor_fields(ctx: FlowContext) -> dict[str, Any]:
    """Who submitted a record, including the delegating role if any."""
    identity = ctx.identity
    return {
        "submitted_by": identity.user_id or identity.address,
        "submitted_as": identity.role.value,
        "delegated_by": identity.delegated_by.value if identity.delegated_by else None,
    }


def site_fields(ctx: FlowContext) -> dict[str, Any]:
    site = ctx.site.current
    return {
        "site": site.site_id if site else None,
        "site_name": site.site_name if site else None,
    }
