"""Routes an inbound event to delegation, a role menu or the active flow."""

from collections.abc import Mapping

from sitedesk.conversation.models import FlowState, InboundEvent, Session
from sitedesk.engine.context import FlowContext, RouteResult, Services
from sitedesk.engine.delegation import DelegationManager
from sitedesk.engine.errors import CorruptedSessionError, DelegationError
from sitedesk.engine.frame import end_delegation
from sitedesk.identity.models import Identity, Role
from sitedesk.observability.logging import get_logger
from sitedesk.observability.metrics import CORRUPTED_SESSIONS
from sitedesk.roles.base import RoleRouter
from sitedesk.sites.scope import SiteScope

logger = get_logger(__name__)


class Dispatcher:
    """Decides who handles an event.

    1. A privileged identity with a delegating session goes to the
       DelegationManager.
    2. Otherwise the identity's role router gets the session's flow
       state: an active flow continues, an idle one shows the menu.

    A session whose flow state cannot be resumed is reset to the menu
    without surfacing an error.
    """

    def __init__(
        self,
        routers: Mapping[Role, RoleRouter],
        services: Services,
        delegation: DelegationManager | None = None,
    ) -> None:
        self._routers = routers
        self._services = services
        self._delegation = delegation or DelegationManager(routers, services)

    def router_for(self, role: Role) -> RoleRouter:
        return self._routers[role]

    async def route(self, identity: Identity, session: Session, event: InboundEvent) -> RouteResult:
        if session.context.is_delegated:
            if identity.role.is_privileged:
                return await self._delegation.handle(session, identity, event)
            logger.warning("delegation_markers_dropped", role=identity.role.value)
            end_delegation(session)

        router = self.router_for(identity.role)
        ctx = FlowContext(identity=identity, site=SiteScope(session.context), services=self._services)

        flow = session.flow
        if flow.is_corrupted or (flow.intent is not None and flow.intent not in router.registry):
            return self._reset(session, router, ctx, flow)

        try:
            outcome = await router.handle(flow, event, ctx)
        except CorruptedSessionError:
            return self._reset(session, router, ctx, flow)

        session.apply_flow(outcome.state)
        responses = list(outcome.responses)

        if outcome.delegate_to is not None:
            try:
                delegated = await self._delegation.begin(session, identity, outcome.delegate_to)
            except DelegationError as e:
                logger.warning("delegation_refused", error=str(e))
                end_delegation(session)
                return RouteResult(session=session, responses=[*responses, router.menu_prompt(ctx)])
            return RouteResult(session=delegated.session, responses=[*responses, *delegated.responses])

        return RouteResult(session=session, responses=responses)

    def _reset(self, session: Session, router: RoleRouter, ctx: FlowContext, flow: FlowState) -> RouteResult:
        logger.warning("session_state_corrupted", intent=flow.intent, step=flow.step)
        CORRUPTED_SESSIONS.labels(scope="session").inc()
        session.reset_flow()
        return RouteResult(session=session, responses=[router.menu_prompt(ctx)])
