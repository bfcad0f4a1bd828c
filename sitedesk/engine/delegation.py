"""Delegated runs: a privileged identity using another role's menu and flows.

The outer (privileged) session keeps its own markers and site while the
delegated role's flow state lives in ``Session.inner``. Every event goes
through the same cycle: rebuild a DelegationFrame from the session, run
the delegated router on a copy, and write the result back with
``DelegationFrame.restore``. A failing inner run never touches the
stored session.
"""

from collections.abc import Mapping

from sitedesk.conversation.models import FlowState, InboundEvent, Response, Session
from sitedesk.db.errors import StoreError
from sitedesk.engine.context import FlowContext, RouteResult, Services
from sitedesk.engine.errors import CorruptedSessionError, DelegationError
from sitedesk.engine.frame import (
    ACTIVE,
    DELEGATION_INTENT,
    SELECTING_TARGET,
    DelegationFrame,
    begin_delegation,
    end_delegation,
)
from sitedesk.identity.models import Identity, Role
from sitedesk.observability.logging import get_logger
from sitedesk.observability.metrics import CORRUPTED_SESSIONS, DELEGATION_TRANSITIONS
from sitedesk.roles.base import RoleRouter
from sitedesk.sites.resolver import DIRECTORY_ERROR_MESSAGE, SiteResolutionStatus, selection_prompt
from sitedesk.sites.scope import SiteScope

logger = get_logger(__name__)

INNER_FAILURE_MESSAGE = "Sorry, something went wrong. Please try again or type 'exit' to leave this view."


class DelegationManager:
    """Runs delegated roles on behalf of a privileged identity.

    States, kept on the outer session:

    - idle: ``context.is_delegated`` is false; nothing here runs
    - selecting target: step ``select_site``; only the delegated role's
      site precondition runs, writing to the outer context
    - active: step ``active``; events go to the delegated role's router
      with ``Session.inner`` as its flow state
    """

    def __init__(self, routers: Mapping[Role, RoleRouter], services: Services) -> None:
        self._routers = routers
        self._services = services

    @property
    def exit_keywords(self) -> list[str]:
        return self._services.settings.delegation_exit_keywords

    def _router(self, role: Role) -> RoleRouter:
        router = self._routers.get(role)
        if router is None or role.is_privileged:
            raise DelegationError(f"Cannot delegate into role {role.value!r}")
        return router

    def _scope(self, session: Session) -> SiteScope:
        return SiteScope(session.context, transient=True)

    def _inner_context(self, identity: Identity, session: Session, frame: DelegationFrame) -> FlowContext:
        return FlowContext(
            identity=identity.acting_as(frame.acting_as),
            site=self._scope(session),
            services=self._services,
            frame=frame,
            principal=identity,
        )

    def _transition(self, transition: str, acting_as: Role) -> None:
        DELEGATION_TRANSITIONS.labels(transition=transition, acting_as=acting_as.value).inc()

    async def begin(self, session: Session, identity: Identity, acting_as: Role) -> RouteResult:
        """Enter a delegation requested from the privileged menu."""
        if not identity.role.is_privileged:
            raise DelegationError(f"Role {identity.role.value!r} cannot delegate")
        self._router(acting_as)

        frame = begin_delegation(session, identity.role, acting_as)
        self._transition("begin", acting_as)
        logger.info("delegation_started", acting_as=acting_as.value)

        result = await self._preconditions(session, identity, frame)
        result.responses.insert(
            0,
            Response.message(f"You are now using the {acting_as.value} view. Type 'exit' to return."),
        )
        return result

    async def handle(self, session: Session, identity: Identity, event: InboundEvent) -> RouteResult:
        """Handle an event for a session that is delegating."""
        try:
            frame = DelegationFrame.from_session(session)
            self._router(frame.acting_as)
        except DelegationError as e:
            logger.warning("delegation_markers_invalid", error=str(e))
            CORRUPTED_SESSIONS.labels(scope="outer").inc()
            end_delegation(session)
            return self._home(session, identity, [])

        if event.value in self.exit_keywords:
            return self.exit(session, identity, frame)

        if session.intent == DELEGATION_INTENT and session.step == SELECTING_TARGET:
            return await self._select_site(session, identity, frame, event)
        if session.intent == DELEGATION_INTENT and session.step == ACTIVE:
            return await self._run_inner(session, identity, frame, event)

        logger.warning("delegation_step_corrupted", intent=session.intent, step=session.step)
        CORRUPTED_SESSIONS.labels(scope="outer").inc()
        return await self._preconditions(session, identity, frame)

    def exit(self, session: Session, identity: Identity, frame: DelegationFrame) -> RouteResult:
        end_delegation(session)
        self._transition("exit", frame.acting_as)
        logger.info("delegation_ended", acting_as=frame.acting_as.value)
        return self._home(session, identity, [Response.confirmation("Back to your own menu.")])

    def _home(self, session: Session, identity: Identity, responses: list[Response]) -> RouteResult:
        router = self._routers[identity.role]
        ctx = FlowContext(identity=identity, site=SiteScope(session.context), services=self._services)
        return RouteResult(session=session, responses=[*responses, router.menu_prompt(ctx)])

    async def _preconditions(self, session: Session, identity: Identity, frame: DelegationFrame) -> RouteResult:
        """Satisfy the delegated role's site precondition, or activate."""
        router = self._router(frame.acting_as)
        inner_ctx = self._inner_context(identity, session, frame)
        notes: list[Response] = []

        if router.requires_site and inner_ctx.site.current is None:
            resolution = await self._services.sites.resolve(identity, inner_ctx.site)
            if resolution.status is SiteResolutionStatus.NEEDS_SELECTION:
                frame.restore(session, FlowState.idle(), step=SELECTING_TARGET)
                return RouteResult(session=session, responses=resolution.responses)
            if resolution.status is SiteResolutionStatus.ERROR:
                frame.restore(session, FlowState.idle(), step=SELECTING_TARGET)
                return RouteResult(session=session, responses=resolution.responses)
            if not resolution.ready:
                end_delegation(session)
                self._transition("unavailable", frame.acting_as)
                return self._home(session, identity, resolution.responses)
            self._transition("site_selected", frame.acting_as)
            notes.extend(resolution.responses)

        return self._activate(session, frame, inner_ctx, router, notes)

    def _activate(
        self,
        session: Session,
        frame: DelegationFrame,
        inner_ctx: FlowContext,
        router: RoleRouter,
        notes: list[Response],
    ) -> RouteResult:
        frame.restore(session, FlowState.idle(), step=ACTIVE)
        self._transition("active", frame.acting_as)
        return RouteResult(session=session, responses=[*notes, router.menu_prompt(inner_ctx)])

    async def _select_site(
        self,
        session: Session,
        identity: Identity,
        frame: DelegationFrame,
        event: InboundEvent,
    ) -> RouteResult:
        router = self._router(frame.acting_as)
        inner_ctx = self._inner_context(identity, session, frame)
        resolver = self._services.sites

        try:
            sites = await resolver.eligible_sites(identity)
        except StoreError as e:
            logger.error("site_directory_unavailable", error=str(e))
            return RouteResult(session=session, responses=[Response.error(DIRECTORY_ERROR_MESSAGE)])

        if not sites:
            end_delegation(session)
            self._transition("unavailable", frame.acting_as)
            return self._home(session, identity, [Response.error("There are no active sites to work on.")])

        site = await resolver.choose(identity, inner_ctx.site, event.payload, sites=sites)
        if site is None:
            return RouteResult(
                session=session,
                responses=[selection_prompt(sites).with_hint("Please choose one of the listed sites.")],
            )

        self._transition("site_selected", frame.acting_as)
        return self._activate(
            session,
            frame,
            inner_ctx,
            router,
            [Response.confirmation(f"Working on site: {site.site_name}")],
        )

    async def _run_inner(
        self,
        session: Session,
        identity: Identity,
        frame: DelegationFrame,
        event: InboundEvent,
    ) -> RouteResult:
        router = self._router(frame.acting_as)
        working = session.model_copy(deep=True)
        inner_ctx = self._inner_context(identity, working, frame)

        try:
            outcome = await router.handle(frame.inner, event, inner_ctx)
        except CorruptedSessionError as e:
            logger.warning("delegated_state_corrupted", intent=e.intent, step=e.step)
            CORRUPTED_SESSIONS.labels(scope="inner").inc()
            frame.restore(session, FlowState.idle())
            ctx = self._inner_context(identity, session, frame)
            return RouteResult(session=session, responses=[router.menu_prompt(ctx)])
        except Exception:
            logger.exception("delegated_flow_failed", acting_as=frame.acting_as.value, intent=frame.inner.intent)
            self._transition("error", frame.acting_as)
            frame.restore(session, FlowState.idle())
            ctx = self._inner_context(identity, session, frame)
            return RouteResult(
                session=session,
                responses=[Response.error(INNER_FAILURE_MESSAGE), router.menu_prompt(ctx)],
            )

        if outcome.delegate_to is not None:
            logger.warning("nested_delegation_ignored", acting_as=frame.acting_as.value)

        frame.restore(working, outcome.state)
        if outcome.completed:
            self._transition("inner_completed", frame.acting_as)
        logger.info(
            "delegated_event_handled",
            acting_as=frame.acting_as.value,
            intent=outcome.state.intent,
            step=outcome.state.step,
            completed=outcome.completed,
        )
        return RouteResult(session=working, responses=outcome.responses)
