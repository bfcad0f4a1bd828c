"""Conversation engine: the per-event entry point."""

import time

from sitedesk.conversation.models import InboundEvent, Response, Session
from sitedesk.conversation.store import SessionStore
from sitedesk.db.errors import StoreError, ValidationError
from sitedesk.engine.dispatcher import Dispatcher
from sitedesk.engine.mutex import LocalSessionMutex, SessionMutex
from sitedesk.identity.models import Identity, Role
from sitedesk.identity.resolver import IdentityResolver
from sitedesk.observability.logging import bind_event_context, clear_event_context, get_logger
from sitedesk.observability.metrics import (
    CORRUPTED_SESSIONS,
    EVENT_LATENCY,
    EVENTS_PROCESSED,
    SESSION_STORE_FALLBACKS,
)

logger = get_logger(__name__)

BUSY_MESSAGE = "We're still working on your previous message. Please try again in a moment."


class ConversationEngine:
    """Handles one inbound event end to end.

    Lock the address, resolve the identity, load the session, route the
    event, commit the session, release. Storage failures never escape:
    a failed load runs the event on a fresh transient session and a
    failed save is logged.
    """

    def __init__(
        self,
        store: SessionStore,
        identities: IdentityResolver,
        dispatcher: Dispatcher,
        mutex: SessionMutex | None = None,
    ) -> None:
        self._store = store
        self._identities = identities
        self._dispatcher = dispatcher
        self._mutex = mutex or LocalSessionMutex()

    async def handle(self, event: InboundEvent) -> list[Response]:
        """Process one event and return the ordered responses."""
        start = time.perf_counter()
        bind_event_context(address=event.address, event_kind=event.kind.value)
        try:
            async with self._mutex.acquire(event.address) as acquired:
                if not acquired:
                    EVENTS_PROCESSED.labels(role="unknown", outcome="busy").inc()
                    return [Response.message(BUSY_MESSAGE)]

                identity = await self._resolve_identity(event.address)
                bind_event_context(role=identity.role.value)

                session, durable = await self._load(event.address)
                result = await self._dispatcher.route(identity, session, event)
                if durable:
                    await self._save(result.session)

                EVENTS_PROCESSED.labels(role=identity.role.value, outcome="ok").inc()
                EVENT_LATENCY.labels(role=identity.role.value).observe(time.perf_counter() - start)
                logger.info(
                    "event_handled",
                    intent=result.session.intent,
                    step=result.session.step,
                    delegated=result.session.context.is_delegated,
                    responses=len(result.responses),
                )
                return result.responses
        finally:
            clear_event_context()

    async def _resolve_identity(self, address: str) -> Identity:
        try:
            return await self._identities.resolve(address)
        except StoreError as e:
            logger.error("identity_resolution_failed", error=str(e))
            return Identity(address=address, role=Role.CUSTOMER)

    async def _load(self, address: str) -> tuple[Session, bool]:
        """Load the session, or a fresh one.

        Returns the session and whether it may be written back. A session
        created because the store failed is transient for this event. A
        stored session that cannot be decoded is replaced by a fresh one,
        which is saved over it at the end of the event.
        """
        try:
            session = await self._store.get(address)
        except ValidationError as e:
            logger.warning("stored_session_unreadable", error=str(e))
            CORRUPTED_SESSIONS.labels(scope="stored").inc()
            return Session(address=address), True
        except StoreError as e:
            logger.error("session_load_failed", error=str(e))
            SESSION_STORE_FALLBACKS.labels(operation="load").inc()
            return Session(address=address), False
        if session is None:
            logger.debug("session_created")
            return Session(address=address), True
        return session, True

    async def _save(self, session: Session) -> None:
        try:
            await self._store.save(session)
        except StoreError as e:
            logger.error("session_save_failed", error=str(e))
            SESSION_STORE_FALLBACKS.labels(operation="save").inc()
