"""In-memory implementation of SessionStore."""

from datetime import timedelta

from sitedesk.conversation.models import Session, SessionPatch, utc_now
from sitedesk.conversation.store import SessionStore
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


class InMemorySessionStore(SessionStore):
    """In-memory SessionStore for testing and development.

    Sessions idle for longer than ``ttl_seconds`` are discarded on read.
    Copies go in and out so callers never share a live object with the store.
    """

    def __init__(self, ttl_seconds: int | None = 86400) -> None:
        self._sessions: dict[str, Session] = {}
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None

    def _expired(self, session: Session) -> bool:
        return self._ttl is not None and utc_now() - session.updated_at > self._ttl

    def _load(self, address: str) -> Session | None:
        session = self._sessions.get(address)
        if session is None:
            return None
        if self._expired(session):
            del self._sessions[address]
            logger.info("session_expired", address=address)
            return None
        return session

    async def get(self, address: str) -> Session | None:
        session = self._load(address)
        return session.model_copy(deep=True) if session else None

    async def save(self, session: Session) -> Session:
        session.touch()
        self._sessions[session.address] = session.model_copy(deep=True)
        return session

    async def upsert(self, address: str, patch: SessionPatch) -> Session:
        session = self._load(address) or Session(address=address)
        session = session.model_copy(deep=True)
        session.apply_patch(patch)
        return await self.save(session)

    async def clear(self, address: str) -> Session:
        session = self._load(address) or Session(address=address)
        session = session.model_copy(deep=True)
        session.clear()
        return await self.save(session)

    def __len__(self) -> int:
        return len(self._sessions)
