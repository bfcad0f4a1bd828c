"""SessionStore abstract interface."""

from abc import ABC, abstractmethod

from sitedesk.conversation.models import Session, SessionPatch


class SessionStore(ABC):
    """Abstract interface for per-address session storage.

    Stores do not serialize concurrent writers themselves; the engine
    holds an address lock around every read-modify-write.
    """

    @abstractmethod
    async def get(self, address: str) -> Session | None:
        """Get the session for an address, or None if absent or expired."""
        pass

    @abstractmethod
    async def save(self, session: Session) -> Session:
        """Write the whole session, refreshing updated_at."""
        pass

    @abstractmethod
    async def upsert(self, address: str, patch: SessionPatch) -> Session:
        """Create or partially update a session.

        ``data`` and ``context`` are merged into the stored values;
        ``intent``, ``step`` and ``inner`` are replaced when set.
        """
        pass

    @abstractmethod
    async def clear(self, address: str) -> Session:
        """Reset a session to intent=None, step=None, data={}."""
        pass
