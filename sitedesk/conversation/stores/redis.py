"""Redis implementation of SessionStore.

One JSON document per address with a sliding TTL, refreshed on every write.

Key structure:
- {prefix}:session:{address}
"""

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError

from sitedesk.config.models.storage import RedisSessionConfig
from sitedesk.conversation.models import Session, SessionPatch
from sitedesk.conversation.store import SessionStore
from sitedesk.db.errors import ConnectionError, ValidationError
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


class RedisSessionStore(SessionStore):
    """Redis-backed SessionStore."""

    def __init__(
        self,
        client: redis.Redis,
        config: RedisSessionConfig | None = None,
    ) -> None:
        """Initialize Redis session store.

        Args:
            client: Redis client instance (decode_responses=True)
            config: Redis session configuration (uses defaults if not provided)
        """
        self._client = client
        self._config = config or RedisSessionConfig()
        self._prefix = self._config.key_prefix

    def _key(self, address: str) -> str:
        return f"{self._prefix}:session:{address}"

    def _deserialize(self, address: str, raw: str) -> Session:
        try:
            return Session.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error("session_decode_error", address=address, error=str(e))
            raise ValidationError(f"Stored session is malformed: {e}", cause=e) from e

    async def get(self, address: str) -> Session | None:
        try:
            raw = await self._client.get(self._key(address))
        except redis.RedisError as e:
            logger.error("redis_get_error", address=address, error=str(e))
            raise ConnectionError(f"Failed to get session: {e}", cause=e) from e

        if raw is None:
            logger.debug("session_not_found", address=address)
            return None
        return self._deserialize(address, raw)

    async def save(self, session: Session) -> Session:
        session.touch()
        try:
            await self._client.set(
                self._key(session.address),
                session.model_dump_json(),
                ex=self._config.session_ttl_seconds,
            )
        except redis.RedisError as e:
            logger.error("session_save_error", address=session.address, error=str(e))
            raise ConnectionError(f"Failed to save session: {e}", cause=e) from e

        logger.debug("session_saved", address=session.address, intent=session.intent)
        return session

    async def _current(self, address: str) -> Session:
        """The stored session for a write, starting over if it is unreadable."""
        try:
            return await self.get(address) or Session(address=address)
        except ValidationError:
            return Session(address=address)

    async def upsert(self, address: str, patch: SessionPatch) -> Session:
        session = await self._current(address)
        session.apply_patch(patch)
        return await self.save(session)

    async def clear(self, address: str) -> Session:
        session = await self._current(address)
        session.clear()
        return await self.save(session)
