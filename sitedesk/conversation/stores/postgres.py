"""PostgreSQL implementation of SessionStore.

Uses the ``sessions`` table created by migration 001.
"""

import json
from typing import Any

import asyncpg
from pydantic import ValidationError as PydanticValidationError

from sitedesk.conversation.models import FlowState, Session, SessionContext, SessionPatch
from sitedesk.conversation.store import SessionStore
from sitedesk.db.errors import ConnectionError, ValidationError
from sitedesk.db.pool import PostgresPool
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)

_UPSERT_SQL = """
    INSERT INTO sessions (
        address, intent, step, data, context, inner_state, created_at, updated_at
    ) VALUES ($1, $2, $3, $4::jsonb, $5::jsonb, $6::jsonb, $7, $8)
    ON CONFLICT (address) DO UPDATE SET
        intent = EXCLUDED.intent,
        step = EXCLUDED.step,
        data = EXCLUDED.data,
        context = EXCLUDED.context,
        inner_state = EXCLUDED.inner_state,
        updated_at = EXCLUDED.updated_at
"""

_SELECT_SQL = """
    SELECT address, intent, step, data, context, inner_state, created_at, updated_at
    FROM sessions
    WHERE address = $1
"""


class PostgresSessionStore(SessionStore):
    """PostgreSQL-backed SessionStore."""

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    @staticmethod
    def _json(value: Any) -> dict[str, Any]:
        if isinstance(value, str):
            return json.loads(value)
        return dict(value)

    def _row_to_session(self, row: asyncpg.Record) -> Session:
        inner = row["inner_state"]
        try:
            return Session(
                address=row["address"],
                intent=row["intent"],
                step=row["step"],
                data=self._json(row["data"]),
                context=SessionContext.model_validate(self._json(row["context"])),
                inner=FlowState.model_validate(self._json(inner)) if inner is not None else None,
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
        except (PydanticValidationError, ValueError, TypeError) as e:
            logger.error("session_decode_error", address=row["address"], error=str(e))
            raise ValidationError(f"Stored session is malformed: {e}", cause=e) from e

    def _decode_for_write(self, row: asyncpg.Record | None, address: str) -> Session:
        """The locked row as a session, starting over if it is unreadable."""
        if row is None:
            return Session(address=address)
        try:
            return self._row_to_session(row)
        except ValidationError:
            return Session(address=address)

    async def _write(self, conn: asyncpg.Connection, session: Session) -> None:
        session.touch()
        await conn.execute(
            _UPSERT_SQL,
            session.address,
            session.intent,
            session.step,
            json.dumps(session.data, default=str),
            session.context.model_dump_json(),
            session.inner.model_dump_json() if session.inner is not None else None,
            session.created_at,
            session.updated_at,
        )

    async def get(self, address: str) -> Session | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(_SELECT_SQL, address)
        except asyncpg.PostgresError as e:
            logger.error("postgres_get_session_error", address=address, error=str(e))
            raise ConnectionError(f"Failed to get session: {e}", cause=e) from e
        return self._row_to_session(row) if row else None

    async def save(self, session: Session) -> Session:
        try:
            async with self._pool.acquire() as conn:
                await self._write(conn, session)
        except asyncpg.PostgresError as e:
            logger.error("postgres_save_session_error", address=session.address, error=str(e))
            raise ConnectionError(f"Failed to save session: {e}", cause=e) from e
        logger.debug("session_saved", address=session.address, intent=session.intent)
        return session

    async def _modify(self, address: str, patch: SessionPatch | None) -> Session:
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(_SELECT_SQL + " FOR UPDATE", address)
                    session = self._decode_for_write(row, address)
                    if patch is None:
                        session.clear()
                    else:
                        session.apply_patch(patch)
                    await self._write(conn, session)
        except asyncpg.PostgresError as e:
            logger.error("postgres_modify_session_error", address=address, error=str(e))
            raise ConnectionError(f"Failed to update session: {e}", cause=e) from e
        return session

    async def upsert(self, address: str, patch: SessionPatch) -> Session:
        return await self._modify(address, patch)

    async def clear(self, address: str) -> Session:
        return await self._modify(address, None)
