"""Shared asyncpg pool for the PostgreSQL session store and record sink."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from sitedesk.config.models.storage import PostgresConfig
from sitedesk.db.errors import ConnectionError
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)

# Errors that mean the database could not be reached or refused the command
_DRIVER_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresPool:
    """Lazily connected asyncpg pool.

    Driver errors raised while connecting or while a connection is held
    are wrapped in ConnectionError.

    Usage:
        pool = PostgresPool(settings.storage.postgres)
        async with pool.acquire() as conn:
            await conn.fetchrow("SELECT ...")
        await pool.close()
    """

    def __init__(self, config: PostgresConfig | None = None) -> None:
        self._config = config or PostgresConfig()
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return
        config = self._config
        try:
            self._pool = await asyncpg.create_pool(
                dsn=config.dsn,
                min_size=config.min_pool_size,
                max_size=config.max_pool_size,
                max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
                command_timeout=config.command_timeout,
            )
        except _DRIVER_ERRORS as e:
            logger.error("postgres_connect_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}", cause=e) from e
        logger.info("postgres_pool_opened", min_size=config.min_pool_size, max_size=config.max_pool_size)

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, opening the pool on first use."""
        await self.connect()
        assert self._pool is not None
        try:
            async with self._pool.acquire() as connection:
                yield connection
        except _DRIVER_ERRORS as e:
            logger.error("postgres_command_failed", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e
