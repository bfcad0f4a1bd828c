"""Per-address session locks.

Events for one address are handled one at a time; events for different
addresses run concurrently.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


class SessionMutex(ABC):
    """Mutual exclusion keyed by address."""

    @abstractmethod
    def acquire(self, address: str) -> AsyncGenerator[bool, None]:
        """Async context manager yielding whether the lock is held.

        Usage:
            async with mutex.acquire(address) as acquired:
                if acquired:
                    ...
        """


class LocalSessionMutex(SessionMutex):
    """In-process locks, one asyncio.Lock per busy address.

    Locks are reference counted and dropped once nobody holds or waits
    on them.
    """

    def __init__(self, blocking_timeout: float = 5.0) -> None:
        self._blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def acquire(self, address: str) -> AsyncGenerator[bool, None]:
        lock = self._locks.setdefault(address, asyncio.Lock())
        self._waiters[address] = self._waiters.get(address, 0) + 1
        acquired = False
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._blocking_timeout)
                acquired = True
            except TimeoutError:
                logger.warning("session_lock_timeout", address=address)
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._waiters[address] -= 1
            if self._waiters[address] == 0:
                del self._waiters[address]
                del self._locks[address]


class RedisSessionMutex(SessionMutex):
    """Redis-backed distributed lock for multi-process deployments.

    Lock key format: {prefix}:sesslock:{address}
    """

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "sitedesk",
        lock_timeout: int = 30,
        blocking_timeout: float = 5.0,
    ) -> None:
        """Initialize session mutex.

        Args:
            redis: Redis client instance
            key_prefix: Prefix shared with the session keys
            lock_timeout: How long lock is held before auto-release (seconds)
            blocking_timeout: How long to wait when trying to acquire (seconds)
        """
        self._redis = redis
        self._key_prefix = key_prefix
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout

    def _key(self, address: str) -> str:
        return f"{self._key_prefix}:sesslock:{address}"

    @asynccontextmanager
    async def acquire(self, address: str) -> AsyncGenerator[bool, None]:
        lock = self._redis.lock(
            self._key(address),
            timeout=self._lock_timeout,
            blocking_timeout=self._blocking_timeout,
        )

        acquired = await lock.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await lock.release()
                except (LockError, RedisError) as e:
                    # Lock may have expired while the event was handled
                    logger.warning("session_lock_release_failed", address=address, error=str(e))
