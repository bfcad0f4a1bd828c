"""Dependency injection for API routes.

Backends are chosen from settings and created once per process.
Every getter can be overridden with ``app.dependency_overrides`` in tests.
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from sitedesk.bootstrap import build_engine, build_services
from sitedesk.config import get_settings as load_settings
from sitedesk.config.settings import Settings
from sitedesk.conversation.store import SessionStore
from sitedesk.conversation.stores.inmemory import InMemorySessionStore
from sitedesk.conversation.stores.postgres import PostgresSessionStore
from sitedesk.conversation.stores.redis import RedisSessionStore
from sitedesk.db.pool import PostgresPool
from sitedesk.engine.mutex import RedisSessionMutex, SessionMutex
from sitedesk.engine.runtime import ConversationEngine
from sitedesk.identity.resolver import IdentityResolver, InMemoryIdentityResolver
from sitedesk.observability.logging import get_logger
from sitedesk.records.sink import RecordSink
from sitedesk.records.sinks.inmemory import InMemoryRecordSink
from sitedesk.records.sinks.postgres import PostgresRecordSink
from sitedesk.sites.directory import InMemorySiteDirectory, SiteDirectory

logger = get_logger(__name__)

# Connection pool and client instances, shared across stores
_postgres_pool: PostgresPool | None = None
_redis_client: redis.Redis | None = None

# Instances created once and reused
_session_store: SessionStore | None = None
_record_sink: RecordSink | None = None
_identity_resolver: IdentityResolver | None = None
_site_directory: SiteDirectory | None = None
_engine: ConversationEngine | None = None


def get_settings() -> Settings:
    """Get application settings (cached by the config package)."""
    return load_settings()


async def get_postgres_pool(settings: Settings) -> PostgresPool:
    """Get the shared PostgreSQL connection pool, connecting on first access."""
    global _postgres_pool
    if _postgres_pool is None:
        _postgres_pool = PostgresPool(settings.storage.postgres)
        await _postgres_pool.connect()
        logger.info("postgres_pool_connected")
    return _postgres_pool


def get_redis_client(settings: Settings) -> redis.Redis:
    """Get the shared Redis client."""
    global _redis_client
    if _redis_client is None:
        url = settings.storage.redis.url
        _redis_client = redis.from_url(url, decode_responses=True)
        logger.info("redis_client_created", url=url.split("@")[-1])  # Log without credentials
    return _redis_client


async def get_session_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionStore:
    """Get the SessionStore selected by ``storage.session_backend``."""
    global _session_store
    if _session_store is None:
        backend = settings.storage.session_backend
        if backend == "redis":
            _session_store = RedisSessionStore(get_redis_client(settings), settings.storage.redis)
        elif backend == "postgres":
            _session_store = PostgresSessionStore(await get_postgres_pool(settings))
        else:
            _session_store = InMemorySessionStore(ttl_seconds=settings.engine.session_ttl_seconds)
        logger.info("session_store_initialized", store_type=backend)
    return _session_store


async def get_record_sink(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RecordSink:
    """Get the RecordSink selected by ``storage.record_backend``."""
    global _record_sink
    if _record_sink is None:
        backend = settings.storage.record_backend
        if backend == "postgres":
            _record_sink = PostgresRecordSink(await get_postgres_pool(settings))
        else:
            _record_sink = InMemoryRecordSink()
        logger.info("record_sink_initialized", store_type=backend)
    return _record_sink


def get_identity_resolver() -> IdentityResolver:
    global _identity_resolver
    if _identity_resolver is None:
        _identity_resolver = InMemoryIdentityResolver()
    return _identity_resolver


def get_site_directory() -> SiteDirectory:
    global _site_directory
    if _site_directory is None:
        _site_directory = InMemorySiteDirectory()
    return _site_directory


def _build_mutex(settings: Settings) -> SessionMutex | None:
    if settings.storage.session_backend != "redis":
        return None
    config = settings.storage.redis
    return RedisSessionMutex(
        get_redis_client(settings),
        key_prefix=config.key_prefix,
        lock_timeout=config.lock_timeout_seconds,
        blocking_timeout=config.lock_blocking_timeout_seconds,
    )


async def get_engine(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    records: Annotated[RecordSink, Depends(get_record_sink)],
    identities: Annotated[IdentityResolver, Depends(get_identity_resolver)],
    directory: Annotated[SiteDirectory, Depends(get_site_directory)],
) -> ConversationEngine:
    """Get the ConversationEngine instance.

    Uses a Redis lock when sessions live in Redis, so several API
    processes can share one session store.
    """
    global _engine
    if _engine is None:
        services = build_services(settings, records=records, directory=directory)
        _engine = build_engine(
            settings,
            store=store,
            identities=identities,
            services=services,
            mutex=_build_mutex(settings),
        )
        logger.info("conversation_engine_initialized")
    return _engine


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
RecordSinkDep = Annotated[RecordSink, Depends(get_record_sink)]
EngineDep = Annotated[ConversationEngine, Depends(get_engine)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies, closing open connections."""
    global _session_store, _record_sink, _identity_resolver, _site_directory, _engine
    global _postgres_pool, _redis_client

    if _postgres_pool is not None:
        await _postgres_pool.close()
        _postgres_pool = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    _session_store = None
    _record_sink = None
    _identity_resolver = None
    _site_directory = None
    _engine = None
    load_settings.cache_clear()
