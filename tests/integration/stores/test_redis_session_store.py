"""Integration tests for RedisSessionStore.

Requires a Redis server at SITEDESK_TEST_REDIS_URL (default
redis://localhost:6379/15); skipped when none is reachable.
"""

import os

import pytest
import pytest_asyncio
import redis.asyncio as redis

from sitedesk.config.models.storage import RedisSessionConfig
from sitedesk.conversation.models import FlowState, Session, SessionContext, SessionPatch
from sitedesk.conversation.stores.redis import RedisSessionStore
from sitedesk.engine.mutex import RedisSessionMutex
from sitedesk.sites.models import SiteContext

pytestmark = pytest.mark.integration

REDIS_URL = os.environ.get("SITEDESK_TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def client():
    client = redis.from_url(REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except redis.ConnectionError:
        await client.aclose()
        pytest.skip("Redis not available")
    yield client
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def store(client) -> RedisSessionStore:
    return RedisSessionStore(client, RedisSessionConfig(url=REDIS_URL, key_prefix="sitedesk-test"))


class TestRedisSessionStore:
    """Tests against a live Redis."""

    @pytest.mark.asyncio
    async def test_round_trip_with_inner_state(self, store) -> None:
        session = Session(
            address="+1555",
            intent="delegation",
            step="active",
            context=SessionContext(site=SiteContext(site_id="S2", site_name="Beta"), is_delegated=True),
            inner=FlowState(intent="activity_logging", step="enter_hours", data={"category": "inspection"}),
        )
        await store.save(session)
        loaded = await store.get("+1555")

        assert loaded.inner == session.inner
        assert loaded.context.site.site_id == "S2"

    @pytest.mark.asyncio
    async def test_upsert_and_clear(self, store) -> None:
        await store.upsert("+1555", SessionPatch(intent="booking", step="enter_date", data={"a": 1}))
        cleared = await store.clear("+1555")

        assert cleared.flow.is_idle
        assert (await store.get("+1555")).flow.is_idle

    @pytest.mark.asyncio
    async def test_ttl_is_set(self, store, client) -> None:
        await store.save(Session(address="+1555"))

        assert await client.ttl("sitedesk-test:session:+1555") > 0


class TestRedisSessionMutex:
    @pytest.mark.asyncio
    async def test_second_acquire_times_out(self, client) -> None:
        mutex = RedisSessionMutex(client, key_prefix="sitedesk-test", blocking_timeout=0.1)

        async with mutex.acquire("+1555") as first:
            assert first
            assert await client.exists("sitedesk-test:sesslock:+1555")
            async with mutex.acquire("+1555") as second:
                assert not second

        assert not await client.exists("sitedesk-test:sesslock:+1555")
