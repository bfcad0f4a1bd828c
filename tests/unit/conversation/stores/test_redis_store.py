"""Tests for RedisSessionStore against an in-process stand-in for the client."""

import pytest
import redis.asyncio as redis

from sitedesk.config.models.storage import RedisSessionConfig
from sitedesk.conversation.models import Session, SessionPatch
from sitedesk.conversation.stores.redis import RedisSessionStore
from sitedesk.db.errors import ConnectionError, ValidationError
from tests.factories import EngineHarness, IdentityFactory, SiteFactory

KEY = "t:session:A"


class FakeRedis:
    """The subset of redis.asyncio.Redis the store uses."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.expiry: dict[str, int | None] = {}
        self.down = False

    async def get(self, key: str) -> str | None:
        if self.down:
            raise redis.ConnectionError("connection refused")
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        if self.down:
            raise redis.ConnectionError("connection refused")
        self.values[key] = value
        self.expiry[key] = ex


def make_store(client: FakeRedis) -> RedisSessionStore:
    return RedisSessionStore(client, RedisSessionConfig(key_prefix="t", session_ttl_seconds=120))


class TestRedisSessionStore:
    """Tests for reads and writes."""

    @pytest.mark.asyncio
    async def test_save_sets_ttl(self) -> None:
        """Should write JSON under the prefixed key with the configured TTL."""
        client = FakeRedis()
        await make_store(client).save(Session(address="A", intent="booking", step="enter_date"))

        assert client.expiry[KEY] == 120
        assert (await make_store(client).get("A")).step == "enter_date"

    @pytest.mark.asyncio
    async def test_unreadable_document(self) -> None:
        """Should report a stored value that does not decode as a ValidationError."""
        client = FakeRedis({KEY: '{"context": {"acting_as": "bogus"}}'})

        with pytest.raises(ValidationError):
            await make_store(client).get("A")

    @pytest.mark.asyncio
    async def test_driver_error(self) -> None:
        """Should wrap redis errors in ConnectionError."""
        client = FakeRedis()
        client.down = True

        with pytest.raises(ConnectionError):
            await make_store(client).get("A")

    @pytest.mark.asyncio
    async def test_upsert_replaces_unreadable_document(self) -> None:
        """Should start from a fresh session when the stored one is unreadable."""
        client = FakeRedis({KEY: "not json"})
        session = await make_store(client).upsert("A", SessionPatch(intent="booking", step="enter_date"))

        assert session.intent == "booking"
        assert (await make_store(client).get("A")).step == "enter_date"


class TestUnreadableSessionRecovery:
    """The engine must not get stuck on a stored session it cannot read."""

    @pytest.mark.asyncio
    async def test_flow_advances_past_unreadable_document(self) -> None:
        """Should overwrite the bad value so the next message continues the flow."""
        employee = IdentityFactory.employee(address="A")
        client = FakeRedis({KEY: '{"context": {"acting_as": "bogus"}}'})
        harness = EngineHarness(
            identities=[employee],
            sites=[SiteFactory.create("S1")],
            store=make_store(client),
        )

        first = await harness.send("A", "start material request")
        assert any(r.text == "Which material do you need?" for r in first)

        await harness.send("A", "rmc")

        session = await harness.session("A")
        assert session.intent == "material_request"
        assert session.step == "select_specification"
