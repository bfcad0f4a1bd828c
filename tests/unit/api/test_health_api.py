"""Tests for GET /health and GET /metrics."""

import pytest
from fastapi.testclient import TestClient

from sitedesk.api.app import create_app
from sitedesk.api.dependencies import get_record_sink, get_session_store
from sitedesk.conversation.stores.inmemory import InMemorySessionStore
from sitedesk.db.errors import ConnectionError
from sitedesk.records.sinks.inmemory import InMemoryRecordSink


class DownSessionStore(InMemorySessionStore):
    async def get(self, address):
        raise ConnectionError("redis down")


class DownRecordSink(InMemoryRecordSink):
    async def count_by_type(self):
        raise ConnectionError("postgres down")


def make_client(store, sink) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_record_sink] = lambda: sink
    return TestClient(app)


class TestHealth:
    """Tests for the health endpoint."""

    def test_healthy(self) -> None:
        response = make_client(InMemorySessionStore(), InMemoryRecordSink()).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert {c["name"] for c in body["components"]} == {"session_store", "record_sink"}

    def test_session_store_down_is_degraded(self) -> None:
        body = make_client(DownSessionStore(), InMemoryRecordSink()).get("/health").json()

        assert body["status"] == "degraded"
        store = next(c for c in body["components"] if c["name"] == "session_store")
        assert store["message"] == "redis down"

    def test_record_sink_down_is_unhealthy(self) -> None:
        body = make_client(InMemorySessionStore(), DownRecordSink()).get("/health").json()

        assert body["status"] == "unhealthy"


class TestMetrics:
    def test_metrics_exposed(self) -> None:
        response = make_client(InMemorySessionStore(), InMemoryRecordSink()).get("/metrics")

        assert response.status_code == 200
        assert "sitedesk_events_processed_total" in response.text
