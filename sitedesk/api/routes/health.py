"""Health check and metrics endpoints."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from sitedesk import __version__
from sitedesk.api.dependencies import RecordSinkDep, SessionStoreDep, SettingsDep
from sitedesk.api.models.health import ComponentHealth, HealthResponse, HealthStatus
from sitedesk.db.errors import StoreError
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

HEALTH_PROBE_ADDRESS = "__health__"


async def _check_component(name: str, backend: str, check: Callable[[], Awaitable[Any]]) -> ComponentHealth:
    """Run one read against a backend and time it."""
    start = time.perf_counter()
    try:
        await check()
    except StoreError as e:
        return ComponentHealth(
            name=name,
            backend=backend,
            status="unhealthy",
            latency_ms=(time.perf_counter() - start) * 1000,
            message=str(e),
        )
    return ComponentHealth(
        name=name,
        backend=backend,
        status="healthy",
        latency_ms=(time.perf_counter() - start) * 1000,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: SettingsDep,
    session_store: SessionStoreDep,
    record_sink: RecordSinkDep,
) -> HealthResponse:
    """Check service health status.

    The service is degraded when the session store is down (events are
    still answered from transient sessions) and unhealthy when records
    cannot be written.
    """
    components = [
        await _check_component(
            "session_store",
            settings.storage.session_backend,
            lambda: session_store.get(HEALTH_PROBE_ADDRESS),
        ),
        await _check_component("record_sink", settings.storage.record_backend, record_sink.count_by_type),
    ]

    by_name = {c.name: c.status for c in components}
    status: HealthStatus = "healthy"
    if by_name["record_sink"] == "unhealthy":
        status = "unhealthy"
    elif by_name["session_store"] == "unhealthy":
        status = "degraded"

    logger.debug("health_check_completed", status=status)
    return HealthResponse(status=status, version=__version__, components=components)


async def get_metrics() -> Response:
    """Prometheus metrics in text format for scraping.

    Mounted by register_routes at ``observability.metrics.path``.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
