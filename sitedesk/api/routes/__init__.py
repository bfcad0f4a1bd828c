"""API route registration."""

from fastapi import APIRouter, FastAPI

from sitedesk.config.models.observability import MetricsConfig
from sitedesk.observability.logging import get_logger

logger = get_logger(__name__)


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all routes."""
    router = APIRouter(prefix="/v1")

    from sitedesk.api.routes.events import router as events_router

    router.include_router(events_router, tags=["Events"])

    logger.debug("v1_router_created", routes=["events"])
    return router


def register_routes(app: FastAPI, metrics: MetricsConfig | None = None) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
        metrics: Metrics endpoint settings (enabled at /metrics if not provided)
    """
    app.include_router(create_v1_router())

    # Health and metrics at root level
    from sitedesk.api.routes.health import get_metrics
    from sitedesk.api.routes.health import router as health_router

    app.include_router(health_router, tags=["Health"])

    metrics = metrics or MetricsConfig()
    if metrics.enabled:
        app.add_api_route(metrics.path, get_metrics, methods=["GET"], tags=["Health"])

    logger.info("routes_registered")
