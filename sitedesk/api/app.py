"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sitedesk import __version__
from sitedesk.api.dependencies import get_settings, reset_dependencies
from sitedesk.api.exceptions import SiteDeskAPIError
from sitedesk.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from sitedesk.api.routes import register_routes
from sitedesk.db.errors import StoreError
from sitedesk.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await reset_dependencies()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    log_config = settings.observability.logging
    setup_logging(level=log_config.level, format=log_config.format, redact_pii=log_config.redact_pii)

    app = FastAPI(
        title="SiteDesk API",
        description="Conversational data collection for construction sites",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    register_routes(app, settings.observability.metrics)

    logger.info("app_created", debug=settings.debug, cors_origins=settings.api.cors_origins)
    return app


def _error(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=body).model_dump(mode="json"))


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(SiteDeskAPIError)
    async def sitedesk_api_error_handler(request: Request, exc: SiteDeskAPIError) -> JSONResponse:
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        return _error(exc.status_code, ErrorBody(code=exc.error_code, message=exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)
        details = [
            ErrorDetail(field=".".join(str(loc) for loc in error["loc"]), message=error["msg"])
            for error in exc.errors()
        ]
        return _error(
            400,
            ErrorBody(code=ErrorCode.INVALID_REQUEST, message="Request validation failed", details=details),
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("store_unavailable", error=str(exc), path=request.url.path)
        return _error(
            503,
            ErrorBody(code=ErrorCode.SERVICE_UNAVAILABLE, message="A backing service is unavailable"),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error(500, ErrorBody(code=ErrorCode.INTERNAL_ERROR, message="An unexpected error occurred"))

    logger.debug("exception_handlers_registered")
