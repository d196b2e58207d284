"""
Fleet Telemetry Backend - Main Application Entry Point
Application Factory Pattern with ORJSONResponse.

Run with:
    uvicorn src.main:create_application --factory
"""
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from src.core.config import Settings, get_settings
from src.core.database import Database
from src.core.exceptions import (
    FleetTelemetryException,
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from src.core.logging import bind_context, clear_context, configure_logging, get_logger
from src.core.metrics import MetricsMiddleware
from src.core.metrics import router as metrics_router
from src.core.sentry import init_sentry
from src.modules.analytics.resolver import build_resolver

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    logger.info(
        "Starting Fleet Telemetry Backend",
        environment=settings.environment,
        debug=settings.debug,
    )

    if settings.run_db_init:
        await database.init_models()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down Fleet Telemetry Backend")
    await database.dispose()


TAGS_METADATA = [
    {
        "name": "Ingestion",
        "description": "Meter and vehicle telemetry ingest. Each call appends to history "
        "and overwrites the device's live status.",
    },
    {
        "name": "Analytics",
        "description": "Trailing-window charging efficiency per vehicle.",
    },
    {
        "name": "Health",
        "description": "Liveness and Prometheus metrics.",
    },
]


def create_application(
    settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    The settings object and the database it implies are owned by the
    application and reached by request handlers through ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.project_name,
        version=settings.app_version,
        summary="Dual-path telemetry ingest and charging efficiency analytics",
        openapi_tags=TAGS_METADATA,
        default_response_class=ORJSONResponse,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database(settings)
    app.state.resolver = build_resolver(settings)

    init_sentry(settings)

    if settings.prometheus_enabled:
        app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(FleetTelemetryException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS configured", origins=settings.cors_origins_list)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        clear_context()
        bind_context(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    _include_routers(app, settings)

    @app.get("/health", tags=["Health"], response_class=ORJSONResponse)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "fleet-telemetry"}

    @app.get("/", tags=["Health"], response_class=ORJSONResponse)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": settings.project_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


def _include_routers(app: FastAPI, settings: Settings) -> None:
    """Include module routers under the versioned prefix."""
    from src.modules.analytics.router import router as analytics_router
    from src.modules.ingestion.router import router as ingestion_router

    for router in (ingestion_router, analytics_router):
        app.include_router(router, prefix=settings.api_v1_str)

    if settings.prometheus_enabled:
        app.include_router(metrics_router)

    logger.info(
        "Routers registered",
        modules=["ingestion", "analytics"],
        api_prefix=settings.api_v1_str,
    )


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "src.main:create_application",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=_settings.debug,
        log_level="debug" if _settings.debug else "info",
    )
