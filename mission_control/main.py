"""
Mission Control backend application.

FastAPI application with structured logging, error handling and the
integration test engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mission_control import __version__
from mission_control.api import health_router, router as api_router
from mission_control.config import get_settings
from mission_control.core import (
    EventNotifier,
    MemoryEventBus,
    RequestContextMiddleware,
    get_logger,
    setup_exception_handlers,
    setup_logging,
)
from mission_control.db import dispose_engine, verify_database_connection
from mission_control.integrations import IntegrationTester

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )
    logger.info(
        "Starting Mission Control backend",
        data={
            "host": settings.host,
            "port": settings.port,
            "environment": settings.environment,
            "cors_origins": settings.cors_origins_list,
        },
    )

    # Does NOT run migrations
    if verify_database_connection():
        logger.info("Database connection verified")
    else:
        logger.warning(
            "Database connection failed - run 'alembic upgrade head' to initialize"
        )

    _app.state.start_time = datetime.now(UTC)

    # Collaborators may be supplied up front (useful in tests)
    if not hasattr(_app.state, "eventbus"):
        _app.state.eventbus = MemoryEventBus(backlog_size=settings.eventbus_backlog)
    if not hasattr(_app.state, "notifier"):
        _app.state.notifier = EventNotifier(_app.state.eventbus)
    if not hasattr(_app.state, "integration_tester"):
        _app.state.integration_tester = IntegrationTester.from_settings(settings)

    yield

    logger.info("Shutting down Mission Control backend")
    dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Mission Control",
        description="Operations dashboard API for an autonomous agent fleet",
        version=__version__,
        lifespan=lifespan,
        docs_url=settings.docs_url,
        redoc_url=None,
        openapi_url=settings.openapi_url,
    )

    # Must be before middleware
    setup_exception_handlers(app)

    # Last added = first executed
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(health_router)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("mission_control.main:app", host=settings.host, port=settings.port, reload=False)
