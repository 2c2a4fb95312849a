"""Site Auditor main application."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auditor.api import router, router_v1
from auditor.api.exception_handlers import add_exception_handlers
from auditor.core import setup_logging
from auditor.core.dependencies import (
    build_services,
    get_app_settings,
    start_services,
    stop_services,
)
from auditor.core.logging import get_logger

logger = get_logger(__name__)

# Any localhost port, accepted outside production
LOCALHOST_ORIGIN_REGEX = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles application startup and shutdown events.
    """
    # Startup
    settings = get_app_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info("application_startup", app_name=app.title, version=app.version)

    services = build_services(settings)
    app.state.services = services
    app.state.started_at = time.monotonic()

    try:
        await start_services(services)
    except Exception as e:
        logger.error("services_start_failed_on_startup", error=str(e))
        # Continue without a browser pool - scans fail with 500, /health reports degraded

    yield

    # Shutdown
    logger.info("application_shutdown")

    try:
        await stop_services(services)
    except Exception as e:
        logger.error("services_stop_failed_on_shutdown", error=str(e))


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Uses centralized dependency injection for settings.
    """
    # Get settings for app initialization
    # This is acceptable here as we need settings before the app is created
    settings = get_app_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Website accessibility, performance and brand-compliance audits",
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=(
            None if settings.environment == "production" else LOCALHOST_ORIGIN_REGEX
        ),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    add_exception_handlers(app)

    # Include routers
    app.include_router(router)  # Non-versioned endpoints (root, health, metrics)
    app.include_router(router_v1)  # /api endpoints

    return app


app = create_app()
