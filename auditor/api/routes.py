"""Base API routes (non-versioned endpoints)."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from auditor.api.schemas import HealthResponse, RootResponse
from auditor.core.dependencies import ServicesDep, SettingsDep

router = APIRouter()


@router.get(
    "/",
    response_model=RootResponse,
    summary="Root endpoint",
    description="Returns basic application information including name, version, and environment",
    tags=["General"],
    operation_id="getRoot",
)
async def root(settings: SettingsDep) -> RootResponse:
    """Root endpoint with injected settings.

    Args:
        settings: Application settings from dependency injection
    """
    return RootResponse(
        message=f"Welcome to {settings.app_name}",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description=(
        "Liveness plus browser pool occupancy, stored report count and the "
        "availability of optional audit engines"
    ),
    tags=["General"],
    operation_id="healthCheck",
    responses={
        200: {
            "description": "Health check results",
            "content": {
                "application/json": {
                    "examples": {
                        "healthy": {
                            "value": {
                                "status": "healthy",
                                "timestamp": "2025-10-27T10:00:00Z",
                                "uptime": 3600.5,
                                "environment": "production",
                                "services": {"axe": True, "lighthouse": False, "gemini": True},
                                "browser_pool": {
                                    "active_sessions": 1,
                                    "launching": 0,
                                    "max_sessions": 5,
                                    "initialized": True,
                                    "shutting_down": False,
                                },
                                "reports_in_memory": 12,
                            }
                        },
                    }
                }
            },
        }
    },
)
async def health(request: Request, services: ServicesDep) -> HealthResponse:
    """Health check endpoint.

    Args:
        request: Incoming request (for the application start time)
        services: Application services from dependency injection
    """
    started_at = getattr(request.app.state, "started_at", None)
    pool_stats = services.pool.get_pool_stats()

    return HealthResponse(
        status="healthy" if pool_stats["initialized"] else "degraded",
        timestamp=datetime.now(UTC).isoformat(),
        uptime=round(time.monotonic() - started_at, 3) if started_at is not None else 0.0,
        environment=services.settings.environment,
        services=services.capabilities(),
        browser_pool=pool_stats,
        reports_in_memory=len(services.report_store),
    )


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics for monitoring",
    tags=["Monitoring"],
    operation_id="getMetrics",
    response_class=Response,
)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
