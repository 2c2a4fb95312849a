"""Centralized dependency injection for the application.

Long-lived services are built once in the application lifespan and kept on
``app.state.services``; the providers below read them from the request's
application so tests can swap any of them through ``dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from auditor.core.logging import get_logger
from auditor.services.audit_pipeline import AuditPipeline
from auditor.services.audits import AxeEngine, LighthouseRunner
from auditor.services.browser_pool import BrowserPool
from auditor.services.navigation import NavigationController
from auditor.services.rate_limiter import SlidingWindowRateLimiter
from auditor.services.report_store import ReportStore
from auditor.services.scan_service import ScanService
from auditor.services.suggestion import SuggestionClient
from config import Settings, get_settings

logger = get_logger(__name__)


@dataclass
class AppServices:
    """Service objects owned by one application instance."""

    settings: Settings
    pool: BrowserPool
    scan_service: ScanService
    report_store: ReportStore
    rate_limiter: SlidingWindowRateLimiter
    suggestion_client: SuggestionClient

    def capabilities(self) -> dict[str, bool]:
        return {
            **self.scan_service.pipeline.capabilities(),
            "gemini": self.suggestion_client.available,
        }


def build_services(settings: Settings) -> AppServices:
    """Construct every service and detect optional audit engines.

    Args:
        settings: Application settings

    Returns:
        AppServices container (nothing started yet)
    """
    axe = AxeEngine.from_path(settings.axe_script_path)
    lighthouse = LighthouseRunner.detect(settings)
    pool = BrowserPool(settings)

    return AppServices(
        settings=settings,
        pool=pool,
        scan_service=ScanService(
            settings,
            pool=pool,
            navigator=NavigationController(settings),
            pipeline=AuditPipeline.from_settings(settings, axe, lighthouse),
        ),
        report_store=ReportStore.from_settings(settings),
        rate_limiter=SlidingWindowRateLimiter.from_settings(settings),
        suggestion_client=SuggestionClient.from_settings(settings),
    )


async def start_services(services: AppServices) -> None:
    """Start the browser pool and background sweeps.

    Should be called in FastAPI lifespan startup.
    """
    services.report_store.start()
    services.rate_limiter.start()
    await services.pool.initialize()
    logger.info("services_started", capabilities=services.capabilities())


async def stop_services(services: AppServices) -> None:
    """Stop sweeps and close every browser session.

    Should be called in FastAPI lifespan shutdown.
    """
    await services.rate_limiter.stop()
    await services.report_store.stop()
    await services.pool.shutdown()
    logger.info("services_stopped")


# ============================================================================
# Core Dependencies
# ============================================================================


def get_app_settings() -> Settings:
    """Get application settings.

    Usage:
        async def my_route(settings: SettingsDep):
            print(settings.app_name)
    """
    return get_settings()


def get_services(request: Request) -> AppServices:
    """Get the service container of the running application.

    Raises:
        RuntimeError: If the lifespan has not built the services.
    """
    services: AppServices | None = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Application services are not initialized")
    return services


ServicesDep = Annotated[AppServices, Depends(get_services)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


# ============================================================================
# Service Dependencies
# ============================================================================


def get_scan_service(services: ServicesDep) -> ScanService:
    return services.scan_service


def get_report_store(services: ServicesDep) -> ReportStore:
    return services.report_store


def get_rate_limiter(services: ServicesDep) -> SlidingWindowRateLimiter:
    return services.rate_limiter


def get_suggestion_client(services: ServicesDep) -> SuggestionClient:
    return services.suggestion_client


ScanServiceDep = Annotated[ScanService, Depends(get_scan_service)]
ReportStoreDep = Annotated[ReportStore, Depends(get_report_store)]
RateLimiterDep = Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)]
SuggestionClientDep = Annotated[SuggestionClient, Depends(get_suggestion_client)]


# ============================================================================
# Request Guards
# ============================================================================


def client_identity(request: Request) -> str:
    """Identity used for rate limiting: the client address."""
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request, limiter: RateLimiterDep) -> None:
    """Reject the request with 429 when its client exceeded the window.

    Raises:
        HTTPException: 429 with a Retry-After header.
    """
    identity = client_identity(request)
    if await limiter.admit(identity):
        return

    retry_after = await limiter.retry_after(identity)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests from this IP, please try again later.",
        headers={"Retry-After": str(retry_after)},
    )


RateLimitDep = Depends(enforce_rate_limit)
