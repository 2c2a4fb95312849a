"""Pytest configuration and fixtures."""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

if TYPE_CHECKING:
    from fastapi import FastAPI

from auditor.core.dependencies import AppServices
from auditor.services.audit_pipeline import AuditPipeline
from auditor.services.audits import AxeEngine, LighthouseRunner
from auditor.services.browser_pool import BrowserPool, Session
from auditor.services.navigation import NavigationController, PageHandle
from auditor.services.rate_limiter import SlidingWindowRateLimiter
from auditor.services.report_store import ReportStore
from auditor.services.scan_service import ScanService
from auditor.services.suggestion import SuggestionClient
from config import Settings

PageFactory = Callable[..., MagicMock]


@pytest.fixture
def settings() -> Settings:
    """Create test settings without any real delays."""
    return Settings(
        environment="testing",
        browser_max_sessions=2,
        navigation_settle_delay=0,
        audit_action_settle_delay=0,
        rate_limit_requests=50,
        gemini_api_key=None,
        log_level="WARNING",
    )


@pytest.fixture
def page_factory() -> PageFactory:
    """Build mock pages that answer the scripts the auditor evaluates.

    The page snapshot script (``innerText``) returns the given title and text,
    the axe presence check returns True and ``axe.run`` returns the given
    violations.
    """

    def factory(
        title: str = "Example Domain",
        text: str = "This domain is for use in illustrative examples in documents.",
        violations: list[dict[str, Any]] | None = None,
        has_images: bool = True,
        has_links: bool = True,
        samples: list[dict[str, Any]] | None = None,
    ) -> MagicMock:
        async def evaluate(script: str, arg: Any = None) -> Any:
            if "innerText" in script:
                return {
                    "title": title,
                    "text": text,
                    "hasImages": has_images,
                    "hasLinks": has_links,
                }
            if "typeof window.axe" in script:
                return True
            if "axe.run" in script:
                return {"violations": list(violations or []), "passes": [{"id": "ignored"}]}
            if "getComputedStyle" in script:
                return list(samples or [])
            return None

        page = MagicMock()
        page.evaluate = AsyncMock(side_effect=evaluate)
        page.add_script_tag = AsyncMock()
        page.click = AsyncMock()
        page.focus = AsyncMock()
        page.type = AsyncMock()
        page.hover = AsyncMock()
        return page

    return factory


def make_session(debug_port: int | None = None) -> Session:
    now = datetime.now(UTC)
    return Session(
        browser=MagicMock(),
        created_at=now,
        deadline=now + timedelta(seconds=120),
        debug_port=debug_port,
    )


def make_handle(page: MagicMock, url: str = "https://example.com") -> PageHandle:
    return PageHandle(
        page=page,
        context=MagicMock(),
        url=url,
        strategy="networkidle",
        load_time_ms=420,
        status_code=200,
    )


@pytest.fixture
def mock_pool() -> MagicMock:
    """Create a mock browser pool whose sessions need no browser."""
    pool = MagicMock(spec=BrowserPool)
    released: list[Session] = []

    @asynccontextmanager
    async def session() -> AsyncIterator[Session]:
        current = make_session()
        try:
            yield current
        finally:
            released.append(current)

    pool.session = MagicMock(side_effect=session)
    pool.released = released
    pool.get_pool_stats.return_value = {
        "active_sessions": 0,
        "launching": 0,
        "max_sessions": 2,
        "initialized": True,
        "shutting_down": False,
    }
    return pool


@pytest.fixture
def mock_navigator(page_factory: PageFactory) -> MagicMock:
    """Create a mock navigation controller that loads a healthy page."""
    navigator = MagicMock(spec=NavigationController)
    navigator.load = AsyncMock(return_value=make_handle(page_factory()))
    navigator.probe = AsyncMock(return_value=make_handle(page_factory()))
    navigator.close = AsyncMock()
    return navigator


@pytest.fixture
def pipeline() -> AuditPipeline:
    """Create an audit pipeline with axe loaded and Lighthouse missing."""
    return AuditPipeline(
        AxeEngine("window.axe = {};"),
        LighthouseRunner(None),
        action_settle_delay=0,
    )


@pytest.fixture
def scan_service(
    settings: Settings,
    mock_pool: MagicMock,
    mock_navigator: MagicMock,
    pipeline: AuditPipeline,
) -> ScanService:
    """Create scan service fixture over mocked browser infrastructure."""
    return ScanService(settings, pool=mock_pool, navigator=mock_navigator, pipeline=pipeline)


@pytest.fixture
def test_services(settings: Settings, mock_pool: MagicMock, scan_service: ScanService) -> AppServices:
    """Create the application service container used by API tests."""
    return AppServices(
        settings=settings,
        pool=mock_pool,
        scan_service=scan_service,
        report_store=ReportStore(),
        rate_limiter=SlidingWindowRateLimiter(max_requests=settings.rate_limit_requests),
        suggestion_client=SuggestionClient(api_key=None, models=settings.gemini_models),
    )


def create_test_app(services: AppServices, settings: Settings) -> FastAPI:
    """Create a lightweight FastAPI app for testing.

    Unlike the production create_app(), this version skips the lifespan
    (no Playwright, no background sweeps) and installs prebuilt services.
    """
    from fastapi import FastAPI

    from auditor.api import router, router_v1
    from auditor.api.exception_handlers import add_exception_handlers
    from auditor.core.dependencies import get_app_settings

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    add_exception_handlers(app)
    app.include_router(router)
    app.include_router(router_v1)

    app.state.services = services
    app.state.started_at = time.monotonic()
    app.dependency_overrides[get_app_settings] = lambda: settings
    return app


@pytest_asyncio.fixture
async def test_client(
    test_services: AppServices, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create FastAPI test client for API tests."""
    app = create_test_app(test_services, settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
