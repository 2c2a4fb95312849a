"""Scan routes for API v1."""

from typing import Any

from fastapi import APIRouter, status

from auditor.api.schemas import ErrorResponse
from auditor.api.v1.handlers import check_website_handler, scan_handler
from auditor.api.v1.schemas import CheckWebsiteRequest, CheckWebsiteResponse, ScanRequest
from auditor.core.dependencies import RateLimitDep, ScanServiceDep

router = APIRouter()


@router.post(
    "/scan",
    response_model=dict[str, Any],
    status_code=status.HTTP_200_OK,
    summary="Scan a website",
    operation_id="scanWebsite",
    dependencies=[RateLimitDep],
    description="""
    Load a website in a fresh headless browser and run the requested audits.

    **Audit kinds:** `accessibility`, `dynamic-content`, `brand-color-contrast`,
    `performance`, `seo`, `best-practices`, `pwa`.

    The result contains one entry per attempted audit, keyed by audit kind.
    A failed audit is reported as `{"error": ...}` without failing the scan.
    Audits that cannot run (no actions, no brand colours, Lighthouse not
    installed) have no entry.
    """,
    responses={
        200: {"description": "Scan completed"},
        400: {"description": "Invalid request", "model": ErrorResponse},
        404: {"description": "Website not found", "model": ErrorResponse},
        408: {"description": "Website took too long to respond", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
        503: {"description": "Browser pool busy or site refused", "model": ErrorResponse},
    },
)
async def scan_website(request: ScanRequest, scan_service: ScanServiceDep) -> dict[str, Any]:
    """Run a scan.

    Args:
        request: Scan request body
        scan_service: Injected scan service
    """
    return await scan_handler(request, scan_service)


@router.post(
    "/check-website",
    response_model=CheckWebsiteResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Quick website check",
    operation_id="checkWebsite",
    description="""
    Single-pass load and page health check without running any audit.

    Load failures are reported in the body with `accessible: false` and a
    status of `slow`, `not_found` or `unreachable`.
    """,
    responses={
        400: {"description": "Invalid URL", "model": ErrorResponse},
        503: {"description": "Browser pool busy", "model": ErrorResponse},
    },
)
async def check_website(
    request: CheckWebsiteRequest, scan_service: ScanServiceDep
) -> dict[str, Any]:
    """Check whether a website loads and looks healthy."""
    return await check_website_handler(request, scan_service)
