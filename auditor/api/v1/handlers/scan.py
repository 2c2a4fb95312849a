"""Scan request handlers with dependency injection.

This module contains HTTP handlers that coordinate between FastAPI routes
and the scan service.
"""

from typing import Any

from auditor.api.v1.decorators import handle_service_errors
from auditor.api.v1.schemas import CheckWebsiteRequest, ScanRequest
from auditor.core.logging import get_logger
from auditor.services.scan_service import ScanService

logger = get_logger(__name__)


@handle_service_errors(operation="scanning the website")
async def scan_handler(request: ScanRequest, scan_service: ScanService) -> dict[str, Any]:
    """Handle a full scan with HTTP error translation.

    Args:
        request: Scan request body
        scan_service: Injected scan service

    Returns:
        Scan result keyed by audit kind

    Raises:
        HTTPException: If validation, session acquisition or page load fails
    """
    logger.info(
        "scan_request",
        url=request.url,
        audits=request.audits,
        brand_colors=len(request.brand_colors),
        dynamic_actions=len(request.dynamic_actions),
    )

    # Delegate to service layer (error handling done by decorator)
    return await scan_service.scan(
        url=request.url,  # type: ignore[arg-type]
        audits=request.audits,
        brand_colors=request.brand_colors,
        dynamic_actions=request.dynamic_actions,
    )


@handle_service_errors(operation="checking the website")
async def check_website_handler(
    request: CheckWebsiteRequest, scan_service: ScanService
) -> dict[str, Any]:
    """Handle the quick website check.

    Raises:
        HTTPException: If the URL is invalid or no browser is available
    """
    logger.info("check_website_request", url=request.url)
    return await scan_service.check_website(request.url)  # type: ignore[arg-type]
