"""Report request handlers with dependency injection."""

from typing import Any

from auditor.api.v1.decorators import handle_service_errors
from auditor.api.v1.schemas import StoreReportRequest, StoreReportResponse
from auditor.core.exceptions import ScanValidationError
from auditor.core.logging import get_logger
from auditor.services.report_store import ReportStore
from auditor.utils import validate_scan_url

logger = get_logger(__name__)


@handle_service_errors(operation="saving the report")
async def store_report_handler(
    request: StoreReportRequest,
    report_store: ReportStore,
    user_agent: str | None = None,
    client_ip: str | None = None,
) -> StoreReportResponse:
    """Store a report and return its id.

    Args:
        request: Report body (any JSON object with a valid url)
        report_store: Injected report store
        user_agent: Requesting client's User-Agent header
        client_ip: Requesting client's address

    Raises:
        HTTPException: If the report URL is missing or invalid
    """
    if not request.url:
        raise ScanValidationError("Missing required fields: url")
    error = validate_scan_url(request.url)
    if error:
        raise ScanValidationError(error)

    report_id, timestamp = await report_store.put(
        request.model_dump(),
        metadata={"userAgent": user_agent or "Unknown", "ip": client_ip or "Unknown"},
    )
    return StoreReportResponse(id=report_id, timestamp=timestamp)


@handle_service_errors(operation="retrieving the report")
async def get_report_handler(report_id: str, report_store: ReportStore) -> dict[str, Any]:
    """Fetch a stored report.

    Raises:
        HTTPException: 404 if the report is unknown or expired
    """
    logger.info("get_report_request", report_id=report_id)
    return await report_store.get(report_id)
