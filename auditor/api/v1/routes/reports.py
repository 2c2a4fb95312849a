"""Report routes for API v1."""

from typing import Any

from fastapi import APIRouter, Path, Request, status

from auditor.api.schemas import ErrorResponse
from auditor.api.v1.handlers import get_report_handler, store_report_handler
from auditor.api.v1.schemas import StoreReportRequest, StoreReportResponse
from auditor.core.dependencies import ReportStoreDep, client_identity

router = APIRouter()


@router.post(
    "/report",
    response_model=StoreReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Save a report",
    operation_id="storeReport",
    description="""
    Store a report in memory and return a shareable id.

    Reports are kept for 24 hours and are lost when the service restarts.
    """,
    responses={
        400: {"description": "Missing or invalid url", "model": ErrorResponse},
    },
)
async def store_report(
    report: StoreReportRequest,
    request: Request,
    report_store: ReportStoreDep,
) -> StoreReportResponse:
    """Save a report."""
    return await store_report_handler(
        report,
        report_store,
        user_agent=request.headers.get("user-agent"),
        client_ip=client_identity(request),
    )


@router.get(
    "/report/{report_id}",
    response_model=dict[str, Any],
    status_code=status.HTTP_200_OK,
    summary="Retrieve a report",
    operation_id="getReport",
    responses={
        404: {"description": "Report not found or expired", "model": ErrorResponse},
    },
)
async def get_report(
    report_store: ReportStoreDep,
    report_id: str = Path(..., min_length=1, description="Report id"),
) -> dict[str, Any]:
    """Retrieve a stored report without its request metadata."""
    return await get_report_handler(report_id, report_store)
