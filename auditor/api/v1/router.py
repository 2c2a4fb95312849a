"""API v1 main router."""

from fastapi import APIRouter

from auditor.api.v1.schemas import ApiIndexResponse

from .routes import api_index, reports_router, scan_router, suggestions_router

# API main router (tags handled by sub-routers)
router = APIRouter(prefix="/api")

router.add_api_route(
    "",
    api_index,
    methods=["GET"],
    response_model=ApiIndexResponse,
    summary="API index",
    description="Lists every documented endpoint with its summary.",
    tags=["General"],
    operation_id="getApiIndex",
)

# Include sub-routers with specific tags
router.include_router(scan_router, tags=["Scans"])
router.include_router(reports_router, tags=["Reports"])
router.include_router(suggestions_router, tags=["Suggestions"])
