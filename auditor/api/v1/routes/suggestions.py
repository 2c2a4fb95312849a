"""Suggestion routes for API v1."""

from fastapi import APIRouter, status

from auditor.api.schemas import ErrorResponse
from auditor.api.v1.handlers import suggestion_handler
from auditor.api.v1.schemas import SuggestionRequest, SuggestionResponse
from auditor.core.dependencies import RateLimitDep, SuggestionClientDep

router = APIRouter()


@router.post(
    "/suggestion",
    response_model=SuggestionResponse,
    status_code=status.HTTP_200_OK,
    summary="Get remediation suggestions",
    operation_id="getSuggestion",
    dependencies=[RateLimitDep],
    description="""
    Ask the language model for accessibility advice, either about a scan
    result or in answer to a free-form question (at most 1000 characters).
    """,
    responses={
        400: {"description": "Invalid request or blocked by safety filters", "model": ErrorResponse},
        408: {"description": "Suggestion service timed out", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Suggestion service unavailable", "model": ErrorResponse},
        503: {"description": "Suggestion quota exhausted", "model": ErrorResponse},
    },
)
async def get_suggestion(
    request: SuggestionRequest, suggestion_client: SuggestionClientDep
) -> SuggestionResponse:
    """Generate a suggestion."""
    return await suggestion_handler(request, suggestion_client)


# Path used by the original browser client
router.add_api_route(
    "/gemini-suggestion",
    get_suggestion,
    methods=["POST"],
    response_model=SuggestionResponse,
    dependencies=[RateLimitDep],
    include_in_schema=False,
)
