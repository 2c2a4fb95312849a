"""Suggestion request handlers with dependency injection."""

from auditor.api.v1.decorators import handle_service_errors
from auditor.api.v1.schemas import SuggestionRequest, SuggestionResponse
from auditor.core.logging import get_logger
from auditor.services.suggestion import SuggestionClient

logger = get_logger(__name__)


@handle_service_errors(operation="generating the suggestion")
async def suggestion_handler(
    request: SuggestionRequest, suggestion_client: SuggestionClient
) -> SuggestionResponse:
    """Generate a remediation suggestion.

    Raises:
        HTTPException: With the status of the classified suggestion failure
    """
    logger.info(
        "suggestion_request",
        url=request.url,
        has_scan_result=request.scan_result is not None,
        has_message=bool(request.message),
    )
    result = await suggestion_client.suggest(
        url=request.url,
        scan_result=request.scan_result,
        message=request.message,
    )
    return SuggestionResponse.model_validate(result)
