"""API handler decorators for common patterns.

This module provides the single place where domain exceptions from the
service layer are translated into HTTP errors.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from fastapi import HTTPException, status

from auditor.api.schemas import ErrorCode
from auditor.core.exceptions import (
    NavigationError,
    PoolExhausted,
    ReportNotFound,
    ScanValidationError,
    SuggestionError,
)
from auditor.core.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

POOL_BUSY_MESSAGE = "Server is busy. Please try again in a few moments."


class APIError(HTTPException):
    """HTTPException carrying a machine-readable error code."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


def handle_service_errors(
    operation: str = "operation",
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to centralize service-layer error handling in API handlers.

    Exception handling:
    - ScanValidationError: malformed request → 400 with the validation message
    - PoolExhausted: concurrency ceiling reached → 503, retryable
    - NavigationError: status and message taken from the failure kind
    - ReportNotFound: unknown or expired report → 404
    - SuggestionError: status and message taken from the failure kind
    - RuntimeError / Exception: → 500 with a generic message

    Args:
        operation: Description of the operation for error messages (e.g., "scanning the website")

    Returns:
        Decorator function

    Example:
        @handle_service_errors(operation="scanning the website")
        async def scan_handler(request: ScanRequest, scan_service: ScanService) -> dict:
            return await scan_service.scan(request.url, request.audits)
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)

            except ScanValidationError as e:
                logger.warning("validation_error", error=str(e), handler=func.__name__)
                raise APIError(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=str(e),
                    error_code=ErrorCode.VALIDATION_ERROR.value,
                ) from e

            except PoolExhausted as e:
                logger.warning(
                    "browser_pool_busy",
                    max_sessions=e.max_sessions,
                    handler=func.__name__,
                )
                raise APIError(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=POOL_BUSY_MESSAGE,
                    error_code=ErrorCode.POOL_EXHAUSTED.value,
                ) from e

            except NavigationError as e:
                logger.warning(
                    "navigation_error",
                    kind=e.kind.value,
                    url=e.url,
                    error=e.message,
                    handler=func.__name__,
                )
                raise APIError(
                    status_code=e.kind.status_code,
                    detail=e.kind.user_message,
                    error_code=f"NAVIGATION_{e.kind.name}",
                ) from e

            except ReportNotFound as e:
                logger.warning("resource_not_found", error=str(e), handler=func.__name__)
                raise APIError(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Report not found or expired",
                    error_code=ErrorCode.REPORT_NOT_FOUND.value,
                ) from e

            except SuggestionError as e:
                logger.warning(
                    "suggestion_error",
                    kind=e.kind.value,
                    error=e.message,
                    handler=func.__name__,
                )
                raise APIError(
                    status_code=e.kind.status_code,
                    detail=e.kind.user_message,
                    error_code=f"SUGGESTION_{e.kind.name}",
                ) from e

            except RuntimeError as e:
                # Service operation error - log details but return generic message
                logger.error(
                    "service_error",
                    error=str(e),
                    handler=func.__name__,
                    exc_info=True,
                )
                raise APIError(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"An error occurred while {operation}",
                    error_code=ErrorCode.INTERNAL_ERROR.value,
                ) from e

            except HTTPException:
                # Re-raise HTTPExceptions as-is (already handled)
                raise

            except Exception as e:
                # Unexpected error - log with full stack trace but return generic message
                logger.error(
                    "unexpected_error",
                    error=str(e),
                    handler=func.__name__,
                    exc_info=True,
                )
                raise APIError(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="An unexpected error occurred",
                    error_code=ErrorCode.INTERNAL_ERROR.value,
                ) from e

        return wrapper

    return decorator
