"""Application-wide exception handlers.

Every error response has the body ``{"detail": message, "error_code": CODE}``.
Request validation errors are reported as 400.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auditor.api.schemas import ErrorCode, ErrorResponse
from auditor.core.logging import get_logger

logger = get_logger(__name__)

_STATUS_CODES = {
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMITED,
    status.HTTP_500_INTERNAL_SERVER_ERROR: ErrorCode.INTERNAL_ERROR,
}


def _error_response(
    status_code: int,
    detail: str,
    error_code: str,
    field: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(detail=detail, error_code=error_code, field=field)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def describe_validation_errors(errors: list[dict[str, Any]]) -> tuple[str, str | None]:
    """Turn pydantic errors into one message and the offending field.

    Returns:
        Tuple of (message, dotted field path or None)
    """
    if not errors:
        return "Invalid request", None

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    message = str(first.get("msg", "Invalid request"))
    message = message.removeprefix("Value error, ")
    field = ".".join(location) or None
    if field and first.get("type") != "value_error":
        message = f"{field}: {message}"
    return message, field


def add_exception_handlers(app: FastAPI) -> None:
    """Register the error body format on ``app``."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error_code = getattr(exc, "error_code", None) or _STATUS_CODES.get(
            exc.status_code, ErrorCode.HTTP_ERROR
        ).value
        return _error_response(
            exc.status_code,
            str(exc.detail),
            error_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message, field = describe_validation_errors(list(exc.errors()))
        logger.warning("request_validation_failed", path=request.url.path, error=message)
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            message,
            ErrorCode.VALIDATION_ERROR.value,
            field=field,
        )
