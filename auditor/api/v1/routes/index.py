"""API index endpoint for API v1.

Registered on the prefixed v1 router itself so that it answers at ``/api``.
"""

from datetime import UTC, datetime

from fastapi import Request
from fastapi.routing import APIRoute

from auditor.api.v1.schemas import ApiIndexResponse
from auditor.core.dependencies import SettingsDep


async def api_index(request: Request, settings: SettingsDep) -> ApiIndexResponse:
    """Describe the mounted endpoints."""
    endpoints: dict[str, str] = {}
    for route in request.app.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        for method in sorted(route.methods):
            endpoints[f"{method} {route.path}"] = route.summary or route.name

    return ApiIndexResponse(
        name=settings.app_name,
        version=settings.app_version,
        endpoints=endpoints,
        timestamp=datetime.now(UTC).isoformat(),
    )
