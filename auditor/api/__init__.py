"""API package."""

from auditor.api.routes import router
from auditor.api.v1.router import router as router_v1

__all__ = ["router", "router_v1"]
