"""Domain schemas shared by services and the API layer."""

from auditor.schemas.scan import ActionKind, DynamicAction

__all__ = ["ActionKind", "DynamicAction"]
