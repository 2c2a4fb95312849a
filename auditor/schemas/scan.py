"""Pydantic schemas for scripted page interactions."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActionKind(str, Enum):
    """Interaction performed before re-running the accessibility audit."""

    CLICK = "click"
    FOCUS = "focus"
    TYPE = "type"
    HOVER = "hover"


class DynamicAction(BaseModel):
    """One scripted interaction.

    Example:
        {"type": "click", "selector": "#menu-toggle"}
        {"type": "type", "selector": "input[name=q]", "value": "shoes"}
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: ActionKind = Field(..., alias="type", description="Interaction kind")
    selector: str = Field(..., min_length=1, description="CSS selector of the target element")
    value: str | None = Field(None, description="Text to type (required for 'type')")

    @model_validator(mode="after")
    def validate_value_for_type(self) -> "DynamicAction":
        """Typing requires a value."""
        if self.kind is ActionKind.TYPE and not self.value:
            raise ValueError("Type action requires a value")
        return self
