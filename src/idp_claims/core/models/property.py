"""Property definition models for the host platform's property store."""

from enum import StrEnum

from pydantic import BaseModel, Field


class PropertyType(StrEnum):
    SINGLE_LINE_TEXT = "single_line_text"
    MULTI_LINE_TEXT = "multi_line_text"


class PropertyContext(StrEnum):
    """Entity a property definition is attached to."""

    USER = "usr"
    ORGANIZATION = "org"


class CreateOutcome(StrEnum):
    """Result of an idempotent property creation.

    Failures are raised as ``PropertyCreationError`` instead of being returned.
    """

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class PropertyDefinition(BaseModel):
    """A named, typed storage slot that must exist before values are written."""

    key: str = Field(description="Unique property key")
    name: str = Field(description="Display name")
    description: str | None = Field(default=None, description="Property description")
    type: PropertyType = Field(
        default=PropertyType.MULTI_LINE_TEXT, description="Value type"
    )
    context: PropertyContext = Field(
        default=PropertyContext.USER, description="Entity the property belongs to"
    )
    is_private: bool = Field(
        default=False, description="Private properties cannot be added to tokens"
    )
    category_id: str | None = Field(default=None, description="Property category")

    def to_api_payload(self) -> dict[str, str]:
        """Request body for the management API's create property endpoint."""
        payload = {
            "key": self.key,
            "name": self.name,
            "type": self.type.value,
            "context": self.context.value,
            "is_private": "true" if self.is_private else "false",
        }
        if self.description:
            payload["description"] = self.description
        if self.category_id:
            payload["category_id"] = self.category_id
        return payload
