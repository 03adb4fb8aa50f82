"""Directory group model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class DirectoryGroup(BaseModel):
    """A remote group, parsed from the same statecode/body envelope as users."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value
