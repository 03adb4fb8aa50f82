"""
Directory user model.

A ``DirectoryUser`` is built once from one entry of the remote ``users``
listing and never mutated afterwards.
"""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Sex(enum.IntEnum):
    """Sex codes used by the remote service."""

    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


class DirectoryUser(BaseModel):
    """One remote account as mirrored into the cache."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    uin: int
    name: str = ""
    phone: str = ""
    avatar_id: str = Field(default="", description="Reference to the avatar image")
    sex: Sex = Sex.UNKNOWN

    @field_validator("name", "phone", "avatar_id", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        """Missing optional strings are stored as empty strings."""
        if value is None:
            return ""
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("sex", mode="before")
    @classmethod
    def unknown_sex(cls, value: Any) -> Any:
        """Codes outside the known set fall back to ``Sex.UNKNOWN``."""
        if value is None:
            return Sex.UNKNOWN
        try:
            return Sex(int(value))
        except (TypeError, ValueError):
            return Sex.UNKNOWN

    @property
    def identifier(self) -> str:
        """The lookup key used by the cache (the uin as a string)."""
        return str(self.uin)
