"""Memory schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from marvin.schemas.base import BaseSchema, IDMixin, TimestampMixin
from marvin.services.text import parse_tags


class MemoryCreate(BaseSchema):
    """
    Request to store a memory.

    Title and content are checked by the handler so a missing value gets the
    same German 400 message as an empty one. Tags may arrive as a list or as
    a comma-separated string.
    """

    title: str | None = None
    content: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: Literal["goal", "insight", "pattern", "trigger", "strength"] | None = None
    importance_score: int = Field(5, ge=1, le=10)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        if isinstance(value, str):
            return parse_tags(value)
        return value


class MemoryRead(BaseSchema, IDMixin, TimestampMixin):
    """Memory response."""

    user_id: UUID
    title: str
    content: str
    tags: list[str]
    category: str | None = None
    importance_score: int
    last_referenced: datetime
    is_active: bool
