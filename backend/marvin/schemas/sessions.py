"""Pydantic schemas for sessions, messages and chat."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from marvin.schemas.base import BaseSchema, IDMixin
from marvin.services.classifier import is_valid_level


# Request schemas
class SessionCreateRequest(BaseModel):
    """Request to create a new session."""

    title: str | None = None


class ChatRequest(BaseModel):
    """
    Request to send a chat message.

    Both fields are optional at the schema level so the handler can answer
    missing values with its own 400 message.
    """

    message: str | None = None
    session_id: str | None = None


# Response schemas
class SessionRead(BaseSchema, IDMixin):
    """Chat session response."""

    user_id: UUID
    title: str | None = None
    started_at: datetime
    ended_at: datetime | None = None
    message_count: int
    total_tokens: int
    session_type: str
    is_active: bool


class MessageRead(BaseSchema, IDMixin):
    """Chat message response."""

    session_id: UUID
    role: str
    content: str
    tokens: int | None = None
    model: str | None = None
    temperature: float | None = None
    created_at: datetime
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("metadata_", "metadata")
    )


class InsightsRead(BaseModel):
    """Coarse tags extracted from one exchange."""

    emotions: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Assistant reply plus heuristic classification."""

    message: str
    session_id: UUID
    consciousness_level: str
    level_label: str
    level_progress: int
    insights: InsightsRead

    @field_validator("consciousness_level")
    @classmethod
    def check_level(cls, value: str) -> str:
        if not is_valid_level(value):
            raise ValueError(f"unknown consciousness level: {value}")
        return value
