"""Base schema configuration."""

from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime
    updated_at: datetime


class IDMixin(BaseModel):
    """Mixin for UUID primary key."""

    id: UUID


class ApiResponse(BaseModel, Generic[T]):
    """
    Uniform response envelope.

    Successful responses carry data (and optionally a message for the UI);
    failures carry error and are produced by the exception handlers.
    """

    success: bool = True
    data: T | None = None
    error: str | None = None
    message: str | None = None
