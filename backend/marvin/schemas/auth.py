"""Authentication schemas."""

from uuid import UUID

from marvin.schemas.base import BaseSchema


class CurrentUserRead(BaseSchema):
    """Identity of the caller plus onboarding state."""

    id: UUID
    email: str | None = None
    is_admin: bool
    onboarding_complete: bool
