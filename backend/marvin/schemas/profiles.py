"""Profile and onboarding schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from marvin.schemas.base import BaseSchema, IDMixin, TimestampMixin


class ProfileBase(BaseSchema):
    """Fields the user may edit."""

    name: str | None = Field(None, max_length=255)
    year_of_birth: int | None = Field(None, ge=1900, le=2100)
    birth_time: str | None = Field(None, max_length=16)
    birth_place: str | None = Field(None, max_length=255)
    hd_type: str | None = None
    hd_strategy: str | None = None
    hd_authority: str | None = None
    astro_sun_sign: str | None = None
    astro_moon_sign: str | None = None
    astro_rising_sign: str | None = None


class ProfileUpdate(ProfileBase):
    """Profile upsert. Only fields sent by the client are written."""

    consent_data_processing: bool | None = None
    privacy_level: Literal["minimal", "standard", "full"] | None = None


class OnboardingRequest(BaseSchema):
    """First-run form: basic data plus mandatory consent."""

    name: str | None = Field(None, max_length=255)
    year_of_birth: int | None = Field(None, ge=1900, le=2100)
    birth_time: str | None = Field(None, max_length=16)
    birth_place: str | None = Field(None, max_length=255)
    consent_data_processing: bool = False


class ProfileRead(ProfileBase, IDMixin, TimestampMixin):
    """Full profile response."""

    user_id: UUID
    consent_data_processing: bool
    consent_timestamp: datetime | None = None
    privacy_level: str
