"""Profile and onboarding routes."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import APIRouter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marvin.api.deps import CurrentUser, DbSession
from marvin.db.models import Profile
from marvin.errors import NotFoundError, ValidationError
from marvin.schemas.base import ApiResponse
from marvin.schemas.profiles import OnboardingRequest, ProfileRead, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profile"])


async def _upsert_profile(db: AsyncSession, user_id: UUID, values: dict[str, Any]) -> Profile:
    """
    Insert or update the user's profile with the given values.

    Granting consent stamps consent_timestamp; revoking it clears the stamp.
    """
    # Non-nullable columns keep their value when the client sends null
    for key in ("consent_data_processing", "privacy_level"):
        if key in values and values[key] is None:
            del values[key]

    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()

    if profile is None:
        profile = Profile(user_id=user_id)
        db.add(profile)

    consent = values.get("consent_data_processing")
    if consent is True and not profile.consent_data_processing:
        values["consent_timestamp"] = datetime.now(timezone.utc)
    elif consent is False:
        values["consent_timestamp"] = None

    for key, value in values.items():
        setattr(profile, key, value)

    await db.commit()
    await db.refresh(profile)
    return profile


@router.get("/profile", response_model=ApiResponse[ProfileRead])
async def get_profile(user: CurrentUser, db: DbSession):
    """Get the caller's profile."""
    result = await db.execute(select(Profile).where(Profile.user_id == user.id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Profil nicht gefunden")
    return ApiResponse(data=ProfileRead.model_validate(profile))


@router.put("/profile", response_model=ApiResponse[ProfileRead])
async def update_profile(data: ProfileUpdate, user: CurrentUser, db: DbSession):
    """Create or update the caller's profile. Only fields sent are written."""
    profile = await _upsert_profile(db, user.id, data.model_dump(exclude_unset=True))
    return ApiResponse(
        data=ProfileRead.model_validate(profile),
        message="Profil erfolgreich aktualisiert",
    )


@router.post("/onboarding", response_model=ApiResponse[ProfileRead])
async def complete_onboarding(data: OnboardingRequest, user: CurrentUser, db: DbSession):
    """Store the onboarding form. Consent to data processing is mandatory."""
    if not data.consent_data_processing:
        raise ValidationError("Bitte stimmen Sie der Datenverarbeitung zu, um fortzufahren.")

    profile = await _upsert_profile(db, user.id, data.model_dump(exclude_none=True))
    logger.info("User %s completed onboarding", user.id)
    return ApiResponse(data=ProfileRead.model_validate(profile))
