"""
Authentication Routes

Sign-up, sign-in and token refresh happen against the managed auth service
directly; this API only verifies the resulting access token.

Endpoints:
- GET /api/auth/me - Current user and whether onboarding is complete
"""

from fastapi import APIRouter
from sqlalchemy import select

from marvin.api.deps import AppSettings, CurrentUser, DbSession
from marvin.db.models import Profile
from marvin.schemas.auth import CurrentUserRead
from marvin.schemas.base import ApiResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me", response_model=ApiResponse[CurrentUserRead])
async def get_me(user: CurrentUser, db: DbSession, settings: AppSettings):
    """
    Get the authenticated caller.

    onboarding_complete is true once a profile with data-processing consent
    exists; clients route to onboarding otherwise.
    """
    result = await db.execute(
        select(Profile.consent_data_processing).where(Profile.user_id == user.id)
    )
    consent = result.scalar_one_or_none()

    return ApiResponse(
        data=CurrentUserRead(
            id=user.id,
            email=user.email,
            is_admin=user.is_admin(settings.admin_emails),
            onboarding_complete=bool(consent),
        )
    )
