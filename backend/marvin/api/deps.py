"""
FastAPI Dependencies for Authentication, Authorization and Clients.

Key patterns:
1. get_current_user: Verifies the access token, returns AuthenticatedUser
2. User-scoped queries: All lookups accept user_id to enforce ownership
3. No global clients - everything external is built in the app lifespan,
   stored on app.state and handed out here (tests override these functions)
"""

from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marvin.config import Settings, get_settings
from marvin.db.session import get_db
from marvin.db.store import SessionStore
from marvin.errors import AuthError, ForbiddenError, NotFoundError, UpstreamError
from marvin.services.auth import AuthenticatedUser, SupabaseAuth
from marvin.services.completion import CompletionClient
from marvin.services.storage import StorageService


# =============================================================================
# CLIENTS
# =============================================================================


def get_auth(request: Request) -> SupabaseAuth:
    return request.app.state.auth


def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    sb_access_token: Annotated[str | None, Cookie(alias="sb-access-token")] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract the access token from the request.

    Supports (in order of preference):
    1. Cookie 'sb-access-token' or 'access_token' (set by the web client)
    2. Authorization header: 'Bearer <token>'
    """
    if sb_access_token:
        return sb_access_token
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise AuthError()


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    auth: Annotated[SupabaseAuth, Depends(get_auth)],
) -> AuthenticatedUser:
    """
    Validate the token and return the authenticated caller.

    Use it in route handlers:

        @router.get("/sessions")
        async def list_sessions(user: CurrentUser):
            ...

    Raises AuthError (401) if the token is missing, invalid or expired.
    """
    return await auth.verify_token(token)


async def require_admin(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthenticatedUser:
    """Allow only admins (see AuthenticatedUser.is_admin)."""
    if not user.is_admin(settings.admin_emails):
        raise ForbiddenError()
    return user


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> SessionStore:
    return SessionStore(db)


# Type aliases for dependency injection
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[SessionStore, Depends(get_store)]
Completion = Annotated[CompletionClient, Depends(get_completion_client)]
Storage = Annotated[StorageService, Depends(get_storage)]
Auth = Annotated[SupabaseAuth, Depends(get_auth)]
AppSettings = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


async def get_user_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID | str,
    user_id: UUID,
    *,
    not_found_message: str | None = None,
):
    """
    Fetch a user-owned resource by ID.

    Usage:
        memory = await get_user_resource_or_404(db, Memory, memory_id, user.id)

    Malformed IDs, missing rows and rows of other users all raise
    NotFoundError, so existence is never revealed.
    """
    try:
        resource_id = resource_id if isinstance(resource_id, UUID) else UUID(str(resource_id))
    except ValueError as e:
        raise NotFoundError(not_found_message) from e

    try:
        result = await db.execute(
            select(model).where(model.id == resource_id, model.user_id == user_id)
        )
        resource = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        raise UpstreamError() from e

    if resource is None:
        raise NotFoundError(not_found_message)

    return resource
