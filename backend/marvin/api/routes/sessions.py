"""Session routes: create, list, read messages, end."""

import logging

from fastapi import APIRouter, status

from marvin.api.deps import AppSettings, CurrentUser, Store
from marvin.db.store import parse_session_id
from marvin.schemas.base import ApiResponse
from marvin.schemas.sessions import MessageRead, SessionCreateRequest, SessionRead
from marvin.services.text import DEFAULT_SESSION_TITLE, generate_session_title

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=ApiResponse[SessionRead], status_code=status.HTTP_201_CREATED)
async def create_session(
    user: CurrentUser,
    store: Store,
    settings: AppSettings,
    request: SessionCreateRequest | None = None,
):
    """
    Create a new chat session.

    Whether the user's other sessions are closed is controlled by the
    deactivate_previous_sessions setting.
    """
    title = DEFAULT_SESSION_TITLE
    if request is not None and request.title:
        title = generate_session_title(request.title)

    session = await store.create_session(
        user.id,
        title=title,
        deactivate_others=settings.deactivate_previous_sessions,
    )
    logger.info("Created session %s for user %s", session.id, user.id)
    return ApiResponse(data=SessionRead.model_validate(session))


@router.get("", response_model=ApiResponse[list[SessionRead]])
async def list_sessions(user: CurrentUser, store: Store):
    """List the caller's sessions, most recently started first."""
    sessions = await store.list_sessions(user.id)
    return ApiResponse(data=[SessionRead.model_validate(s) for s in sessions])


@router.get("/{session_id}/messages", response_model=ApiResponse[list[MessageRead]])
async def list_session_messages(session_id: str, user: CurrentUser, store: Store):
    """Messages of one of the caller's sessions, oldest first."""
    session = await store.get_owned_session(parse_session_id(session_id), user.id)
    messages = await store.list_messages(session.id)
    return ApiResponse(data=[MessageRead.model_validate(m) for m in messages])


@router.post("/{session_id}/end", response_model=ApiResponse[SessionRead])
async def end_session(session_id: str, user: CurrentUser, store: Store):
    """Mark one of the caller's sessions as finished."""
    session = await store.get_owned_session(parse_session_id(session_id), user.id)
    session = await store.end_session(session)
    return ApiResponse(data=SessionRead.model_validate(session), message="Session beendet")
