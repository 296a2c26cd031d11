"""
Session store: chat sessions and their messages.

All lookups are scoped by user_id at the SQL level. A session that does not
exist and a session owned by someone else are indistinguishable to the
caller (both raise NotFoundError). Database failures surface as
UpstreamError.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marvin.db.models import ChatSession, Message, MessageRole, SessionType
from marvin.errors import NotFoundError, UpstreamError
from marvin.services.text import DEFAULT_SESSION_TITLE

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Session nicht gefunden"


def parse_session_id(raw: str | UUID) -> UUID:
    """Parse a client-supplied session id; malformed ids are simply not found."""
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError as e:
        raise NotFoundError(SESSION_NOT_FOUND) from e


class SessionStore:
    """Repository for sessions and messages bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_owned_session(self, session_id: UUID, user_id: UUID) -> ChatSession:
        """
        Fetch a session the user owns.

        Raises:
            NotFoundError: If absent or owned by another user
            UpstreamError: If the query fails
        """
        try:
            result = await self.db.execute(
                select(ChatSession).where(
                    ChatSession.id == session_id, ChatSession.user_id == user_id
                )
            )
            session = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Failed to load session %s", session_id)
            raise UpstreamError("Fehler beim Laden der Session") from e

        if session is None:
            raise NotFoundError(SESSION_NOT_FOUND)
        return session

    async def list_sessions(self, user_id: UUID) -> Sequence[ChatSession]:
        """All sessions of a user, most recently started first."""
        try:
            result = await self.db.execute(
                select(ChatSession)
                .where(ChatSession.user_id == user_id)
                .order_by(ChatSession.started_at.desc())
            )
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Failed to list sessions for user %s", user_id)
            raise UpstreamError("Fehler beim Laden der Sessions") from e

    async def create_session(
        self,
        user_id: UUID,
        title: str | None = None,
        session_type: SessionType = SessionType.CHAT,
        deactivate_others: bool = False,
    ) -> ChatSession:
        """
        Create a session for the user.

        With deactivate_others the user's existing active sessions are
        closed first, leaving the new one as the only active session.
        """
        now = datetime.now(timezone.utc)
        try:
            if deactivate_others:
                await self.db.execute(
                    update(ChatSession)
                    .where(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
                    .values(is_active=False, ended_at=now)
                )

            session = ChatSession(
                user_id=user_id,
                title=title or DEFAULT_SESSION_TITLE,
                started_at=now,
                session_type=SessionType(session_type).value,
                is_active=True,
            )
            self.db.add(session)
            await self.db.commit()
            await self.db.refresh(session)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to create session for user %s", user_id)
            raise UpstreamError("Fehler beim Erstellen der Session") from e

        return session

    async def end_session(self, session: ChatSession) -> ChatSession:
        """Mark a session inactive. Already-ended sessions keep their ended_at."""
        if not session.is_active:
            return session
        try:
            session.is_active = False
            session.ended_at = datetime.now(timezone.utc)
            await self.db.commit()
            await self.db.refresh(session)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to end session %s", session.id)
            raise UpstreamError("Fehler beim Beenden der Session") from e
        return session

    async def list_messages(self, session_id: UUID) -> Sequence[Message]:
        """Messages of a session in creation order."""
        try:
            result = await self.db.execute(
                select(Message)
                .where(Message.session_id == session_id)
                .order_by(Message.created_at.asc())
            )
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Failed to load messages for session %s", session_id)
            raise UpstreamError("Fehler beim Laden der Nachrichten") from e

    async def append_message(
        self,
        session_id: UUID,
        role: MessageRole,
        content: str,
        *,
        tokens: int | None = None,
        model: str | None = None,
        temperature: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """
        Persist one message and commit immediately.

        Committing per message keeps the user's message even if generating
        or saving the reply fails afterwards.
        """
        message = Message(
            session_id=session_id,
            role=MessageRole(role).value,
            content=content,
            tokens=tokens,
            model=model,
            temperature=temperature,
            metadata_=metadata,
        )
        try:
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to save %s message in session %s", role, session_id)
            if MessageRole(role) == MessageRole.ASSISTANT:
                raise UpstreamError("Fehler beim Speichern der AI-Antwort") from e
            raise UpstreamError("Fehler beim Speichern der Nachricht") from e

        return message

    async def record_exchange(
        self,
        session: ChatSession,
        message_count: int,
        tokens: int,
        title: str | None = None,
    ) -> ChatSession:
        """Bump counters after a chat exchange and optionally retitle the session."""
        try:
            session.message_count += message_count
            session.total_tokens += tokens
            if title:
                session.title = title
            await self.db.commit()
            await self.db.refresh(session)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to update counters of session %s", session.id)
            raise UpstreamError("Fehler beim Aktualisieren der Session") from e
        return session
