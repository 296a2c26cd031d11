"""
SQLAlchemy 2.0 Models for Marvin.

Uses modern declarative syntax with Mapped[] type annotations.
Tables live in the managed Postgres of the backend; user ids come from its
auth service, so user_id columns carry no foreign key. Column types fall back
to JSON on non-Postgres engines (the test suite runs on SQLite).
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marvin.db.base import Base

StringList = JSON().with_variant(ARRAY(Text), "postgresql")
FloatList = JSON(none_as_null=True).with_variant(ARRAY(Float), "postgresql")
JsonDict = JSON(none_as_null=True).with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================


class MessageRole(str, PyEnum):
    """Role of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class SessionType(str, PyEnum):
    """Kind of chat session."""

    CHAT = "chat"
    ONBOARDING = "onboarding"
    ASSESSMENT = "assessment"


class PrivacyLevel(str, PyEnum):
    """How much profile data the user allows Marvin to use."""

    MINIMAL = "minimal"
    STANDARD = "standard"
    FULL = "full"


class MemoryCategory(str, PyEnum):
    """Category of a user memory."""

    GOAL = "goal"
    INSIGHT = "insight"
    PATTERN = "pattern"
    TRIGGER = "trigger"
    STRENGTH = "strength"


# =============================================================================
# MODELS
# =============================================================================


class Profile(Base):
    """
    Per-user preference and consent record.

    One row per user; written by upsert from onboarding and the profile page.
    """

    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    year_of_birth: Mapped[Optional[int]] = mapped_column(nullable=True)
    birth_time: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    birth_place: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Human Design
    hd_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    hd_strategy: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    hd_authority: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Astrology
    astro_sun_sign: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    astro_moon_sign: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    astro_rising_sign: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    consent_data_processing: Mapped[bool] = mapped_column(default=False, nullable=False)
    consent_timestamp: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    privacy_level: Mapped[str] = mapped_column(
        String(16), default=PrivacyLevel.STANDARD.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )


class ChatSession(Base):
    """
    Bounded conversation thread.

    Messages accumulate monotonically; message_count and total_tokens
    are bumped by the chat handler after each exchange.
    """

    __tablename__ = "sessions"
    __table_args__ = (Index("idx_sessions_user_started_at", "user_id", "started_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    message_count: Mapped[int] = mapped_column(default=0, nullable=False)
    total_tokens: Mapped[int] = mapped_column(default=0, nullable=False)
    session_type: Mapped[str] = mapped_column(
        String(16), default=SessionType.CHAT.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="session", cascade="all, delete-orphan"
    )


class Message(Base):
    """
    One role-tagged utterance within a session.

    Append-only: rows are never updated after insert.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_session_created_at", "session_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tokens: Mapped[Optional[int]] = mapped_column(nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    temperature: Mapped[Optional[float]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JsonDict, nullable=True)

    # Relationships
    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="messages")


class Memory(Base):
    """Free-text note about the user, created and deleted by the user."""

    __tablename__ = "memories"
    __table_args__ = (Index("idx_memories_user_created_at", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(StringList, default=list, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    importance_score: Mapped[int] = mapped_column(default=5, nullable=False)
    last_referenced: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )


class Document(Base):
    """
    Uploaded document and its extracted text.

    The original file sits in object storage under storage_path.
    """

    __tablename__ = "documents"
    __table_args__ = (Index("idx_documents_user_created_at", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    chunk_count: Mapped[int] = mapped_column(default=0, nullable=False)
    file_size: Mapped[int] = mapped_column(nullable=False)
    file_type: Mapped[str] = mapped_column(String(128), nullable=False)
    storage_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    chunks: Mapped[list["DocumentChunk"]] = relationship(
        "DocumentChunk", back_populates="document", cascade="all, delete-orphan"
    )


class DocumentChunk(Base):
    """Slice of a document's text, optionally with its embedding."""

    __tablename__ = "document_chunks"
    __table_args__ = (
        Index("idx_document_chunks_document_id", "document_id"),
        Index("idx_document_chunks_user_id", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    document_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    chunk_index: Mapped[int] = mapped_column(nullable=False)
    token_count: Mapped[int] = mapped_column(default=0, nullable=False)
    embedding: Mapped[Optional[list[float]]] = mapped_column(FloatList, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    document: Mapped["Document"] = relationship("Document", back_populates="chunks")
