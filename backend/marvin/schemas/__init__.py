"""Pydantic schemas for API request/response validation."""

from marvin.schemas.base import ApiResponse
from marvin.schemas.auth import CurrentUserRead
from marvin.schemas.profiles import OnboardingRequest, ProfileRead, ProfileUpdate
from marvin.schemas.sessions import (
    ChatRequest,
    ChatResponse,
    InsightsRead,
    MessageRead,
    SessionCreateRequest,
    SessionRead,
)
from marvin.schemas.memories import MemoryCreate, MemoryRead
from marvin.schemas.documents import DocumentRead, DocumentSearchHit
from marvin.schemas.admin import AdminStats, AdminUser

__all__ = [
    # Envelope
    "ApiResponse",
    # Auth
    "CurrentUserRead",
    # Profiles
    "OnboardingRequest",
    "ProfileRead",
    "ProfileUpdate",
    # Sessions and chat
    "ChatRequest",
    "ChatResponse",
    "InsightsRead",
    "MessageRead",
    "SessionCreateRequest",
    "SessionRead",
    # Memories
    "MemoryCreate",
    "MemoryRead",
    # Documents
    "DocumentRead",
    "DocumentSearchHit",
    # Admin
    "AdminStats",
    "AdminUser",
]
