"""API routes package."""

from marvin.api.routes import (
    admin,
    auth,
    chat,
    documents,
    info,
    memories,
    profile,
    sessions,
)

__all__ = [
    "admin",
    "auth",
    "chat",
    "documents",
    "info",
    "memories",
    "profile",
    "sessions",
]
