"""Admin dashboard schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class AdminStats(BaseModel):
    """Headline counters."""

    total_users: int
    active_sessions: int
    messages_today: int
    uploaded_files: int
    system_status: str = "healthy"


class AdminUser(BaseModel):
    """One row of the admin user list."""

    id: UUID
    email: str | None = None
    name: str
    created_at: datetime
    last_login: datetime | None = None
    message_count: int
    file_count: int
    is_active: bool = True
