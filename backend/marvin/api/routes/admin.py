"""Admin dashboard routes. Only admins may call these."""

from datetime import datetime, time, timezone

from fastapi import APIRouter
from sqlalchemy import func, select

from marvin.api.deps import AdminUser, Auth, DbSession
from marvin.db.models import ChatSession, Document, Message, Profile
from marvin.schemas.admin import AdminStats, AdminUser as AdminUserRow
from marvin.schemas.base import ApiResponse

router = APIRouter(prefix="/api/admin", tags=["admin"])

RECENT_USERS_LIMIT = 20


@router.get("/stats", response_model=ApiResponse[AdminStats])
async def get_stats(admin: AdminUser, db: DbSession):
    """Headline counters; "today" starts at midnight UTC."""
    midnight = datetime.combine(datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc)

    total_users = await db.scalar(select(func.count()).select_from(Profile))
    active_sessions = await db.scalar(
        select(func.count()).select_from(ChatSession).where(ChatSession.is_active.is_(True))
    )
    messages_today = await db.scalar(
        select(func.count()).select_from(Message).where(Message.created_at >= midnight)
    )
    uploaded_files = await db.scalar(select(func.count()).select_from(Document))

    return ApiResponse(
        data=AdminStats(
            total_users=total_users or 0,
            active_sessions=active_sessions or 0,
            messages_today=messages_today or 0,
            uploaded_files=uploaded_files or 0,
        )
    )


@router.get("/users", response_model=ApiResponse[list[AdminUserRow]])
async def list_users(
    admin: AdminUser,
    db: DbSession,
    auth: Auth,
):
    """Latest profiles with message and document counts."""
    result = await db.execute(
        select(Profile).order_by(Profile.created_at.desc()).limit(RECENT_USERS_LIMIT)
    )
    profiles = result.scalars().all()
    user_ids = [p.user_id for p in profiles]

    message_counts: dict = {}
    file_counts: dict = {}
    if user_ids:
        rows = await db.execute(
            select(ChatSession.user_id, func.count(Message.id))
            .join(Message, Message.session_id == ChatSession.id)
            .where(ChatSession.user_id.in_(user_ids))
            .group_by(ChatSession.user_id)
        )
        message_counts = dict(rows.all())

        rows = await db.execute(
            select(Document.user_id, func.count(Document.id))
            .where(Document.user_id.in_(user_ids))
            .group_by(Document.user_id)
        )
        file_counts = dict(rows.all())

    emails = await auth.list_user_emails()

    return ApiResponse(
        data=[
            AdminUserRow(
                id=p.user_id,
                email=emails.get(p.user_id),
                name=p.name or "Unbekannt",
                created_at=p.created_at,
                message_count=message_counts.get(p.user_id, 0),
                file_count=file_counts.get(p.user_id, 0),
            )
            for p in profiles
        ]
    )
