"""API routes for user memories."""

import logging

from fastapi import APIRouter, status
from sqlalchemy import select

from marvin.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from marvin.db.models import Memory
from marvin.errors import ValidationError
from marvin.schemas.base import ApiResponse
from marvin.schemas.memories import MemoryCreate, MemoryRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memories", tags=["memories"])

MEMORY_NOT_FOUND = "Erinnerung nicht gefunden"


@router.get("", response_model=ApiResponse[list[MemoryRead]])
async def list_memories(user: CurrentUser, db: DbSession):
    """List the caller's memories, newest first."""
    result = await db.execute(
        select(Memory).where(Memory.user_id == user.id).order_by(Memory.created_at.desc())
    )
    memories = result.scalars().all()
    return ApiResponse(data=[MemoryRead.model_validate(m) for m in memories])


@router.post("", response_model=ApiResponse[MemoryRead], status_code=status.HTTP_201_CREATED)
async def create_memory(data: MemoryCreate, user: CurrentUser, db: DbSession):
    """Store a memory. Title and content are required."""
    if not data.title or not data.content:
        raise ValidationError("Titel und Inhalt sind erforderlich")

    memory = Memory(
        user_id=user.id,
        title=data.title,
        content=data.content,
        tags=data.tags,
        category=data.category,
        importance_score=data.importance_score,
    )
    db.add(memory)
    await db.commit()
    await db.refresh(memory)

    return ApiResponse(
        data=MemoryRead.model_validate(memory),
        message="Erinnerung erfolgreich hinzugefügt",
    )


@router.delete("/{memory_id}", response_model=ApiResponse[None])
async def delete_memory(memory_id: str, user: CurrentUser, db: DbSession):
    """Delete one of the caller's memories."""
    memory = await get_user_resource_or_404(
        db, Memory, memory_id, user.id, not_found_message=MEMORY_NOT_FOUND
    )
    await db.delete(memory)
    await db.commit()

    logger.info("Deleted memory %s of user %s", memory.id, user.id)
    return ApiResponse(message="Erinnerung erfolgreich gelöscht")
