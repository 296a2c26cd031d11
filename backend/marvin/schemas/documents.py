"""Document schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from marvin.schemas.base import BaseSchema, IDMixin


class DocumentRead(BaseSchema, IDMixin):
    """Document metadata; extracted text is not returned in listings."""

    user_id: UUID
    filename: str
    chunk_count: int
    file_size: int
    file_type: str
    created_at: datetime


class DocumentSearchHit(BaseModel):
    """One ranked chunk for a search query."""

    document_id: UUID
    source: str
    content: str
    chunk_index: int
    similarity: float
