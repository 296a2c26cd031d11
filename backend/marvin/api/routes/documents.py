"""
API routes for document upload, listing, deletion and search.

Flow for an upload:
1. Validate type and size, extract the PDF's text
2. Split the text into overlapping chunks and embed them (when enabled)
3. Store the original bytes in object storage
4. Persist the document and its chunks
"""

import logging
from uuid import uuid4

from fastapi import APIRouter, File, Query, UploadFile, status
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from marvin.api.deps import (
    AppSettings,
    Completion,
    CurrentUser,
    DbSession,
    Storage,
    get_user_resource_or_404,
)
from marvin.db.models import Document, DocumentChunk
from marvin.errors import UpstreamError, ValidationError
from marvin.schemas.base import ApiResponse
from marvin.schemas.documents import DocumentRead, DocumentSearchHit
from marvin.services.documents import (
    PDF_MIME_TYPE,
    PDFProcessor,
    is_valid_pdf_upload,
    read_upload,
)
from marvin.services.retrieval import chunk_text, rank_chunks
from marvin.services.text import estimate_tokens, format_file_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])

DOCUMENT_NOT_FOUND = "Dokument nicht gefunden"


# =============================================================================
# UPLOAD
# =============================================================================


@router.post("/upload", response_model=ApiResponse[DocumentRead], status_code=status.HTTP_201_CREATED)
async def upload_document(
    user: CurrentUser,
    db: DbSession,
    storage: Storage,
    completion: Completion,
    settings: AppSettings,
    file: UploadFile | None = File(None),
):
    """Upload a PDF, extract and chunk its text and store everything."""
    if file is None or not file.filename:
        raise ValidationError("Keine Datei hochgeladen")

    max_size = settings.max_upload_size_bytes
    rejected = ValidationError(f"Nur PDF-Dateien bis {format_file_size(max_size)} sind erlaubt")
    if file.content_type != PDF_MIME_TYPE:
        raise rejected

    pdf_bytes = await read_upload(file, max_size)
    if pdf_bytes is None or not is_valid_pdf_upload(file.content_type, len(pdf_bytes), max_size):
        raise rejected

    extracted = await PDFProcessor.extract_text(pdf_bytes)
    chunks = chunk_text(extracted.text, settings.chunk_size, settings.chunk_overlap)
    logger.info(
        "Extracted %d chars (%d pages, %d chunks) from %s",
        len(extracted.text),
        extracted.page_count,
        len(chunks),
        file.filename,
    )

    embeddings: list[list[float] | None] = [None] * len(chunks)
    if settings.embed_documents:
        embeddings = [await completion.embed(chunk) for chunk in chunks]

    document_id = uuid4()
    storage_path = storage.build_key(user.id, document_id, file.filename)
    await storage.upload_file(storage_path, pdf_bytes, PDF_MIME_TYPE)

    document = Document(
        id=document_id,
        user_id=user.id,
        filename=file.filename,
        content=extracted.text,
        chunk_count=len(chunks),
        file_size=len(pdf_bytes),
        file_type=file.content_type,
        storage_path=storage_path,
    )
    db.add(document)
    for index, (chunk, embedding) in enumerate(zip(chunks, embeddings)):
        db.add(
            DocumentChunk(
                document_id=document_id,
                user_id=user.id,
                content=chunk,
                chunk_index=index,
                token_count=estimate_tokens(chunk),
                embedding=embedding,
            )
        )

    try:
        await db.commit()
    except SQLAlchemyError:
        # Don't leave an orphaned file behind
        await db.rollback()
        await storage.delete_file(storage_path)
        raise
    await db.refresh(document)

    return ApiResponse(
        data=DocumentRead.model_validate(document),
        message=f"{file.filename} ({format_file_size(len(pdf_bytes))}) erfolgreich hochgeladen",
    )


# =============================================================================
# LIST / DELETE
# =============================================================================


@router.get("/documents", response_model=ApiResponse[list[DocumentRead]])
async def list_documents(user: CurrentUser, db: DbSession):
    """List the caller's documents, newest first."""
    result = await db.execute(
        select(Document).where(Document.user_id == user.id).order_by(Document.created_at.desc())
    )
    documents = result.scalars().all()
    return ApiResponse(data=[DocumentRead.model_validate(d) for d in documents])


@router.delete("/documents", response_model=ApiResponse[None])
async def delete_document(
    user: CurrentUser,
    db: DbSession,
    storage: Storage,
    id: str | None = Query(None),
):
    """Delete one of the caller's documents with its chunks and stored file."""
    if not id:
        raise ValidationError("Dokument-ID ist erforderlich")

    document = await get_user_resource_or_404(
        db, Document, id, user.id, not_found_message=DOCUMENT_NOT_FOUND
    )

    storage_path = document.storage_path
    await db.execute(delete(DocumentChunk).where(DocumentChunk.document_id == document.id))
    await db.delete(document)
    await db.commit()

    # The stored file is removed only once its rows are gone
    if storage_path:
        await storage.delete_file(storage_path)

    logger.info("Deleted document %s of user %s", document.id, user.id)
    return ApiResponse(message="Dokument erfolgreich gelöscht")


# =============================================================================
# SEARCH
# =============================================================================


@router.get("/documents/search", response_model=ApiResponse[list[DocumentSearchHit]])
async def search_documents(
    user: CurrentUser,
    db: DbSession,
    completion: Completion,
    settings: AppSettings,
    q: str = Query(""),
    limit: int | None = Query(None, ge=1, le=50),
):
    """
    Rank the caller's embedded chunks against a query.

    Chunks stored without an embedding never match.
    """
    query = q.strip()
    if not query:
        raise ValidationError("Suchbegriff ist erforderlich")

    query_embedding = await completion.embed(query)

    result = await db.execute(
        select(DocumentChunk, Document.filename)
        .join(Document, DocumentChunk.document_id == Document.id)
        .where(DocumentChunk.user_id == user.id, DocumentChunk.embedding.is_not(None))
    )
    rows = result.all()
    sources = {chunk.id: filename for chunk, filename in rows}

    try:
        ranked = rank_chunks(
            query_embedding,
            [chunk for chunk, _ in rows],
            limit or settings.search_default_limit,
        )
    except ValueError as e:
        raise UpstreamError() from e

    return ApiResponse(
        data=[
            DocumentSearchHit(
                document_id=chunk.document_id,
                source=sources[chunk.id],
                content=chunk.content,
                chunk_index=chunk.chunk_index,
                similarity=score,
            )
            for chunk, score in ranked
        ]
    )
