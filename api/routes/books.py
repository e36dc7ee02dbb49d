"""
Book Routes

REST endpoints for documents, chapters, reading progress and publishing.
Publish validation is authoritative: every readiness rule is re-checked
here regardless of what the client evaluated.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config.constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_LICENSE,
    DESCRIPTION_MAX_LENGTH,
    MAX_TAGS,
    MIN_TAGS,
    MIN_TOTAL_PAGES,
    SUBTITLE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from config.logging_config import get_logger
from bookstudio.publishing.readiness import SLOTS_REASON, pages_reason, tags_reason
from api.repository import TAG_CATALOG, BookRepository, DocumentRecord
from api.security import Identity, get_current_user

logger = get_logger(__name__)

router = APIRouter(tags=["books"])


# ==============================================================================
# REQUEST MODELS
# ==============================================================================

class DocumentCreate(BaseModel):
    """Request to create a document"""
    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    subtitle: str = Field(default="", max_length=SUBTITLE_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    language: str = Field(default=DEFAULT_LANGUAGE)
    cover_ref: Optional[str] = Field(default=None, description="Opaque cover image reference")
    license: str = Field(default=DEFAULT_LICENSE)
    tag_ids: List[str] = Field(default_factory=list)


class DocumentUpdate(BaseModel):
    """Mutable metadata; any title sent is ignored"""
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    subtitle: Optional[str] = Field(default=None, max_length=SUBTITLE_MAX_LENGTH)
    cover_ref: Optional[str] = None
    license: Optional[str] = None


class ChapterWrite(BaseModel):
    """Chapter create/update body"""
    number: int = Field(..., ge=1)
    title: str = Field(default="")
    content: str = Field(default="")
    page_count: Optional[int] = Field(default=None, description="Client estimate; recomputed here")


class ReorderRequest(BaseModel):
    chapter_ids: List[str]


class ProgressWrite(BaseModel):
    current_chapter_id: str
    progress_percent: int = Field(..., ge=0, le=100)


class PublishRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tag_ids: List[str] = Field(default_factory=list, alias="tagIds")


# ==============================================================================
# HELPERS
# ==============================================================================

def get_repository(request: Request) -> BookRepository:
    return request.app.state.repository


def _document_or_404(repo: BookRepository, document_id: str) -> DocumentRecord:
    record = repo.get_document(document_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return record


def _owned_document(repo: BookRepository, document_id: str, user: Identity) -> DocumentRecord:
    record = _document_or_404(repo, document_id)
    if record.owner != user.user_id:
        raise HTTPException(status_code=403, detail="Only the author can change this book")
    return record


def _chapter_response(repo: BookRepository, chapter) -> dict:
    data = repo.chapter_to_dict(chapter)
    total_pages, chapter_count = repo.document_totals(chapter.document_id)
    data["book_page_count"] = total_pages
    data["book_chapter_count"] = chapter_count
    return data


# ==============================================================================
# DOCUMENTS
# ==============================================================================

@router.post("/documents", status_code=201)
async def create_document(
    body: DocumentCreate,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    record = repo.create_document(user.user_id, body.model_dump())
    logger.info(f"Document created: {record.id} by {user.user_id}")
    return repo.document_to_dict(record)


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    repo: BookRepository = Depends(get_repository),
):
    return repo.document_to_dict(_document_or_404(repo, document_id))


@router.put("/documents/{document_id}")
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _owned_document(repo, document_id, user)
    fields = body.model_dump(exclude_none=True)
    record = repo.update_document(document_id, fields)
    return repo.document_to_dict(record)


# ==============================================================================
# CHAPTERS
# ==============================================================================

@router.get("/documents/{document_id}/chapters")
async def list_chapters(
    document_id: str,
    repo: BookRepository = Depends(get_repository),
):
    _document_or_404(repo, document_id)
    return {"chapters": [repo.chapter_to_dict(c) for c in repo.list_chapters(document_id)]}


@router.post("/documents/{document_id}/chapters", status_code=201)
async def create_chapter(
    document_id: str,
    body: ChapterWrite,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _owned_document(repo, document_id, user)
    chapter = repo.create_chapter(document_id, body.number, body.title, body.content)
    logger.info(f"Chapter {chapter.number} created in {document_id}: {chapter.id}")
    return _chapter_response(repo, chapter)


# Registered before /chapters/{chapter_id} so "reorder" is not taken as an id
@router.put("/documents/{document_id}/chapters/reorder")
async def reorder_chapters(
    document_id: str,
    body: ReorderRequest,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _owned_document(repo, document_id, user)
    current = {c.id for c in repo.list_chapters(document_id)}
    if len(body.chapter_ids) != len(current) or set(body.chapter_ids) != current:
        raise HTTPException(
            status_code=400,
            detail="chapter_ids must list every chapter of the document exactly once",
        )
    repo.reorder(document_id, body.chapter_ids)
    return {"chapters": [repo.chapter_to_dict(c) for c in repo.list_chapters(document_id)]}


@router.put("/documents/{document_id}/chapters/{chapter_id}")
async def update_chapter(
    document_id: str,
    chapter_id: str,
    body: ChapterWrite,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _owned_document(repo, document_id, user)
    chapter = repo.get_chapter(document_id, chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail=f"Chapter not found: {chapter_id}")
    repo.update_chapter(chapter, body.number, body.title, body.content)
    return _chapter_response(repo, chapter)


@router.delete("/documents/{document_id}/chapters/{chapter_id}", status_code=204)
async def delete_chapter(
    document_id: str,
    chapter_id: str,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _owned_document(repo, document_id, user)
    chapter = repo.get_chapter(document_id, chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail=f"Chapter not found: {chapter_id}")
    repo.delete_chapter(chapter)
    logger.info(f"Chapter {chapter_id} deleted from {document_id}")
    return Response(status_code=204)


# ==============================================================================
# READING PROGRESS
# ==============================================================================

@router.get("/documents/{document_id}/reading-progress")
async def get_reading_progress(
    document_id: str,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _document_or_404(repo, document_id)
    progress = repo.get_progress(user.user_id, document_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="No reading progress yet")
    return {
        "current_chapter_id": progress.current_chapter_id,
        "progress_percent": progress.progress_percent,
        "updated_at": progress.updated_at.isoformat(),
    }


@router.post("/documents/{document_id}/reading-progress")
async def save_reading_progress(
    document_id: str,
    body: ProgressWrite,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    _document_or_404(repo, document_id)
    if repo.get_chapter(document_id, body.current_chapter_id) is None:
        raise HTTPException(status_code=400, detail="Chapter does not belong to this document")
    progress = repo.save_progress(
        user.user_id, document_id, body.current_chapter_id, body.progress_percent
    )
    return {
        "current_chapter_id": progress.current_chapter_id,
        "progress_percent": progress.progress_percent,
        "updated_at": progress.updated_at.isoformat(),
    }


# ==============================================================================
# PUBLISHING
# ==============================================================================

@router.get("/tags")
async def list_tags():
    return {"tags": TAG_CATALOG}


@router.get("/publish-slots")
async def get_publish_slots(
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    return {"remaining": repo.remaining_slots(user.user_id), "limit": repo.weekly_limit}


def _rejection(reason: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": reason})


@router.post("/documents/{document_id}/publish")
async def publish_document(
    document_id: str,
    body: PublishRequest,
    user: Identity = Depends(get_current_user),
    repo: BookRepository = Depends(get_repository),
):
    record = _owned_document(repo, document_id, user)

    if record.published:
        return _rejection("This book has already been published")

    total_pages, _ = repo.document_totals(document_id)
    if total_pages < MIN_TOTAL_PAGES:
        return _rejection(pages_reason(total_pages))

    tag_ids = list(dict.fromkeys(body.tag_ids))
    if not MIN_TAGS <= len(tag_ids) <= MAX_TAGS:
        return _rejection(tags_reason(len(tag_ids)))
    known = {tag["id"] for tag in TAG_CATALOG}
    unknown = [t for t in tag_ids if t not in known]
    if unknown:
        return _rejection(f"Unknown tags: {', '.join(unknown)}")

    if repo.remaining_slots(user.user_id) <= 0:
        return _rejection(SLOTS_REASON)

    repo.mark_published(record, tag_ids)
    logger.info(f"Document {document_id} published with tags {tag_ids}")
    return {"published": True, "document": repo.document_to_dict(record)}
