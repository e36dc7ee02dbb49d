"""
Book Repository - in-memory storage for the reference persistence service.

Keeps documents, chapters, reading progress and the publish log. Chapter
page counts are recomputed from content on every write, so document
totals are always derived, never trusted from the client.
"""

import uuid
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from bookstudio.pagination import compute_metrics

logger = logging.getLogger(__name__)

PUBLISH_WINDOW = timedelta(days=7)

TAG_CATALOG = [
    {"id": "fantasy", "name": "Fantasy"},
    {"id": "science-fiction", "name": "Science Fiction"},
    {"id": "romance", "name": "Romance"},
    {"id": "mystery", "name": "Mystery"},
    {"id": "thriller", "name": "Thriller"},
    {"id": "horror", "name": "Horror"},
    {"id": "historical", "name": "Historical"},
    {"id": "adventure", "name": "Adventure"},
    {"id": "young-adult", "name": "Young Adult"},
    {"id": "poetry", "name": "Poetry"},
    {"id": "non-fiction", "name": "Non-fiction"},
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DocumentRecord:
    id: str
    owner: str
    title: str
    subtitle: str = ""
    description: str = ""
    language: str = "en"
    cover_ref: Optional[str] = None
    license: str = "all-rights-reserved"
    tag_ids: List[str] = field(default_factory=list)
    published: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    published_at: Optional[datetime] = None


@dataclass
class ChapterRecord:
    id: str
    document_id: str
    number: int
    title: str
    content: str = ""
    word_count: int = 0
    page_count: int = 1
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class ProgressRecord:
    current_chapter_id: str
    progress_percent: int
    updated_at: datetime = field(default_factory=_utcnow)


class BookRepository:
    """
    In-memory repository for books.

    Usage:
        repo = BookRepository()
        doc = repo.create_document("alice", {"title": "My Book"})
        chapter = repo.create_chapter(doc.id, 1, "Chapter 1", "<p>...</p>")
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow, weekly_limit: int = 2):
        self.clock = clock
        self.weekly_limit = weekly_limit
        self.documents: Dict[str, DocumentRecord] = {}
        self.chapters: Dict[str, ChapterRecord] = {}
        self.progress: Dict[Tuple[str, str], ProgressRecord] = {}
        self.publish_log: Dict[str, List[datetime]] = {}
        logger.info("BookRepository initialized (in-memory)")

    # ==========================================================================
    # Documents
    # ==========================================================================

    def create_document(self, owner: str, fields: Dict) -> DocumentRecord:
        now = self.clock()
        record = DocumentRecord(
            id=uuid.uuid4().hex,
            owner=owner,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.documents[record.id] = record
        return record

    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        return self.documents.get(document_id)

    def update_document(self, document_id: str, fields: Dict) -> DocumentRecord:
        record = self.documents[document_id]
        for key, value in fields.items():
            setattr(record, key, value)
        record.updated_at = self.clock()
        return record

    def document_totals(self, document_id: str) -> Tuple[int, int]:
        """(total_pages, chapter_count) derived from stored chapters"""
        chapters = self.list_chapters(document_id)
        return sum(c.page_count for c in chapters), len(chapters)

    def document_to_dict(self, record: DocumentRecord) -> Dict:
        data = asdict(record)
        data.pop("owner")
        total_pages, chapter_count = self.document_totals(record.id)
        data["total_pages"] = total_pages
        data["chapter_count"] = chapter_count
        for key in ("created_at", "updated_at", "published_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    # ==========================================================================
    # Chapters
    # ==========================================================================

    def list_chapters(self, document_id: str) -> List[ChapterRecord]:
        chapters = [c for c in self.chapters.values() if c.document_id == document_id]
        return sorted(chapters, key=lambda c: (c.number, c.created_at))

    def get_chapter(self, document_id: str, chapter_id: str) -> Optional[ChapterRecord]:
        chapter = self.chapters.get(chapter_id)
        if chapter is None or chapter.document_id != document_id:
            return None
        return chapter

    def create_chapter(self, document_id: str, number: int, title: str, content: str) -> ChapterRecord:
        metrics = compute_metrics(content)
        now = self.clock()
        record = ChapterRecord(
            id=uuid.uuid4().hex,
            document_id=document_id,
            number=number,
            title=title,
            content=content,
            word_count=metrics.word_count,
            page_count=metrics.page_count,
            created_at=now,
            updated_at=now,
        )
        self.chapters[record.id] = record
        return record

    def update_chapter(self, chapter: ChapterRecord, number: int, title: str, content: str) -> ChapterRecord:
        metrics = compute_metrics(content)
        chapter.number = number
        chapter.title = title
        chapter.content = content
        chapter.word_count = metrics.word_count
        chapter.page_count = metrics.page_count
        chapter.updated_at = self.clock()
        return chapter

    def delete_chapter(self, chapter: ChapterRecord) -> None:
        del self.chapters[chapter.id]
        self.renumber(chapter.document_id)

    def renumber(self, document_id: str) -> None:
        for number, chapter in enumerate(self.list_chapters(document_id), start=1):
            chapter.number = number

    def reorder(self, document_id: str, chapter_ids: List[str]) -> None:
        for number, chapter_id in enumerate(chapter_ids, start=1):
            self.chapters[chapter_id].number = number

    def chapter_to_dict(self, record: ChapterRecord) -> Dict:
        data = asdict(record)
        data["created_at"] = record.created_at.isoformat()
        data["updated_at"] = record.updated_at.isoformat()
        return data

    # ==========================================================================
    # Reading progress
    # ==========================================================================

    def get_progress(self, reader: str, document_id: str) -> Optional[ProgressRecord]:
        return self.progress.get((reader, document_id))

    def save_progress(self, reader: str, document_id: str, chapter_id: str, percent: int) -> ProgressRecord:
        record = ProgressRecord(chapter_id, percent, self.clock())
        self.progress[(reader, document_id)] = record
        return record

    # ==========================================================================
    # Publishing
    # ==========================================================================

    def publishes_in_window(self, owner: str) -> int:
        cutoff = self.clock() - PUBLISH_WINDOW
        return sum(1 for at in self.publish_log.get(owner, []) if at > cutoff)

    def remaining_slots(self, owner: str) -> int:
        return max(0, self.weekly_limit - self.publishes_in_window(owner))

    def mark_published(self, record: DocumentRecord, tag_ids: List[str]) -> DocumentRecord:
        now = self.clock()
        record.published = True
        record.published_at = now
        record.tag_ids = list(tag_ids)
        record.updated_at = now
        self.publish_log.setdefault(record.owner, []).append(now)
        return record
