"""
Data Models for Book Studio

- Document: the book and its metadata (title is write-once)
- DraftChapter / PersistedChapter: a chapter before and after it has a
  durable identity assigned by the persistence service
- ReadingProgress: per-reader, per-document bookmark
- Tag, PublicationRequest: publishing inputs
"""

import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from config.constants import DEFAULT_CHAPTER_TITLE, DEFAULT_LANGUAGE, DEFAULT_LICENSE

from .pagination import compute_metrics

_DEFAULT_TITLE_RE = re.compile(r'^Chapter \d+$')


def default_chapter_title(number: int) -> str:
    """Default title for a chapter at the given position"""
    return DEFAULT_CHAPTER_TITLE.format(number=number)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


# ============================================================================
# Chapters
# ============================================================================

class _ChapterOps:
    """Behaviour shared by draft and persisted chapters."""

    def set_content(self, content: str) -> None:
        """Replace content and recompute derived metrics synchronously"""
        metrics = compute_metrics(content)
        self.content = content
        self.word_count = metrics.word_count
        self.page_count = metrics.page_count
        self.revision += 1

    def set_title(self, title: str) -> None:
        self.title = title
        self.revision += 1

    def set_number(self, number: int) -> None:
        """Move to a new position, keeping default titles in step"""
        if number == self.number:
            return
        if self.has_default_title():
            self.title = default_chapter_title(number)
        self.number = number
        self.revision += 1

    def has_default_title(self) -> bool:
        return bool(_DEFAULT_TITLE_RE.match(self.title or ""))

    def mark_saved(self, revision: int) -> None:
        self.saved_revision = revision

    @property
    def is_empty(self) -> bool:
        return not (self.content or "").strip()

    @property
    def is_dirty(self) -> bool:
        return self.revision != self.saved_revision

    def to_payload(self) -> Dict[str, Any]:
        """Request body for chapter create/update"""
        return {
            "number": self.number,
            "title": self.title,
            "content": self.content,
            "page_count": self.page_count,
        }


@dataclass
class DraftChapter(_ChapterOps):
    """A chapter that has never been persisted; it has no id yet"""
    number: int
    title: str
    content: str = ""
    word_count: int = 0
    page_count: int = 1
    revision: int = 0
    saved_revision: int = -1

    @property
    def id(self) -> None:
        return None

    @classmethod
    def new(cls, number: int) -> "DraftChapter":
        """Empty chapter with the default title for its position"""
        return cls(number=number, title=default_chapter_title(number))

    def persist(self, chapter_id: str) -> "PersistedChapter":
        """Promote to a persisted chapter, carrying every local edit over"""
        return PersistedChapter(
            id=chapter_id,
            number=self.number,
            title=self.title,
            content=self.content,
            word_count=self.word_count,
            page_count=self.page_count,
            revision=self.revision,
            saved_revision=self.saved_revision,
        )


@dataclass
class PersistedChapter(_ChapterOps):
    """A chapter with a durable identity"""
    id: str
    number: int
    title: str
    content: str = ""
    word_count: int = 0
    page_count: int = 1
    revision: int = 0
    saved_revision: int = 0

    def with_id(self, chapter_id: str) -> "PersistedChapter":
        return replace(self, id=chapter_id)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PersistedChapter":
        """Build from a persistence record; metrics are recomputed locally"""
        content = data.get("content") or ""
        metrics = compute_metrics(content)
        return cls(
            id=str(data["id"]),
            number=int(data["number"]),
            title=data.get("title") or default_chapter_title(int(data["number"])),
            content=content,
            word_count=metrics.word_count,
            page_count=metrics.page_count,
        )


Chapter = Union[DraftChapter, PersistedChapter]


# ============================================================================
# Document
# ============================================================================

@dataclass
class Document:
    """A multi-chapter book owned by one author"""
    id: Optional[str]
    title: str
    subtitle: str = ""
    description: str = ""
    language: str = DEFAULT_LANGUAGE
    cover_ref: Optional[str] = None
    license: str = DEFAULT_LICENSE
    tag_ids: List[str] = field(default_factory=list)

    # Display caches; the chapter list is the source of truth
    total_pages: int = 0
    chapter_count: int = 0

    published: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Document":
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            title=data.get("title", ""),
            subtitle=data.get("subtitle") or "",
            description=data.get("description") or "",
            language=data.get("language") or DEFAULT_LANGUAGE,
            cover_ref=data.get("cover_ref"),
            license=data.get("license") or DEFAULT_LICENSE,
            tag_ids=[str(t) for t in data.get("tag_ids") or []],
            total_pages=int(data.get("total_pages") or 0),
            chapter_count=int(data.get("chapter_count") or 0),
            published=bool(data.get("published", False)),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )

    def metadata_payload(self) -> Dict[str, Any]:
        """Mutable metadata only; the title is never sent on update"""
        return {
            "subtitle": self.subtitle,
            "description": self.description,
            "cover_ref": self.cover_ref,
            "license": self.license,
        }


# ============================================================================
# Reading & publishing
# ============================================================================

def progress_percent(chapter_index: int, chapter_count: int) -> int:
    """
    Percent complete when viewing chapter_index (0-based).

    Halves round up, so 1 of 8 chapters is 13%, not 12%.
    """
    if chapter_count <= 0:
        return 0
    return int(math.floor(100 * (chapter_index + 1) / chapter_count + 0.5))


@dataclass
class ReadingProgress:
    """Where a reader is in a document"""
    document_id: str
    current_chapter_id: Optional[str]
    progress_percent: int = 0
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, document_id: str, data: Dict[str, Any]) -> "ReadingProgress":
        chapter_id = data.get("current_chapter_id")
        return cls(
            document_id=document_id,
            current_chapter_id=str(chapter_id) if chapter_id is not None else None,
            progress_percent=int(data.get("progress_percent") or 0),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Tag:
    """A catalog category"""
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Tag":
        return cls(id=str(data["id"]), name=data.get("name", ""))


@dataclass
class PublicationRequest:
    """Ephemeral publish input: chosen tags plus the consent affirmation"""
    tag_ids: List[str] = field(default_factory=list)
    consent_affirmed: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {"tagIds": list(self.tag_ids)}
