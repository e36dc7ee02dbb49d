"""
Reader Session

Opens a document for reading, resolves where to resume, and records
reading progress as the reader moves between chapters.

Resume order on open:
1. An explicit chapter id, if it belongs to the document
2. The reader's saved progress, if it points at an existing chapter
3. The first chapter

Progress writes are fire-and-forget: navigation never waits for them and
their failures are logged only.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Set

from config.logging_config import get_logger
from ..errors import PersistenceError, ReaderError
from ..models import PersistedChapter, ReadingProgress, progress_percent
from ..pagination import reading_minutes
from ..persistence.base import PersistenceService
from .preferences import PreferencesStore, ReaderPreferences

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReaderPosition:
    chapter: PersistedChapter
    index: int


@dataclass(frozen=True)
class TocEntry:
    """One line of the table of contents"""
    index: int
    chapter_id: str
    number: int
    title: str
    word_count: int
    is_current: bool


class ReaderSession:
    """
    Reading state for one reader and one document.

    Usage:
        session = ReaderSession(client, document_id, preferences=PreferencesStore.default())
        position = await session.open(explicit_chapter_id=None)
        session.next_chapter()
        await session.drain()
    """

    def __init__(
        self,
        client: PersistenceService,
        document_id: str,
        preferences: Optional[PreferencesStore] = None,
        authenticated: bool = True,
    ):
        """
        Args:
            client: Persistence service
            document_id: Document to read
            preferences: Device-scoped display settings store
            authenticated: False for anonymous readers, who never read or
                write progress
        """
        self.client = client
        self.document_id = document_id
        self.preferences_store = preferences
        self.authenticated = authenticated

        self._chapters: List[PersistedChapter] = []
        self._index = 0
        self.saved_progress: Optional[ReadingProgress] = None
        self._pending: Set[asyncio.Task] = set()
        # Writes go out in navigation order so the last position wins
        self._write_lock = asyncio.Lock()

    # ==========================================================================
    # Opening
    # ==========================================================================

    async def open(self, explicit_chapter_id: Optional[str] = None) -> ReaderPosition:
        """
        Load the chapters and move to the resume position.

        Raises:
            ReaderError: the document has no chapters
        """
        records = await self.client.list_chapters(self.document_id)
        self._chapters = sorted(
            (PersistedChapter.from_api(record) for record in records),
            key=lambda chapter: chapter.number,
        )
        if not self._chapters:
            raise ReaderError(f"Document {self.document_id} has no chapters to read")

        self.saved_progress = await self._load_progress()
        self._index = self._resolve_start(explicit_chapter_id)
        logger.info(
            f"Opened document {self.document_id} at chapter {self._index + 1}"
            f" of {len(self._chapters)}"
        )

        self._record_progress()
        return self.position

    async def _load_progress(self) -> Optional[ReadingProgress]:
        if not self.authenticated:
            return None
        try:
            data = await self.client.get_reading_progress(self.document_id)
        except PersistenceError as e:
            logger.warning(f"Could not load reading progress for {self.document_id}: {e.message}")
            return None
        if not data:
            return None
        return ReadingProgress.from_api(self.document_id, data)

    def _resolve_start(self, explicit_chapter_id: Optional[str]) -> int:
        if explicit_chapter_id is not None:
            index = self.index_of(explicit_chapter_id)
            if index is not None:
                return index
            logger.debug(f"Chapter {explicit_chapter_id} not in document {self.document_id}")

        if self.saved_progress is not None and self.saved_progress.current_chapter_id:
            index = self.index_of(self.saved_progress.current_chapter_id)
            if index is not None:
                return index
            logger.info(
                f"Saved progress points at missing chapter "
                f"{self.saved_progress.current_chapter_id}; starting from the beginning"
            )

        return 0

    # ==========================================================================
    # Queries
    # ==========================================================================

    @property
    def chapters(self) -> List[PersistedChapter]:
        return list(self._chapters)

    @property
    def chapter_count(self) -> int:
        return len(self._chapters)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_chapter(self) -> PersistedChapter:
        self._require_open()
        return self._chapters[self._index]

    @property
    def position(self) -> ReaderPosition:
        return ReaderPosition(self.current_chapter, self._index)

    @property
    def progress_percent(self) -> int:
        return progress_percent(self._index, len(self._chapters))

    @property
    def has_next(self) -> bool:
        return self._index < len(self._chapters) - 1

    @property
    def has_previous(self) -> bool:
        return self._index > 0

    def position_label(self) -> str:
        return f"Chapter {self._index + 1} of {len(self._chapters)}"

    @property
    def total_words(self) -> int:
        return sum(chapter.word_count for chapter in self._chapters)

    def reading_minutes(self) -> int:
        """Estimated minutes to read the whole document"""
        return reading_minutes(self.total_words)

    def index_of(self, chapter_id: str) -> Optional[int]:
        for index, chapter in enumerate(self._chapters):
            if chapter.id == str(chapter_id):
                return index
        return None

    def table_of_contents(self) -> List[TocEntry]:
        return [
            TocEntry(
                index=index,
                chapter_id=chapter.id,
                number=chapter.number,
                title=chapter.title,
                word_count=chapter.word_count,
                is_current=index == self._index,
            )
            for index, chapter in enumerate(self._chapters)
        ]

    def preferences(self) -> ReaderPreferences:
        if self.preferences_store is None:
            return ReaderPreferences()
        return self.preferences_store.load()

    def _require_open(self) -> None:
        if not self._chapters:
            raise ReaderError("Open the document before reading it")

    # ==========================================================================
    # Navigation
    # ==========================================================================

    def go_to(self, index: int) -> ReaderPosition:
        """Move to chapter `index`; out-of-range moves are ignored"""
        self._require_open()
        if not 0 <= index < len(self._chapters) or index == self._index:
            return self.position
        self._index = index
        self._record_progress()
        return self.position

    def go_to_chapter(self, chapter_id: str) -> ReaderPosition:
        index = self.index_of(chapter_id)
        if index is None:
            return self.position
        return self.go_to(index)

    def next_chapter(self) -> ReaderPosition:
        return self.go_to(self._index + 1)

    def previous_chapter(self) -> ReaderPosition:
        return self.go_to(self._index - 1)

    # ==========================================================================
    # Progress
    # ==========================================================================

    def _record_progress(self) -> None:
        """Schedule a progress upsert for the current chapter"""
        if not self.authenticated:
            return
        chapter_id = self.current_chapter.id
        percent = self.progress_percent
        task = asyncio.create_task(self._write_progress(chapter_id, percent))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_progress(self, chapter_id: str, percent: int) -> None:
        try:
            async with self._write_lock:
                await self.client.save_reading_progress(self.document_id, chapter_id, percent)
            logger.debug(f"Progress for {self.document_id}: chapter {chapter_id}, {percent}%")
        except PersistenceError as e:
            logger.warning(f"Failed to save reading progress for {self.document_id}: {e.message}")

    async def drain(self) -> None:
        """Wait for outstanding progress writes"""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        await self.drain()
