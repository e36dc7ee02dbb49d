"""
Chapter Store Client

Holds the in-memory, ordered chapter list of one document and keeps its
invariants: chapter numbers are always contiguous 1..N and a document
never has fewer than one chapter. All edits are local; persisting them is
the AutosaveCoordinator's job. Deletion and reordering are the only
operations that talk to the persistence service directly.
"""

from typing import List, Optional

from config.logging_config import get_logger
from ..errors import MinimumChapterError, ResourceNotFoundError, ValidationError
from ..models import Chapter, DraftChapter, PersistedChapter
from ..persistence.base import PersistenceService
from .commands import MoveChapter, run_optimistic

logger = get_logger(__name__)

EDITABLE_FIELDS = ("title", "content")


class ChapterStore:
    """
    Ordered chapter list for one document plus the active-chapter cursor.

    Usage:
        store = ChapterStore(client, document_id)
        await store.load()
        chapter = store.insert()
        store.update(store.active_index, "content", "<p>Once upon a time</p>")
    """

    def __init__(self, client: PersistenceService, document_id: str):
        self.client = client
        self.document_id = document_id
        self._chapters: List[Chapter] = [DraftChapter.new(1)]
        self._active_index = 0

    # ==========================================================================
    # Queries
    # ==========================================================================

    @property
    def chapters(self) -> List[Chapter]:
        """Snapshot of the chapter list in order"""
        return list(self._chapters)

    def __len__(self) -> int:
        return len(self._chapters)

    @property
    def active_index(self) -> int:
        return self._active_index

    def active_chapter(self) -> Chapter:
        return self._chapters[self._active_index]

    def chapter_at(self, index: int) -> Chapter:
        self._check_index(index)
        return self._chapters[index]

    def index_of_number(self, number: int) -> Optional[int]:
        for index, chapter in enumerate(self._chapters):
            if chapter.number == number:
                return index
        return None

    @property
    def total_pages(self) -> int:
        """Sum of per-chapter page counts"""
        return sum(chapter.page_count for chapter in self._chapters)

    @property
    def total_words(self) -> int:
        return sum(chapter.word_count for chapter in self._chapters)

    def _position_of(self, chapter: Chapter) -> Optional[int]:
        """Index of this exact chapter object (identity, not field equality)"""
        for index, candidate in enumerate(self._chapters):
            if candidate is chapter:
                return index
        return None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._chapters):
            raise IndexError(f"Chapter index {index} out of range (0..{len(self._chapters) - 1})")

    # ==========================================================================
    # Loading
    # ==========================================================================

    async def load(self, document_id: Optional[str] = None) -> List[Chapter]:
        """
        Fetch all chapters, ordered by their server-assigned number.

        An empty document gets one local draft so the minimum-one-chapter
        invariant holds from the start.
        """
        if document_id is not None:
            self.document_id = document_id

        records = await self.client.list_chapters(self.document_id)
        chapters: List[Chapter] = sorted(
            (PersistedChapter.from_api(record) for record in records),
            key=lambda chapter: chapter.number,
        )
        if not chapters:
            chapters = [DraftChapter.new(1)]

        self._chapters = chapters
        self._active_index = 0
        self._renumber()

        logger.info(f"Loaded {len(self._chapters)} chapters for document {self.document_id}")
        return self.chapters

    # ==========================================================================
    # Local mutations
    # ==========================================================================

    def insert(self) -> DraftChapter:
        """Append an empty draft chapter and make it active"""
        chapter = DraftChapter.new(len(self._chapters) + 1)
        self._chapters.append(chapter)
        self._active_index = len(self._chapters) - 1
        logger.debug(f"Inserted draft chapter {chapter.number}")
        return chapter

    def update(self, index: int, field: str, value: str) -> Chapter:
        """
        Edit a chapter field in memory.

        Content edits recompute word and page counts immediately.
        """
        self._check_index(index)
        if field not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown chapter field '{field}'", field=field)

        chapter = self._chapters[index]
        if field == "content":
            chapter.set_content(value)
        else:
            chapter.set_title(value)
        return chapter

    def activate(self, index: int) -> Chapter:
        """Make another chapter active (no save; see AutosaveCoordinator.switch_to)"""
        self._check_index(index)
        self._active_index = index
        return self._chapters[index]

    # ==========================================================================
    # Identity reconciliation
    # ==========================================================================

    def assign_id(self, number: int, chapter_id: str) -> Optional[PersistedChapter]:
        """
        Record the id the server assigned to the chapter now at `number`.

        Lookup is by number, not object identity: the list may have been
        mutated while the save was in flight. The chapter's current fields
        are kept, so edits made during the round trip survive.
        """
        index = self.index_of_number(number)
        if index is None:
            logger.warning(f"Chapter {number} vanished before id {chapter_id} could be attached")
            return None

        chapter = self._chapters[index]
        if isinstance(chapter, DraftChapter):
            persisted = chapter.persist(chapter_id)
        else:
            persisted = chapter.with_id(chapter_id)

        self._chapters[index] = persisted
        logger.debug(f"Chapter {number} now has id {chapter_id}")
        return persisted

    def mark_saved(self, chapter: Chapter, revision: int) -> None:
        """Mark a chapter clean as of the given revision, if it is still listed"""
        if self._position_of(chapter) is not None:
            chapter.mark_saved(revision)

    # ==========================================================================
    # Remote mutations
    # ==========================================================================

    async def delete(self, index: int) -> Chapter:
        """
        Delete a chapter, renumbering the rest.

        Raises:
            MinimumChapterError: if this is the only chapter (no network call)
            PersistenceError: if remote deletion fails; the list is unchanged
        """
        self._check_index(index)
        if len(self._chapters) <= 1:
            raise MinimumChapterError()

        chapter = self._chapters[index]
        if isinstance(chapter, PersistedChapter):
            try:
                await self.client.delete_chapter(self.document_id, chapter.id)
            except ResourceNotFoundError:
                logger.info(f"Chapter {chapter.id} already gone remotely; removing locally")

        # The list may have changed during the await; locate the chapter again
        position = self._position_of(chapter)
        if position is None:
            return chapter

        active = self.active_chapter()
        del self._chapters[position]
        if active is chapter:
            self._active_index = min(position, len(self._chapters) - 1)
        else:
            self._active_index = self._position_of(active)

        self._renumber()
        logger.info(f"Deleted chapter at position {position + 1}; {len(self._chapters)} remain")
        return chapter

    async def move(self, from_index: int, to_index: int) -> None:
        """
        Reorder a chapter optimistically.

        The move is applied locally and confirmed with the server; on
        failure the inverse move is applied and the error re-raised.
        """
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return
        if any(isinstance(chapter, DraftChapter) for chapter in self._chapters):
            raise ValidationError("Save all chapters before reordering them")

        command = MoveChapter(self, from_index, to_index)
        await run_optimistic(
            command,
            lambda: self.client.reorder_chapters(
                self.document_id, [chapter.id for chapter in self._chapters]
            ),
        )

    def _move_local(self, from_index: int, to_index: int) -> None:
        active = self.active_chapter()
        chapter = self._chapters.pop(from_index)
        self._chapters.insert(to_index, chapter)
        self._active_index = self._position_of(active)
        self._renumber()

    def _renumber(self) -> None:
        """Restore contiguous numbering 1..N, retitling default-titled chapters"""
        for position, chapter in enumerate(self._chapters, start=1):
            chapter.set_number(position)
