"""
Autosave Coordinator

Single-flight save state machine for the authoring session.

States:  IDLE -> SAVING -> IDLE | SAVE_FAILED
Triggers: the periodic timer, a chapter switch, an explicit manual save.

Only one save is ever in flight: every save holds one asyncio.Lock from
snapshot to response. A timer or manual trigger arriving while a save is
in flight is dropped (the next tick picks up the latest content). A
chapter switch queues on the lock, flushes the outgoing chapter, and only
then activates the new one. SAVE_FAILED is not retried on its own;
the next trigger starts over.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from config.settings import settings
from config.logging_config import get_logger
from ..errors import PersistenceError, ResourceNotFoundError
from ..models import Chapter, Document, PersistedChapter
from ..persistence.base import PersistenceService
from .chapter_store import ChapterStore

logger = get_logger(__name__)


class SaveState(str, Enum):
    """Coordinator states"""
    IDLE = "idle"
    SAVING = "saving"
    SAVE_FAILED = "save_failed"


class SaveTrigger(str, Enum):
    """What asked for a save"""
    TIMER = "timer"
    SWITCH = "switch"
    MANUAL = "manual"


class SaveOutcome(str, Enum):
    """Result of one trigger"""
    SAVED = "saved"
    SKIPPED_EMPTY = "skipped_empty"    # nothing written yet
    SKIPPED_CLEAN = "skipped_clean"    # timer tick with no unsaved edits
    DROPPED_BUSY = "dropped_busy"      # another save was in flight
    FAILED = "failed"


@dataclass
class SaveResult:
    """What happened to a save trigger"""
    outcome: SaveOutcome
    trigger: SaveTrigger
    chapter_number: Optional[int] = None
    chapter_id: Optional[str] = None
    created: bool = False
    reconciled: bool = False  # update hit 404 and was re-issued as create
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome != SaveOutcome.FAILED


@dataclass(frozen=True)
class _Snapshot:
    """The fields sent to the server, captured when the save starts"""
    chapter: Chapter
    number: int
    revision: int
    payload: dict


class AutosaveCoordinator:
    """
    Persists the active chapter on a timer, on chapter switch and on demand.

    Usage:
        coordinator = AutosaveCoordinator(store, client, document)
        await coordinator.start()          # periodic saves
        store.update(store.active_index, "content", text)
        await coordinator.switch_to(2)     # flushes the outgoing chapter
        await coordinator.save_now()       # manual save
        await coordinator.stop()
    """

    def __init__(
        self,
        store: ChapterStore,
        client: PersistenceService,
        document: Optional[Document] = None,
        interval: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            store: Chapter list of the document being edited
            client: Persistence service
            document: Optional document whose display caches are refreshed
                from save responses (book_page_count, book_chapter_count)
            interval: Seconds between timer ticks (default from settings)
            clock: Time source for last_saved_at
        """
        self.store = store
        self.client = client
        self.document = document
        self.interval = interval if interval is not None else settings.autosave_interval_seconds
        self.clock = clock

        self.state = SaveState.IDLE
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.last_error_detail: Optional[str] = None

        self._save_lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task] = None

    # ==========================================================================
    # Timer lifecycle
    # ==========================================================================

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def start(self) -> None:
        """Start the periodic timer"""
        if self.running:
            return
        self._timer_task = asyncio.create_task(self._run_timer())
        logger.info(f"Autosave started (every {self.interval}s) for document {self.store.document_id}")

    async def stop(self, flush: bool = True) -> Optional[SaveResult]:
        """Stop the timer and optionally flush the active chapter once"""
        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None
            logger.info("Autosave stopped")

        if not flush:
            return None
        return await self._save(SaveTrigger.MANUAL)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception as e:
                # Already recorded in last_error; the next tick starts over
                logger.exception(f"Autosave tick failed: {e}")

    # ==========================================================================
    # Triggers
    # ==========================================================================

    @property
    def busy(self) -> bool:
        """True while a save is in flight or queued"""
        return self._save_lock.locked()

    async def tick(self) -> SaveResult:
        """One timer firing: save the active chapter if it has unsaved edits"""
        if self.busy:
            return self._dropped(SaveTrigger.TIMER)

        chapter = self.store.active_chapter()
        if chapter.is_empty:
            return SaveResult(SaveOutcome.SKIPPED_EMPTY, SaveTrigger.TIMER, chapter.number, chapter.id)
        if not chapter.is_dirty:
            return SaveResult(SaveOutcome.SKIPPED_CLEAN, SaveTrigger.TIMER, chapter.number, chapter.id)

        return await self._save(SaveTrigger.TIMER)

    async def save_now(self) -> SaveResult:
        """Manual save of the active chapter"""
        if self.busy:
            return self._dropped(SaveTrigger.MANUAL)
        return await self._save(SaveTrigger.MANUAL)

    async def switch_to(self, index: int) -> SaveResult:
        """
        Flush the outgoing chapter, then make chapter `index` active.

        Waits behind any save already in flight. The new chapter becomes
        active even if the flush fails; the failed edits stay in memory
        (dirty) and the error is kept in last_error.
        """
        self.store.chapter_at(index)  # validate before doing any work

        async with self._save_lock:
            try:
                return await self._save_active(SaveTrigger.SWITCH)
            finally:
                self.store.activate(index)

    async def insert_chapter(self) -> Chapter:
        """Flush the outgoing chapter, then append and activate a new draft"""
        async with self._save_lock:
            await self._save_active(SaveTrigger.SWITCH)
            return self.store.insert()

    def _dropped(self, trigger: SaveTrigger) -> SaveResult:
        logger.debug(f"{trigger.value} save dropped: a save is already in flight")
        return SaveResult(SaveOutcome.DROPPED_BUSY, trigger)

    # ==========================================================================
    # Save
    # ==========================================================================

    def _snapshot(self, chapter: Chapter) -> _Snapshot:
        return _Snapshot(
            chapter=chapter,
            number=chapter.number,
            revision=chapter.revision,
            payload=chapter.to_payload(),
        )

    async def _save(self, trigger: SaveTrigger) -> SaveResult:
        async with self._save_lock:
            return await self._save_active(trigger)

    async def _save_active(self, trigger: SaveTrigger) -> SaveResult:
        """Snapshot and persist the active chapter. Caller holds _save_lock."""
        chapter = self.store.active_chapter()
        if chapter.is_empty:
            return SaveResult(SaveOutcome.SKIPPED_EMPTY, trigger, chapter.number, chapter.id)

        snapshot = self._snapshot(chapter)
        self.state = SaveState.SAVING
        try:
            result = await self._persist(snapshot, trigger)
        except PersistenceError as e:
            self._record_failure(snapshot.number, e.message, e.detail or str(e))
            return SaveResult(
                SaveOutcome.FAILED,
                trigger,
                snapshot.number,
                chapter.id,
                error=self.last_error,
            )
        except Exception as e:
            self._record_failure(snapshot.number, "Unexpected error", repr(e))
            raise

        self.state = SaveState.IDLE
        self.last_saved_at = self.clock()
        self.last_error = None
        self.last_error_detail = None
        return result

    def _record_failure(self, number: int, message: str, detail: str) -> None:
        self.state = SaveState.SAVE_FAILED
        self.last_error = f"Failed to save chapter {number}: {message}"
        self.last_error_detail = detail
        logger.error(f"{self.last_error} ({self.last_error_detail})")

    async def _persist(self, snapshot: _Snapshot, trigger: SaveTrigger) -> SaveResult:
        document_id = self.store.document_id
        chapter = snapshot.chapter
        reconciled = False

        if isinstance(chapter, PersistedChapter):
            try:
                response = await self.client.update_chapter(document_id, chapter.id, snapshot.payload)
                saved = chapter
                self.store.mark_saved(saved, snapshot.revision)
                created = False
            except ResourceNotFoundError:
                logger.info(
                    f"Chapter {chapter.id} no longer exists remotely; re-creating it"
                )
                response = await self.client.create_chapter(document_id, snapshot.payload)
                saved = self._attach_created(snapshot, response)
                created = True
                reconciled = True
        else:
            response = await self.client.create_chapter(document_id, snapshot.payload)
            saved = self._attach_created(snapshot, response)
            created = True

        self._refresh_document(response)

        chapter_id = saved.id if saved is not None else None
        logger.info(
            f"{'Created' if created else 'Updated'} chapter {snapshot.number}"
            f" (id={chapter_id}, trigger={trigger.value})"
        )
        return SaveResult(
            SaveOutcome.SAVED,
            trigger,
            snapshot.number,
            chapter_id,
            created=created,
            reconciled=reconciled,
        )

    def _attach_created(self, snapshot: _Snapshot, response) -> Optional[PersistedChapter]:
        """
        Attach the new server id to the chapter now at the snapshot's number.

        The chapter is marked clean only if it is the one that was sent; a
        chapter that moved into that number during the round trip gets the
        id but keeps its unsaved edits.
        """
        if not isinstance(response, dict) or not response.get("id"):
            raise PersistenceError(
                "The server returned an invalid chapter response",
                detail=repr(response),
            )

        index = self.store.index_of_number(snapshot.number)
        same_chapter = index is not None and self.store.chapters[index] is snapshot.chapter

        saved = self.store.assign_id(snapshot.number, str(response["id"]))
        if saved is not None and same_chapter:
            self.store.mark_saved(saved, snapshot.revision)
        return saved

    def _refresh_document(self, response) -> None:
        """Cache server-reported totals on the document for display"""
        if self.document is None or not isinstance(response, dict):
            return
        if response.get("book_page_count") is not None:
            self.document.total_pages = int(response["book_page_count"])
        if response.get("book_chapter_count") is not None:
            self.document.chapter_count = int(response["book_chapter_count"])
