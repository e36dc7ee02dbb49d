"""
Pytest configuration and shared fixtures for Book Studio tests.
"""
import sys
import asyncio
import itertools
import pytest
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from bookstudio.errors import PersistenceError, ResourceNotFoundError, ServerRejectionError
from bookstudio.pagination import compute_metrics


def words(count: int, word: str = "word") -> str:
    """Text with exactly `count` words."""
    return " ".join([word] * count)


class FakePersistence:
    """
    In-memory stand-in for the persistence service.

    Records every call in `calls` as (method, args). Failures can be queued
    per method with `fail(method, exc)`; a queued exception is raised on
    the next call to that method. Setting `hold` to an asyncio.Event makes
    chapter writes wait on it, to test overlapping saves. The most chapter
    writes seen in flight at once is kept in `max_writes_in_flight`.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.chapters: Dict[str, Dict[str, Any]] = {}
        self.progress: Dict[str, Dict[str, Any]] = {}
        self.tags = [{"id": "fantasy", "name": "Fantasy"}, {"id": "mystery", "name": "Mystery"},
                     {"id": "romance", "name": "Romance"}, {"id": "horror", "name": "Horror"},
                     {"id": "poetry", "name": "Poetry"}, {"id": "thriller", "name": "Thriller"}]
        self.slots = {"remaining": 2, "limit": 2}
        self.calls: List[tuple] = []
        self.failures: Dict[str, List[Exception]] = {}
        self.hold: Optional[asyncio.Event] = None
        self.writes_in_flight = 0
        self.max_writes_in_flight = 0
        self.publish_response: Dict[str, Any] = {"published": True}

    # ---- test helpers ----

    def fail(self, method: str, exc: Exception) -> None:
        self.failures.setdefault(method, []).append(exc)

    def calls_to(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def add_chapter(self, document_id: str, number: int, content: str = "", title: str = None) -> str:
        chapter_id = f"ch{next(self._ids)}"
        self.chapters[chapter_id] = {
            "id": chapter_id,
            "document_id": document_id,
            "number": number,
            "title": title or f"Chapter {number}",
            "content": content,
        }
        return chapter_id

    async def _enter(self, method: str, *args) -> None:
        self.calls.append((method, args))
        queued = self.failures.get(method)
        if queued:
            raise queued.pop(0)

    async def _write(self) -> None:
        self.writes_in_flight += 1
        self.max_writes_in_flight = max(self.max_writes_in_flight, self.writes_in_flight)
        try:
            if self.hold is not None:
                await self.hold.wait()
            await asyncio.sleep(0)
        finally:
            self.writes_in_flight -= 1

    def _totals(self, document_id: str) -> Dict[str, int]:
        chapters = [c for c in self.chapters.values() if c["document_id"] == document_id]
        return {
            "book_page_count": sum(compute_metrics(c["content"]).page_count for c in chapters),
            "book_chapter_count": len(chapters),
        }

    # ---- documents ----

    async def create_document(self, payload):
        await self._enter("create_document", payload)
        document_id = f"doc{next(self._ids)}"
        self.documents[document_id] = {"id": document_id, **payload}
        return {"id": document_id, **payload, "created_at": "2024-05-01T10:00:00+00:00"}

    async def get_document(self, document_id):
        await self._enter("get_document", document_id)
        if document_id not in self.documents:
            raise ResourceNotFoundError("Document not found", status_code=404)
        return dict(self.documents[document_id])

    async def update_document(self, document_id, payload):
        await self._enter("update_document", document_id, payload)
        self.documents.setdefault(document_id, {"id": document_id}).update(payload)
        return dict(self.documents[document_id])

    # ---- chapters ----

    async def list_chapters(self, document_id):
        await self._enter("list_chapters", document_id)
        return [dict(c) for c in self.chapters.values() if c["document_id"] == document_id]

    async def create_chapter(self, document_id, payload):
        await self._write()
        await self._enter("create_chapter", document_id, dict(payload))
        chapter_id = self.add_chapter(document_id, payload["number"], payload["content"], payload["title"])
        return {"id": chapter_id, "page_count": payload["page_count"], **self._totals(document_id)}

    async def update_chapter(self, document_id, chapter_id, payload):
        await self._write()
        await self._enter("update_chapter", document_id, chapter_id, dict(payload))
        if chapter_id not in self.chapters:
            raise ResourceNotFoundError("Chapter not found", status_code=404)
        self.chapters[chapter_id].update(
            number=payload["number"], title=payload["title"], content=payload["content"]
        )
        return {"id": chapter_id, "page_count": payload["page_count"], **self._totals(document_id)}

    async def delete_chapter(self, document_id, chapter_id):
        await self._enter("delete_chapter", document_id, chapter_id)
        if chapter_id not in self.chapters:
            raise ResourceNotFoundError("Chapter not found", status_code=404)
        del self.chapters[chapter_id]

    async def reorder_chapters(self, document_id, chapter_ids):
        await self._enter("reorder_chapters", document_id, list(chapter_ids))
        for number, chapter_id in enumerate(chapter_ids, start=1):
            self.chapters[chapter_id]["number"] = number

    # ---- reading progress ----

    async def get_reading_progress(self, document_id):
        await self._enter("get_reading_progress", document_id)
        return self.progress.get(document_id)

    async def save_reading_progress(self, document_id, current_chapter_id, progress_percent):
        await self._enter("save_reading_progress", document_id, current_chapter_id, progress_percent)
        self.progress[document_id] = {
            "current_chapter_id": current_chapter_id,
            "progress_percent": progress_percent,
        }

    # ---- publishing ----

    async def publish(self, document_id, tag_ids):
        await self._enter("publish", document_id, list(tag_ids))
        return self.publish_response

    async def list_tags(self):
        await self._enter("list_tags")
        return list(self.tags)

    async def get_publish_slots(self):
        await self._enter("get_publish_slots")
        return dict(self.slots)


@pytest.fixture
def fake_service() -> FakePersistence:
    """Stateful in-memory persistence service."""
    return FakePersistence()


@pytest.fixture
def persistence_failure() -> PersistenceError:
    return PersistenceError("Request failed (500)", detail="Internal Server Error", status_code=500)


@pytest.fixture
def server_rejection() -> ServerRejectionError:
    return ServerRejectionError("Weekly publish limit reached", detail='{"error": "..."}', status_code=400)


@pytest.fixture
def make_words():
    """Factory producing text with an exact word count."""
    return words
