"""
Persistence Service Interface

Defines the REST contract consumed by the authoring, publishing and
reading components. PersistenceClient is the HTTP implementation; tests
drive components with in-memory fakes following the same protocol.
"""

from typing import Any, Dict, List, Optional, Protocol


class PersistenceService(Protocol):
    """
    Abstract persistence service

    Every call is an async boundary. Implementations raise
    ResourceNotFoundError on missing resources, ServerRejectionError when
    the server refuses a publish, and PersistenceError for anything else.
    """

    async def create_document(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        ...

    async def update_document(self, document_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def list_chapters(self, document_id: str) -> List[Dict[str, Any]]:
        ...

    async def create_chapter(self, document_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def update_chapter(
        self,
        document_id: str,
        chapter_id: str,
        payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        ...

    async def delete_chapter(self, document_id: str, chapter_id: str) -> None:
        ...

    async def reorder_chapters(self, document_id: str, chapter_ids: List[str]) -> None:
        ...

    async def get_reading_progress(self, document_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def save_reading_progress(
        self,
        document_id: str,
        current_chapter_id: str,
        progress_percent: int
    ) -> None:
        ...

    async def publish(self, document_id: str, tag_ids: List[str]) -> Dict[str, Any]:
        ...

    async def list_tags(self) -> List[Dict[str, Any]]:
        ...

    async def get_publish_slots(self) -> Dict[str, Any]:
        ...
