"""
Document metadata editing.

Creates the book record and updates its mutable metadata. The title is
write-once: it is sent on create and never again.
"""

from typing import List, Optional

from config.constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_LICENSE,
    DESCRIPTION_MAX_LENGTH,
    SUBTITLE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from config.logging_config import get_logger
from ..errors import PersistenceError, ValidationError
from ..models import Document
from ..persistence.base import PersistenceService

logger = get_logger(__name__)


def validate_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if len(title) < TITLE_MIN_LENGTH:
        raise ValidationError(
            f"Title must be at least {TITLE_MIN_LENGTH} characters", field="title"
        )
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title"
        )
    return title


def validate_subtitle(subtitle: str) -> str:
    subtitle = (subtitle or "").strip()
    if len(subtitle) > SUBTITLE_MAX_LENGTH:
        raise ValidationError(
            f"Subtitle must be at most {SUBTITLE_MAX_LENGTH} characters", field="subtitle"
        )
    return subtitle


def validate_description(description: str, required: bool = False) -> str:
    description = (description or "").strip()
    if required and not description:
        raise ValidationError("Description is required", field="description")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return description


class DocumentEditor:
    """
    Create a document and edit its metadata.

    Validation failures raise ValidationError before any network call.
    Persistence failures are recorded in last_error / last_error_detail
    and re-raised so the caller can keep the form open.
    """

    def __init__(self, client: PersistenceService, document: Optional[Document] = None):
        self.client = client
        self.document = document
        self.last_error: Optional[str] = None
        self.last_error_detail: Optional[str] = None

    async def load(self, document_id: str) -> Document:
        data = await self.client.get_document(document_id)
        self.document = Document.from_api(data)
        return self.document

    async def create(
        self,
        title: str,
        subtitle: str = "",
        description: str = "",
        language: str = DEFAULT_LANGUAGE,
        cover_ref: Optional[str] = None,
        license: str = DEFAULT_LICENSE,
        tag_ids: Optional[List[str]] = None,
    ) -> Document:
        """Validate and create a new document; returns it with its assigned id"""
        payload = {
            "title": validate_title(title),
            "subtitle": validate_subtitle(subtitle),
            "description": validate_description(description),
            "language": language or DEFAULT_LANGUAGE,
            "cover_ref": cover_ref,
            "license": license or DEFAULT_LICENSE,
            "tag_ids": list(tag_ids or []),
        }

        data = await self._call("create document", self.client.create_document(payload))
        # Echoed fields may be partial; fill from what was sent
        self.document = Document.from_api({**payload, **(data or {})})
        logger.info(f"Created document {self.document.id}: {self.document.title!r}")
        return self.document

    async def update_metadata(
        self,
        description: str,
        subtitle: Optional[str] = None,
        cover_ref: Optional[str] = None,
        license: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Document:
        """
        Update mutable metadata.

        Passing a title different from the stored one raises
        ValidationError: titles cannot change after creation.
        """
        document = self._require_document()
        if title is not None and title.strip() != document.title:
            raise ValidationError("The title cannot be changed after creation", field="title")

        changes = {"description": validate_description(description, required=True)}
        if subtitle is not None:
            changes["subtitle"] = validate_subtitle(subtitle)
        if cover_ref is not None:
            changes["cover_ref"] = cover_ref
        if license is not None:
            changes["license"] = license

        # The local document only changes once the server has accepted it
        data = await self._call(
            "update document",
            self.client.update_document(document.id, {**document.metadata_payload(), **changes}),
        )
        for field, value in changes.items():
            setattr(document, field, value)
        if isinstance(data, dict) and data.get("updated_at"):
            document.updated_at = Document.from_api({"id": document.id, **data}).updated_at
        logger.info(f"Updated metadata for document {document.id}")
        return document

    def _require_document(self) -> Document:
        if self.document is None or self.document.id is None:
            raise ValidationError("Create or load the document first")
        return self.document

    async def _call(self, action: str, awaitable):
        try:
            result = await awaitable
        except PersistenceError as e:
            self.last_error = f"Failed to {action}: {e.message}"
            self.last_error_detail = e.detail or str(e)
            logger.error(f"{self.last_error} ({self.last_error_detail})")
            raise
        self.last_error = None
        self.last_error_detail = None
        return result
