"""
Publication Workflow

Two-step publish wizard:

    CATEGORIZE --advance (pages + tags ok)--> REVIEW --submit (all rules ok,
    server accepts)--> SUBMITTED

REVIEW -> CATEGORIZE is always allowed. A server rejection keeps the
wizard in REVIEW with the server's reason shown verbatim.
"""

from enum import Enum
from typing import List, Optional, Sequence, Union

from config.constants import MAX_TAGS
from config.logging_config import get_logger
from ..authoring.chapter_store import ChapterStore
from ..errors import PersistenceError, ServerRejectionError, ValidationError
from ..models import Chapter, Document, PublicationRequest, Tag
from ..persistence.base import PersistenceService
from .readiness import PublicationReadiness, ReadinessVerdict

logger = get_logger(__name__)


class WorkflowStep(str, Enum):
    CATEGORIZE = "categorize"
    REVIEW = "review"
    SUBMITTED = "submitted"


class PublicationWorkflow:
    """
    Drives one publish attempt for a document.

    Usage:
        workflow = PublicationWorkflow(client, document, store)
        await workflow.load()
        workflow.toggle_tag("fantasy")
        workflow.advance()
        workflow.set_consent(True)
        if await workflow.submit():
            print("published")
        else:
            print(workflow.reason)
    """

    def __init__(
        self,
        client: PersistenceService,
        document: Document,
        chapters: Union[ChapterStore, Sequence[Chapter]],
    ):
        if document.published:
            raise ValidationError("This book has already been published")

        self.client = client
        self.document = document
        self._chapters = chapters

        self.step = WorkflowStep.CATEGORIZE
        self.request = PublicationRequest()
        self.tags: List[Tag] = []
        self.remaining_publish_slots: Optional[int] = None
        self.publish_limit: Optional[int] = None
        self.reason: Optional[str] = None
        self._catalog_loaded = False

    @property
    def chapters(self) -> List[Chapter]:
        """Current chapters; a live store is re-read on every evaluation"""
        if isinstance(self._chapters, ChapterStore):
            return self._chapters.chapters
        return list(self._chapters)

    @property
    def selected_tag_ids(self) -> List[str]:
        return list(self.request.tag_ids)

    async def load(self) -> None:
        """Fetch the tag catalog and the weekly publish-slot count"""
        records = await self.client.list_tags()
        self.tags = [Tag.from_api(record) for record in records]
        self._catalog_loaded = True

        try:
            slots = await self.client.get_publish_slots()
        except PersistenceError as e:
            logger.warning(f"Publish slot lookup failed, treating as unknown: {e.message}")
            slots = None

        if isinstance(slots, dict):
            remaining = slots.get("remaining")
            limit = slots.get("limit")
            self.remaining_publish_slots = int(remaining) if remaining is not None else None
            self.publish_limit = int(limit) if limit is not None else None
        logger.info(
            f"Publish workflow for {self.document.id}: {len(self.tags)} tags, "
            f"slots remaining={self.remaining_publish_slots}"
        )

    # ==========================================================================
    # Inputs
    # ==========================================================================

    def toggle_tag(self, tag_id: str) -> bool:
        """
        Select or deselect a tag. Returns True if the tag is now selected.

        Raises:
            ValidationError: unknown tag, a tag beyond the maximum, or the
                wizard is not on the categorize step
        """
        if self.step != WorkflowStep.CATEGORIZE:
            raise ValidationError("Go back to the first step to change tags", field="tags")

        tag_id = str(tag_id)
        if tag_id in self.request.tag_ids:
            self.request.tag_ids.remove(tag_id)
            return False

        if self._catalog_loaded and tag_id not in {tag.id for tag in self.tags}:
            raise ValidationError(f"Unknown tag '{tag_id}'", field="tags")
        if len(self.request.tag_ids) >= MAX_TAGS:
            raise ValidationError(f"You can select at most {MAX_TAGS} tags", field="tags")

        self.request.tag_ids.append(tag_id)
        return True

    def set_consent(self, affirmed: bool) -> None:
        self.request.consent_affirmed = bool(affirmed)

    # ==========================================================================
    # Evaluation
    # ==========================================================================

    def readiness(self) -> PublicationReadiness:
        return PublicationReadiness(
            self.document,
            self.chapters,
            self.request.tag_ids,
            self.request.consent_affirmed,
            self.remaining_publish_slots,
        )

    def verdict(self) -> ReadinessVerdict:
        return self.readiness().verdict()

    # ==========================================================================
    # Transitions
    # ==========================================================================

    def advance(self) -> bool:
        """CATEGORIZE -> REVIEW, guarded by pages and tag count"""
        if self.step != WorkflowStep.CATEGORIZE:
            return self.step == WorkflowStep.REVIEW

        verdict = self.verdict()
        if not verdict.can_proceed_step1:
            self.reason = verdict.reason
            logger.debug(f"Cannot advance: {verdict.reason}")
            return False

        self.reason = None
        self.step = WorkflowStep.REVIEW
        return True

    def back(self) -> None:
        """REVIEW -> CATEGORIZE, always allowed"""
        if self.step == WorkflowStep.REVIEW:
            self.step = WorkflowStep.CATEGORIZE
            self.reason = None

    async def submit(self) -> bool:
        """
        REVIEW -> SUBMITTED.

        Returns True when the server accepted the book. On any refusal the
        wizard stays in REVIEW and `reason` holds the message to show.
        """
        if self.step == WorkflowStep.SUBMITTED:
            return True
        if self.step != WorkflowStep.REVIEW:
            raise ValidationError("Choose tags before submitting")

        verdict = self.verdict()
        if not verdict.can_submit:
            self.reason = verdict.reason
            return False

        try:
            await self.client.publish(self.document.id, self.request.tag_ids)
        except ServerRejectionError as e:
            self.reason = e.reason
            logger.warning(f"Publish of {self.document.id} rejected by server: {e.reason}")
            return False
        except PersistenceError as e:
            self.reason = e.message
            logger.error(f"Publish of {self.document.id} failed: {e.message} ({e.detail})")
            return False

        self.step = WorkflowStep.SUBMITTED
        self.reason = None
        self.document.published = True
        self.document.tag_ids = list(self.request.tag_ids)
        if self.remaining_publish_slots is not None:
            self.remaining_publish_slots = max(0, self.remaining_publish_slots - 1)
        logger.info(f"Published document {self.document.id} with tags {self.document.tag_ids}")
        return True
