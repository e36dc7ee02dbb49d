"""
Unit tests for the publish wizard (bookstudio/publishing/workflow.py)
"""
import pytest

from bookstudio.authoring.chapter_store import ChapterStore
from bookstudio.errors import ValidationError
from bookstudio.models import Document, DraftChapter
from bookstudio.publishing.workflow import PublicationWorkflow, WorkflowStep


@pytest.fixture
def document():
    return Document(id="d1", title="Book")


@pytest.fixture
def long_chapters(make_words):
    chapters = []
    for number, count in ((1, 3500), (2, 4000)):
        chapter = DraftChapter.new(number)
        chapter.set_content(make_words(count))
        chapters.append(chapter)
    return chapters


async def ready_for_review(fake_service, document, chapters, tags=("fantasy",)):
    workflow = PublicationWorkflow(fake_service, document, chapters)
    await workflow.load()
    for tag in tags:
        workflow.toggle_tag(tag)
    assert workflow.advance() is True
    return workflow


class TestLoad:
    """Test catalog and slot loading"""

    @pytest.mark.asyncio
    async def test_load_fetches_tags_and_slots(self, fake_service, document, long_chapters):
        fake_service.slots = {"remaining": 1, "limit": 2}
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        assert [t.id for t in workflow.tags][:2] == ["fantasy", "mystery"]
        assert workflow.remaining_publish_slots == 1
        assert workflow.publish_limit == 2

    @pytest.mark.asyncio
    async def test_slot_lookup_failure_is_unknown(self, fake_service, document, long_chapters, persistence_failure):
        fake_service.fail("get_publish_slots", persistence_failure)
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        assert workflow.remaining_publish_slots is None

    def test_published_document_cannot_start(self, fake_service, long_chapters):
        with pytest.raises(ValidationError):
            PublicationWorkflow(fake_service, Document(id="d1", title="Book", published=True), long_chapters)


class TestTags:
    """Test tag selection"""

    @pytest.mark.asyncio
    async def test_toggle_adds_and_removes(self, fake_service, document, long_chapters):
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        assert workflow.toggle_tag("fantasy") is True
        assert workflow.selected_tag_ids == ["fantasy"]
        assert workflow.toggle_tag("fantasy") is False
        assert workflow.selected_tag_ids == []

    @pytest.mark.asyncio
    async def test_sixth_tag_rejected(self, fake_service, document, long_chapters):
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        for tag in ("fantasy", "mystery", "romance", "horror", "poetry"):
            workflow.toggle_tag(tag)
        with pytest.raises(ValidationError):
            workflow.toggle_tag("thriller")
        assert len(workflow.selected_tag_ids) == 5

    @pytest.mark.asyncio
    async def test_unknown_tag_rejected(self, fake_service, document, long_chapters):
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        with pytest.raises(ValidationError):
            workflow.toggle_tag("cookbooks")

    @pytest.mark.asyncio
    async def test_tags_locked_during_review(self, fake_service, document, long_chapters):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        with pytest.raises(ValidationError):
            workflow.toggle_tag("mystery")


class TestTransitions:
    """Test wizard state transitions"""

    @pytest.mark.asyncio
    async def test_advance_requires_tags(self, fake_service, document, long_chapters):
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        await workflow.load()
        assert workflow.advance() is False
        assert workflow.step == WorkflowStep.CATEGORIZE
        assert "tag" in workflow.reason

    @pytest.mark.asyncio
    async def test_advance_requires_pages(self, fake_service, document):
        workflow = PublicationWorkflow(fake_service, document, [DraftChapter.new(1)])
        await workflow.load()
        workflow.toggle_tag("fantasy")
        assert workflow.advance() is False
        assert "30 pages" in workflow.reason

    @pytest.mark.asyncio
    async def test_advance_does_not_need_consent(self, fake_service, document, long_chapters):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        assert workflow.step == WorkflowStep.REVIEW
        assert workflow.reason is None

    @pytest.mark.asyncio
    async def test_back_is_always_allowed(self, fake_service, document, long_chapters):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        workflow.back()
        assert workflow.step == WorkflowStep.CATEGORIZE
        workflow.toggle_tag("mystery")
        assert workflow.selected_tag_ids == ["fantasy", "mystery"]

    @pytest.mark.asyncio
    async def test_submit_from_categorize_is_invalid(self, fake_service, document, long_chapters):
        workflow = PublicationWorkflow(fake_service, document, long_chapters)
        with pytest.raises(ValidationError):
            await workflow.submit()

    @pytest.mark.asyncio
    async def test_readiness_follows_live_store(self, fake_service, document, make_words):
        store = ChapterStore(fake_service, "d1")
        workflow = PublicationWorkflow(fake_service, document, store)
        await workflow.load()
        workflow.toggle_tag("fantasy")
        assert workflow.advance() is False

        store.update(0, "content", make_words(7500))
        assert workflow.advance() is True


class TestSubmit:
    """Test the publish call"""

    @pytest.mark.asyncio
    async def test_submit_requires_consent(self, fake_service, document, long_chapters):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        assert await workflow.submit() is False
        assert workflow.step == WorkflowStep.REVIEW
        assert fake_service.calls_to("publish") == []

    @pytest.mark.asyncio
    async def test_successful_submit(self, fake_service, document, long_chapters):
        workflow = await ready_for_review(fake_service, document, long_chapters, tags=("fantasy", "mystery"))
        workflow.set_consent(True)

        assert await workflow.submit() is True

        assert workflow.step == WorkflowStep.SUBMITTED
        assert fake_service.calls_to("publish") == [("d1", ["fantasy", "mystery"])]
        assert document.published is True
        assert document.tag_ids == ["fantasy", "mystery"]
        assert workflow.remaining_publish_slots == 1

    @pytest.mark.asyncio
    async def test_server_rejection_stays_in_review(self, fake_service, document, long_chapters, server_rejection):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        workflow.set_consent(True)
        fake_service.fail("publish", server_rejection)

        assert await workflow.submit() is False

        assert workflow.step == WorkflowStep.REVIEW
        assert workflow.reason == "Weekly publish limit reached"
        assert document.published is False

    @pytest.mark.asyncio
    async def test_transport_failure_stays_in_review(self, fake_service, document, long_chapters, persistence_failure):
        workflow = await ready_for_review(fake_service, document, long_chapters)
        workflow.set_consent(True)
        fake_service.fail("publish", persistence_failure)

        assert await workflow.submit() is False
        assert workflow.step == WorkflowStep.REVIEW
        assert workflow.reason == "Request failed (500)"

    @pytest.mark.asyncio
    async def test_no_slots_blocks_before_calling_server(self, fake_service, document, long_chapters):
        fake_service.slots = {"remaining": 0, "limit": 2}
        workflow = await ready_for_review(fake_service, document, long_chapters)
        workflow.set_consent(True)

        assert await workflow.submit() is False
        assert "limit" in workflow.reason
        assert fake_service.calls_to("publish") == []
