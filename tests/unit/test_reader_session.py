"""
Unit tests for the reader session (bookstudio/reading/session.py)
"""
import pytest

from bookstudio.errors import ReaderError
from bookstudio.reading.preferences import PreferencesStore
from bookstudio.reading.session import ReaderSession


@pytest.fixture
def four_chapters(fake_service, make_words):
    """Document d1 with four chapters; returns their ids in order"""
    return [fake_service.add_chapter("d1", n, make_words(100 * n)) for n in range(1, 5)]


class TestResume:
    """Test where a session opens"""

    @pytest.mark.asyncio
    async def test_explicit_chapter_wins_over_saved_progress(self, fake_service, four_chapters):
        fake_service.progress["d1"] = {"current_chapter_id": four_chapters[2], "progress_percent": 75}
        session = ReaderSession(fake_service, "d1")

        position = await session.open(explicit_chapter_id=four_chapters[0])

        assert position.index == 0
        assert position.chapter.id == four_chapters[0]

    @pytest.mark.asyncio
    async def test_saved_progress_used_without_explicit_chapter(self, fake_service, four_chapters):
        fake_service.progress["d1"] = {"current_chapter_id": four_chapters[2], "progress_percent": 75}
        session = ReaderSession(fake_service, "d1")

        position = await session.open()

        assert position.index == 2
        assert position.chapter.id == four_chapters[2]

    @pytest.mark.asyncio
    async def test_defaults_to_first_chapter(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        position = await session.open()
        assert position.index == 0

    @pytest.mark.asyncio
    async def test_stale_progress_falls_back_to_first_chapter(self, fake_service, four_chapters):
        fake_service.progress["d1"] = {"current_chapter_id": "deleted-chapter", "progress_percent": 50}
        session = ReaderSession(fake_service, "d1")

        position = await session.open()

        assert position.index == 0

    @pytest.mark.asyncio
    async def test_unknown_explicit_chapter_falls_through_to_progress(self, fake_service, four_chapters):
        fake_service.progress["d1"] = {"current_chapter_id": four_chapters[1], "progress_percent": 50}
        session = ReaderSession(fake_service, "d1")
        position = await session.open(explicit_chapter_id="nope")
        assert position.index == 1

    @pytest.mark.asyncio
    async def test_progress_lookup_failure_is_not_fatal(self, fake_service, four_chapters, persistence_failure):
        fake_service.fail("get_reading_progress", persistence_failure)
        session = ReaderSession(fake_service, "d1")
        position = await session.open()
        assert position.index == 0

    @pytest.mark.asyncio
    async def test_document_without_chapters(self, fake_service):
        session = ReaderSession(fake_service, "empty")
        with pytest.raises(ReaderError):
            await session.open()


class TestProgressTracking:
    """Test fire-and-forget progress upserts"""

    @pytest.mark.asyncio
    async def test_open_records_progress(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        await session.drain()
        assert fake_service.calls_to("save_reading_progress") == [("d1", four_chapters[0], 25)]

    @pytest.mark.asyncio
    async def test_third_of_four_chapters_is_75_percent(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        session.go_to(2)
        await session.drain()
        assert session.progress_percent == 75
        assert fake_service.progress["d1"] == {"current_chapter_id": four_chapters[2], "progress_percent": 75}

    @pytest.mark.asyncio
    async def test_backward_navigation_lowers_progress(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open(explicit_chapter_id=four_chapters[3])
        session.previous_chapter()
        await session.drain()
        assert fake_service.progress["d1"]["progress_percent"] == 75

    @pytest.mark.asyncio
    async def test_progress_failure_does_not_block_navigation(self, fake_service, four_chapters, persistence_failure):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        await session.drain()
        fake_service.fail("save_reading_progress", persistence_failure)

        position = session.next_chapter()
        await session.drain()

        assert position.index == 1
        assert session.current_chapter.id == four_chapters[1]

    @pytest.mark.asyncio
    async def test_anonymous_reader_has_no_progress(self, fake_service, four_chapters):
        fake_service.progress["d1"] = {"current_chapter_id": four_chapters[2], "progress_percent": 75}
        session = ReaderSession(fake_service, "d1", authenticated=False)

        position = await session.open()
        session.next_chapter()
        await session.drain()

        assert position.index == 0
        assert fake_service.calls_to("get_reading_progress") == []
        assert fake_service.calls_to("save_reading_progress") == []


class TestNavigation:
    """Test chapter navigation and display helpers"""

    @pytest.mark.asyncio
    async def test_next_and_previous(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        assert session.next_chapter().index == 1
        assert session.next_chapter().index == 2
        assert session.previous_chapter().index == 1
        await session.drain()

    @pytest.mark.asyncio
    async def test_out_of_range_moves_are_ignored(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        await session.drain()
        calls = len(fake_service.calls_to("save_reading_progress"))

        assert session.previous_chapter().index == 0
        assert session.go_to(9).index == 0
        await session.drain()

        assert len(fake_service.calls_to("save_reading_progress")) == calls

    @pytest.mark.asyncio
    async def test_go_to_chapter_by_id(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open()
        assert session.go_to_chapter(four_chapters[3]).index == 3
        assert session.go_to_chapter("missing").index == 3
        await session.drain()

    @pytest.mark.asyncio
    async def test_table_of_contents_and_labels(self, fake_service, four_chapters):
        session = ReaderSession(fake_service, "d1")
        await session.open(explicit_chapter_id=four_chapters[1])
        await session.drain()

        toc = session.table_of_contents()

        assert [entry.number for entry in toc] == [1, 2, 3, 4]
        assert [entry.is_current for entry in toc] == [False, True, False, False]
        assert toc[2].word_count == 300
        assert session.position_label() == "Chapter 2 of 4"
        # 100 + 200 + 300 + 400 words at 200 wpm
        assert session.reading_minutes() == 5

    @pytest.mark.asyncio
    async def test_preferences_come_from_injected_store(self, fake_service, four_chapters):
        prefs = PreferencesStore(device_id="tablet")
        prefs.update(theme="dark")
        session = ReaderSession(fake_service, "d1", preferences=prefs)
        assert session.preferences().theme == "dark"

    def test_navigation_before_open(self, fake_service):
        session = ReaderSession(fake_service, "d1")
        with pytest.raises(ReaderError):
            session.next_chapter()
