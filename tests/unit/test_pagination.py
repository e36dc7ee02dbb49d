"""
Unit tests for the pagination engine (bookstudio/pagination.py)
"""
import pytest

from bookstudio.pagination import (
    compute_metrics,
    count_words,
    pages_for_words,
    reading_minutes,
    strip_markup,
    total_pages,
)


class TestWordCounting:
    """Test markup stripping and tokenization"""

    def test_plain_text(self):
        assert count_words("The quick brown fox") == 4

    def test_markup_is_stripped(self):
        assert count_words("<p>Hello <strong>brave</strong> world</p>") == 3

    def test_adjacent_blocks_do_not_merge_words(self):
        """Closing and opening tags separate words"""
        assert count_words("<p>one</p><p>two</p>") == 2

    def test_entities_are_decoded(self):
        assert strip_markup("a&nbsp;b").split() == ["a", "b"]
        assert count_words("Tom &amp; Jerry") == 3

    def test_whitespace_runs(self):
        assert count_words("  spaced \n\n out\ttext  ") == 3

    def test_hyphenated_word_is_one_token(self):
        assert count_words("well-known author") == 2

    def test_empty_and_none(self):
        assert count_words("") == 0
        assert count_words(None) == 0


class TestPageCount:
    """Test page derivation"""

    @pytest.mark.parametrize("word_count,pages", [
        (0, 1),
        (1, 1),
        (250, 1),
        (251, 2),
        (500, 2),
        (3500, 14),
        (4000, 16),
    ])
    def test_pages_for_words(self, word_count, pages):
        assert pages_for_words(word_count) == pages

    def test_empty_chapter_reserves_a_page(self):
        metrics = compute_metrics("")
        assert metrics.word_count == 0
        assert metrics.page_count == 1

    def test_markup_only_chapter_reserves_a_page(self):
        metrics = compute_metrics("<p><br/></p>")
        assert metrics.word_count == 0
        assert metrics.page_count == 1

    def test_compute_metrics_is_idempotent(self, make_words):
        """Same text, same metrics, every time"""
        text = "<h1>Title</h1>" + make_words(777)
        first = compute_metrics(text)
        second = compute_metrics(text)
        assert first == second
        assert first.word_count == 778
        assert first.page_count == 4

    def test_total_pages_sums_per_chapter(self, make_words):
        """Pages are summed per chapter, not pooled across chapters"""
        # 3500 + 4000 words -> 14 + 16 pages
        assert total_pages([make_words(3500), make_words(4000)]) == 30
        # 10 + 10 words -> 1 + 1 pages, not 1
        assert total_pages([make_words(10), make_words(10)]) == 2


class TestReadingMinutes:
    """Test reading time estimate"""

    def test_no_words(self):
        assert reading_minutes(0) == 0

    def test_rounds_up(self):
        assert reading_minutes(1) == 1
        assert reading_minutes(200) == 1
        assert reading_minutes(201) == 2
