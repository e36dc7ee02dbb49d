"""
Pagination Engine

Maps raw chapter text (plain or HTML markup) to reader-facing metrics.
A page is WORDS_PER_PAGE words and every chapter reserves at least one
page, so deleting text from a counted chapter can never drop it to zero.
"""

import html
import math
import re
from dataclasses import dataclass
from typing import Iterable

from config.constants import (
    WORDS_PER_PAGE,
    MIN_PAGES_PER_CHAPTER,
    READING_WORDS_PER_MINUTE,
)

# Tags are replaced by a space so "<p>one</p><p>two</p>" counts two words
_TAG_RE = re.compile(r'<[^>]*>')


@dataclass(frozen=True)
class ChapterMetrics:
    """Derived length of one chapter"""
    word_count: int
    page_count: int


def strip_markup(content: str) -> str:
    """Remove markup tags and decode entities (&nbsp; and friends)."""
    if not content:
        return ""
    return html.unescape(_TAG_RE.sub(' ', content))


def count_words(content: str) -> int:
    """Number of whitespace-delimited non-empty tokens after stripping markup."""
    return len(strip_markup(content).split())


def pages_for_words(word_count: int) -> int:
    """Pages needed for a word count, never fewer than one."""
    return max(MIN_PAGES_PER_CHAPTER, math.ceil(word_count / WORDS_PER_PAGE))


def compute_metrics(content: str) -> ChapterMetrics:
    """
    Compute word and page counts for chapter content.

    Pure and deterministic: the same text always yields the same metrics,
    and empty text yields 0 words on 1 page.
    """
    word_count = count_words(content or "")
    return ChapterMetrics(word_count=word_count, page_count=pages_for_words(word_count))


def total_pages(contents: Iterable[str]) -> int:
    """Aggregate page count, summing per-chapter pages (not pooled words)."""
    return sum(compute_metrics(content).page_count for content in contents)


def reading_minutes(word_count: int) -> int:
    """Estimated reading time in whole minutes."""
    if word_count <= 0:
        return 0
    return math.ceil(word_count / READING_WORDS_PER_MINUTE)
