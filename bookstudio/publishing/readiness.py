#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Publication Readiness - objective gates a book must pass before publishing.

Rules, checked in this order (first failure gives the reason):
1. Total pages across all chapters >= MIN_TOTAL_PAGES
2. MIN_TAGS <= selected tags <= MAX_TAGS
3. Publishing terms affirmed
4. Weekly publish slots remaining > 0

Step 1 of the publish wizard only needs rules 1-2; submitting needs all
four. The result is advisory: the persistence service re-checks every
rule and its answer wins.

Usage:
    from bookstudio.publishing.readiness import evaluate

    verdict = evaluate(document, store.chapters, ["fantasy"], True, 2)
    if not verdict.can_submit:
        print(verdict.reason)

Classes:
    ReadinessVerdict: The boolean gates plus the first failing reason.
    RequirementCheck: One rule's pass/fail state, for checklists.
    PublicationReadiness: Evaluator bound to a set of inputs.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from config.constants import MAX_TAGS, MAX_WEEKLY_PUBLISHES, MIN_TAGS, MIN_TOTAL_PAGES
from ..models import Chapter, Document


PAGES = "pages"
TAGS = "tags"
CONSENT = "consent"
SLOTS = "slots"


@dataclass(frozen=True)
class ReadinessVerdict:
    """
    Outcome of a readiness evaluation.

    Attributes:
        can_proceed_step1: Rules 1-2 hold (pages and tag count).
        can_submit: All four rules hold.
        reason: Message for the first failing rule, None when all pass.
        failed_rule: Key of the first failing rule (pages/tags/consent/slots).
    """
    can_proceed_step1: bool
    can_submit: bool
    reason: Optional[str] = None
    failed_rule: Optional[str] = None


@dataclass(frozen=True)
class RequirementCheck:
    """A single publish requirement with its current state"""
    key: str
    label: str
    passed: bool
    detail: str = ""


def pages_reason(total_pages: int) -> str:
    return (
        f"Your book needs at least {MIN_TOTAL_PAGES} pages to be published "
        f"(currently {total_pages})."
    )


def tags_reason(tag_count: int) -> str:
    if tag_count < MIN_TAGS:
        return f"Select at least {MIN_TAGS} tag for your book."
    return f"Select at most {MAX_TAGS} tags for your book."


CONSENT_REASON = "Please confirm that you accept the publishing terms."
SLOTS_REASON = (
    f"You have reached the limit of {MAX_WEEKLY_PUBLISHES} published books per week. "
    "Please try again next week."
)


class PublicationReadiness:
    """
    Evaluates the publish gates for one document.

    remaining_publish_slots may be None when the rate limiter could not be
    queried; an unknown slot count does not block the client-side gate.
    """

    def __init__(
        self,
        document: Optional[Document],
        chapters: Sequence[Chapter],
        selected_tag_ids: Sequence[str],
        consent_affirmed: bool,
        remaining_publish_slots: Optional[int],
    ):
        self.document = document
        self.chapters = list(chapters)
        self.selected_tag_ids = list(selected_tag_ids)
        self.consent_affirmed = bool(consent_affirmed)
        self.remaining_publish_slots = remaining_publish_slots

    @property
    def total_pages(self) -> int:
        """Aggregate pages, always recomputed from the chapter list"""
        return sum(chapter.page_count for chapter in self.chapters)

    def pages_ok(self) -> bool:
        return self.total_pages >= MIN_TOTAL_PAGES

    def tags_ok(self) -> bool:
        return MIN_TAGS <= len(self.selected_tag_ids) <= MAX_TAGS

    def consent_ok(self) -> bool:
        return self.consent_affirmed

    def slots_ok(self) -> bool:
        if self.remaining_publish_slots is None:
            return True
        return self.remaining_publish_slots > 0

    def verdict(self) -> ReadinessVerdict:
        """Evaluate all rules, first failure wins"""
        step1 = self.pages_ok() and self.tags_ok()
        submit = step1 and self.consent_ok() and self.slots_ok()

        reason = None
        failed = None
        if not self.pages_ok():
            failed, reason = PAGES, pages_reason(self.total_pages)
        elif not self.tags_ok():
            failed, reason = TAGS, tags_reason(len(self.selected_tag_ids))
        elif not self.consent_ok():
            failed, reason = CONSENT, CONSENT_REASON
        elif not self.slots_ok():
            failed, reason = SLOTS, SLOTS_REASON

        return ReadinessVerdict(
            can_proceed_step1=step1,
            can_submit=submit,
            reason=reason,
            failed_rule=failed,
        )

    def page_progress(self) -> str:
        return f"{self.total_pages} / {MIN_TOTAL_PAGES} pages"

    def checklist(self) -> List[RequirementCheck]:
        """Every rule with its state, in evaluation order"""
        slots = self.remaining_publish_slots
        return [
            RequirementCheck(
                PAGES,
                f"At least {MIN_TOTAL_PAGES} pages",
                self.pages_ok(),
                self.page_progress(),
            ),
            RequirementCheck(
                TAGS,
                f"Between {MIN_TAGS} and {MAX_TAGS} tags",
                self.tags_ok(),
                f"{len(self.selected_tag_ids)} selected",
            ),
            RequirementCheck(
                CONSENT,
                "Publishing terms accepted",
                self.consent_ok(),
            ),
            RequirementCheck(
                SLOTS,
                "Weekly publish slot available",
                self.slots_ok(),
                "unknown" if slots is None else f"{slots} remaining",
            ),
        ]


def evaluate(
    document: Optional[Document],
    chapters: Sequence[Chapter],
    selected_tag_ids: Sequence[str],
    consent_affirmed: bool,
    remaining_publish_slots: Optional[int],
) -> ReadinessVerdict:
    """Convenience wrapper returning only the verdict"""
    return PublicationReadiness(
        document, chapters, selected_tag_ids, consent_affirmed, remaining_publish_slots
    ).verdict()
