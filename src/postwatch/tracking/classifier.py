"""Delivery and customs status classification."""

from collections.abc import Sequence
from typing import Optional

from .keywords import KeywordSet, get_keyword_set
from .types import EventRecord, StatusFlags


def _contains_any(text: str, keywords) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


class StatusClassifier:
    """Derives status flags from event fields and raw page text.

    ``delivered`` and ``in_customs`` are independent predicates; a page can
    mention both, and neither excludes an ongoing transit state.
    """

    def __init__(self, keywords: Optional[KeywordSet] = None):
        self.keywords = keywords or get_keyword_set()

    def classify(
        self, events: Optional[Sequence[EventRecord]], raw: Optional[str]
    ) -> StatusFlags:
        corpus = self._build_corpus(events, raw)
        return StatusFlags(
            delivered=self.is_delivered(corpus),
            in_customs=self.is_in_customs(corpus),
        )

    def is_delivered(self, corpus: str) -> bool:
        return _contains_any(corpus, self.keywords.delivered)

    def is_in_customs(self, corpus: str) -> bool:
        return _contains_any(corpus, self.keywords.customs)

    @staticmethod
    def _build_corpus(
        events: Optional[Sequence[EventRecord]], raw: Optional[str]
    ) -> str:
        fields = [field for record in events or () for field in record]
        return " ".join(fields) + (raw or "")
