"""Tracking page extraction: page fragments in, normalized snapshot out."""

import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from ..utils.logging import get_structured_logger
from .keywords import KeywordSet, get_keyword_set
from .types import EventRecord, PageSnapshot

logger = get_structured_logger(__name__)

ROW_SELECTOR = (
    'table tr, .tracking-event, .trace-item, .event-row, [class*="event"], '
    '[class*="trace"]'
)
CELL_SELECTOR = 'td, th, .col, [class*="col"], span, div'
SECTION_SELECTOR = (
    '.tracking-result, .item-trace-result, .result, main, article, '
    '[class*="result"]'
)

RESULT_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}|\d{2}\.\d{2}\.\d{4}")

DEFAULT_RAW_LIMIT = 3000
MIN_SECTION_LENGTH = 20
IGNORE_TAGS = ["script", "style", "noscript", "template", "svg"]

# Elements the browser renders on their own line in innerText.
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "dd", "details", "div", "dl",
        "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
        "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p",
        "pre", "section", "summary", "table", "tbody", "tfoot", "thead", "tr", "ul",
    }
)
CELL_TAGS = frozenset({"td", "th"})
WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class PageSource:
    """Row-like fragments and visible text handed over by the fetch layer."""

    rows: tuple[tuple[str, ...], ...] = ()
    sections: tuple[str, ...] = ()
    text: str = ""

    @classmethod
    def from_html(cls, html: str, text: Optional[str] = None) -> "PageSource":
        """Build a source from an HTML document.

        ``text`` should be the browser's rendered ``innerText`` when it is
        available; otherwise the visible text is approximated from the markup.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        for tag in soup.find_all(IGNORE_TAGS):
            tag.decompose()

        rows = tuple(
            tuple(_element_text(cell) for cell in row.select(CELL_SELECTOR))
            for row in soup.select(ROW_SELECTOR)
        )
        sections = tuple(
            _element_text(section) for section in soup.select(SECTION_SELECTOR)
        )

        if text is None:
            body = soup.find("body") or soup
            text = _element_text(body)

        return cls(rows=rows, sections=sections, text=text)


def _element_text(element: Tag) -> str:
    """Approximate the browser's ``innerText`` for an element.

    Whitespace inside text runs collapses to single spaces; lines break only
    at ``<br>`` and block elements. The extractor relies on those breaks to
    reject cells that swallowed unrelated content.
    """
    parts: list[str] = []
    _collect_text(element, parts)
    lines = (" ".join(line.split()) for line in "".join(parts).split("\n"))
    return "\n".join(line for line in lines if line)


def _collect_text(element: Tag, parts: list[str]) -> None:
    for child in element.children:
        if isinstance(child, Tag):
            if child.name == "br":
                parts.append("\n")
            elif child.name in BLOCK_TAGS:
                parts.append("\n")
                _collect_text(child, parts)
                parts.append("\n")
            elif child.name in CELL_TAGS:
                parts.append(" ")
                _collect_text(child, parts)
                parts.append(" ")
            else:
                _collect_text(child, parts)
        elif isinstance(child, NavigableString) and not isinstance(
            child, PreformattedString
        ):
            parts.append(WHITESPACE.sub(" ", str(child)))


class SnapshotExtractor:
    """Converts a page source into an ordered event history."""

    def __init__(
        self,
        keywords: Optional[KeywordSet] = None,
        raw_limit: int = DEFAULT_RAW_LIMIT,
    ):
        self.keywords = keywords or get_keyword_set()
        self.raw_limit = raw_limit

    def extract(self, source: PageSource) -> PageSnapshot:
        text = source.text or ""

        # A "no data" message wins over any stale markup rendered next to it.
        if self.is_not_found(text):
            logger.debug("Tracking page reports no data")
            return PageSnapshot.not_found()

        events = self._extract_rows(source.rows)
        if not events:
            events = self._extract_sections(source.sections)

        found = bool(events) or self.has_result_cues(text)

        logger.debug(
            "Extracted tracking snapshot",
            found=found,
            events=len(events),
            raw_length=len(text),
        )

        return PageSnapshot(
            found=found, events=tuple(events), raw=text[: self.raw_limit]
        )

    def extract_html(self, html: str, text: Optional[str] = None) -> PageSnapshot:
        return self.extract(PageSource.from_html(html, text))

    def is_not_found(self, text: str) -> bool:
        lowered = text.lower()
        return any(phrase.lower() in lowered for phrase in self.keywords.not_found)

    def has_result_cues(self, text: str) -> bool:
        """Textual evidence of tracking data, for when the markup changed."""
        lowered = text.lower()
        if any(cue.lower() in lowered for cue in self.keywords.result_cues):
            return True
        return bool(RESULT_DATE_PATTERN.search(text))

    @staticmethod
    def _extract_rows(rows) -> list[EventRecord]:
        events = []
        for row in rows:
            cells = [cell.strip() for cell in row]
            fields = tuple(
                cell for cell in cells if len(cell) > 1 and "\n" not in cell
            )
            # Single-cell rows are headers and decoration.
            if len(fields) >= 2:
                events.append(fields)
        return events

    @staticmethod
    def _extract_sections(sections) -> list[EventRecord]:
        events = []
        for section in sections:
            text = section.strip()
            if len(text) > MIN_SECTION_LENGTH:
                events.append((text,))
        return events
