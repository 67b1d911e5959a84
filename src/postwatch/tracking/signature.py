"""Event signature construction.

A signature is one string standing for "the most recent known event" of a
shipment. It is only ever compared for equality between checks, so it must be
deterministic for identical input and must never fail to produce a value.
"""

import re
from collections.abc import Sequence
from typing import Optional

from .types import EventRecord

DATE_PATTERN = re.compile(r"\d{2}[./]\d{2}[./]\d{4}")
HEBREW_PATTERN = re.compile("[\u0590-\u05FF]")

SIGNATURE_DELIMITER = "|"
DISPLAY_DELIMITER = " · "

RAW_FALLBACK_LENGTH = 200


def is_dated(record: EventRecord) -> bool:
    """Return True if any field of the record looks like a date."""
    return any(DATE_PATTERN.search(field) for field in record)


def dated_records(events: Sequence[EventRecord]) -> list[EventRecord]:
    return [record for record in events if is_dated(record)]


def build_signature(
    events: Optional[Sequence[EventRecord]], raw: Optional[str]
) -> str:
    """Reduce a snapshot's events (or raw text) to a canonical signature.

    Carrier history is listed oldest first, so the last dated record is the
    latest real-world event. Without structured events the raw page text is
    searched for the last dated line, then the last Hebrew status line, and
    finally its first 200 characters with whitespace collapsed.
    """
    if events:
        candidates = dated_records(events)
        if candidates:
            return SIGNATURE_DELIMITER.join(candidates[-1])
        return SIGNATURE_DELIMITER.join(events[-1])

    if raw:
        return _signature_from_raw(raw)

    return ""


def _signature_from_raw(raw: str) -> str:
    lines = [line.strip() for line in raw.split("\n")]
    lines = [line for line in lines if len(line) > 2]

    date_lines = [line for line in lines if DATE_PATTERN.search(line)]
    if date_lines:
        return date_lines[-1]

    hebrew_lines = [
        line for line in lines if HEBREW_PATTERN.search(line) and len(line) > 5
    ]
    if hebrew_lines:
        return hebrew_lines[-1]

    return re.sub(r"\s+", " ", raw[:RAW_FALLBACK_LENGTH]).strip()


def signature_fields(signature: Optional[str]) -> list[str]:
    """Split a stored signature back into its fields."""
    if not signature:
        return []
    return signature.split(SIGNATURE_DELIMITER)


def format_latest_event(signature: Optional[str]) -> str:
    """Render a signature for people: fields joined by a middle dot."""
    return DISPLAY_DELIMITER.join(signature_fields(signature))
