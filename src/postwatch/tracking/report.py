"""Human-readable notification text for detected changes."""

from collections.abc import Sequence
from typing import Optional

from .signature import DISPLAY_DELIMITER, dated_records, format_latest_event
from .types import EventRecord

CARRIER_NAME = "Israel Post"
RECENT_EVENT_COUNT = 3

DELIVERED_MARKER = "✅"
CUSTOMS_MARKER = "🛃"
UPDATE_MARKER = "📦"

DELIVERED_NOTE = "🎉 Package delivered!"
CUSTOMS_NOTE = "⚠️ Package is in customs — action may be required."


def status_marker(delivered: bool, in_customs: bool) -> tuple[str, Optional[str]]:
    """Pick exactly one leading marker: delivered, then customs, then update."""
    if delivered:
        return DELIVERED_MARKER, DELIVERED_NOTE
    if in_customs:
        return CUSTOMS_MARKER, CUSTOMS_NOTE
    return UPDATE_MARKER, None


def format_event_rows(events: Sequence[EventRecord]) -> list[str]:
    return [DISPLAY_DELIMITER.join(record) for record in events]


def format_change_report(
    package_id: str,
    display_name: str,
    signature: Optional[str],
    events: Optional[Sequence[EventRecord]],
    delivered: bool,
    in_customs: bool,
) -> str:
    """Render the notification sent when a package's status changed."""
    recent = dated_records(events or ())[-RECENT_EVENT_COUNT:]
    body = "\n".join(format_event_rows(recent)) or format_latest_event(signature)

    marker, note = status_marker(delivered, in_customs)

    message = (
        f"{marker} {CARRIER_NAME} Update\n"
        f"{package_id} — {display_name}\n\n"
        f"{body}"
    )
    if note:
        message += f"\n{note}"
    return message
