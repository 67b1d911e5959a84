"""Type definitions for the tracking pipeline."""

from dataclasses import dataclass
from enum import Enum

# One row of carrier tracking history: date, status and location cells in no
# fixed order.
EventRecord = tuple[str, ...]


class TrackingError(Exception):
    """Base exception for tracking-related errors."""

    pass


class Transition(str, Enum):
    """Outcome of comparing a fresh signature with the stored one."""

    NONE = "none"
    BASELINE = "baseline"
    CHANGED = "changed"


@dataclass(frozen=True)
class PageSnapshot:
    """Normalized view of one tracking page fetch."""

    found: bool
    events: tuple[EventRecord, ...] = ()
    raw: str = ""

    @classmethod
    def not_found(cls) -> "PageSnapshot":
        return cls(found=False)


@dataclass(frozen=True)
class StatusFlags:
    """Delivery and customs indicators found in a snapshot."""

    delivered: bool = False
    in_customs: bool = False
