"""Tracking page interpretation and change detection.

This module turns carrier tracking pages into status notifications:
- Extraction of an ordered event history from unstable page markup
- Canonical signatures for the most recent known event
- Delivery and customs classification with locale keyword sets
- Change detection against the last stored signature
- Notification report formatting and the sequential check cycle
"""

from .keywords import (
    KeywordSet,
    available_locales,
    get_keyword_set,
    register_locale,
    reset_locales,
)
from .types import EventRecord, PageSnapshot, StatusFlags, TrackingError, Transition
from .extractor import PageSource, SnapshotExtractor
from .signature import (
    DATE_PATTERN,
    build_signature,
    dated_records,
    format_latest_event,
    is_dated,
    signature_fields,
)
from .classifier import StatusClassifier
from .detector import ChangeDetector, ChangeResult
from .report import format_change_report, format_event_rows
from .monitor import (
    CheckOutcome,
    CheckSummary,
    PackageCheck,
    PackageMonitor,
    TrackingFetcher,
)

__all__ = [
    # Types
    "EventRecord",
    "PageSnapshot",
    "StatusFlags",
    "TrackingError",
    "Transition",
    # Keyword strategies
    "KeywordSet",
    "available_locales",
    "get_keyword_set",
    "register_locale",
    "reset_locales",
    # Extraction
    "PageSource",
    "SnapshotExtractor",
    # Signatures
    "DATE_PATTERN",
    "build_signature",
    "dated_records",
    "format_latest_event",
    "is_dated",
    "signature_fields",
    # Classification and change detection
    "StatusClassifier",
    "ChangeDetector",
    "ChangeResult",
    # Reporting
    "format_change_report",
    "format_event_rows",
    # Check cycle
    "CheckOutcome",
    "CheckSummary",
    "PackageCheck",
    "PackageMonitor",
    "TrackingFetcher",
]
