"""Sequential check cycle over the watchlist."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from ..notification.types import MessageResult, Notifier
from ..storage.types import TrackedPackage, utcnow
from ..storage.watchlist import WatchlistStore
from ..utils.logging import LoggingContextManager, get_structured_logger
from .detector import ChangeDetector, ChangeResult
from .report import format_change_report
from .signature import format_latest_event
from .types import PageSnapshot, Transition

logger = get_structured_logger(__name__)

DEFAULT_CHECK_DELAY = 3.0


class TrackingFetcher(Protocol):
    """Anything that can turn a tracking identifier into a page snapshot."""

    async def fetch_tracking_page(self, package_id: str) -> PageSnapshot:
        """Fetch and extract the carrier page; raise FetchError on failure."""
        ...


class CheckOutcome(str, Enum):
    """Per-package result of a check cycle."""

    SKIPPED_DELIVERED = "skipped_delivered"
    NOT_FOUND = "not_found"
    BASELINE = "baseline"
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    ERROR = "error"


@dataclass
class PackageCheck:
    """What happened to one package during a cycle."""

    package_id: str
    outcome: CheckOutcome
    result: Optional[ChangeResult] = None
    message: Optional[str] = None
    notification: Optional[MessageResult] = None
    error: Optional[str] = None

    @property
    def notified(self) -> bool:
        return self.notification is not None and self.notification.success


@dataclass
class CheckSummary:
    """Results of one full pass over the watchlist."""

    checks: list[PackageCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def notified_count(self) -> int:
        return sum(1 for check in self.checks if check.notified)

    @property
    def changed_count(self) -> int:
        return self.count(CheckOutcome.CHANGED)

    @property
    def error_count(self) -> int:
        return self.count(CheckOutcome.ERROR)

    def count(self, outcome: CheckOutcome) -> int:
        return sum(1 for check in self.checks if check.outcome is outcome)


_OUTCOMES = {
    Transition.BASELINE: CheckOutcome.BASELINE,
    Transition.NONE: CheckOutcome.UNCHANGED,
    Transition.CHANGED: CheckOutcome.CHANGED,
}


class PackageMonitor:
    """Runs fetch, detect and notify for every watched package, one at a time.

    Packages are never checked concurrently. ``sleep`` is awaited for
    ``check_delay`` seconds between two fetches so the carrier site is not
    hammered; tests inject a fake to avoid real waiting.
    """

    def __init__(
        self,
        store: WatchlistStore,
        fetcher: TrackingFetcher,
        notifier: Notifier,
        detector: Optional[ChangeDetector] = None,
        check_delay: float = DEFAULT_CHECK_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.fetcher = fetcher
        self.notifier = notifier
        self.detector = detector or ChangeDetector()
        self.check_delay = check_delay
        self.sleep = sleep
        self.clock = clock

    async def run_check_cycle(self) -> CheckSummary:
        """Check every package on the watchlist and commit the results once."""
        self.store.load()
        summary = CheckSummary(started_at=self.clock())
        packages = self.store.list()

        logger.info("Starting check cycle", packages=len(packages))

        fetched = 0
        try:
            for package_id, package in packages:
                with LoggingContextManager(tracking_id=package_id):
                    if package.delivered:
                        logger.info("Already delivered, skipping")
                        summary.checks.append(
                            PackageCheck(package_id, CheckOutcome.SKIPPED_DELIVERED)
                        )
                        continue

                    if fetched:
                        await self.sleep(self.check_delay)
                    fetched += 1

                    summary.checks.append(await self.check_package(package))
        finally:
            self.store.commit()

        summary.finished_at = self.clock()
        logger.info(
            "Check cycle complete",
            checked=fetched,
            changed=summary.changed_count,
            notified=summary.notified_count,
            errors=summary.error_count,
        )
        return summary

    async def check_package(self, package: TrackedPackage) -> PackageCheck:
        """Run one fetch-detect-notify step and store the proposed record."""
        try:
            snapshot = await self.fetcher.fetch_tracking_page(package.id)
        except Exception as e:
            # The stored record stays as it was; the next cycle retries.
            logger.error(f"Error checking {package.id}: {str(e)}")
            return PackageCheck(package.id, CheckOutcome.ERROR, error=str(e))

        result = self.detector.detect_change(package, snapshot)
        self.store.upsert(package.id, result.apply_to(package, self.clock()))

        if not result.found:
            logger.info("No data found, may still be in transit or number is invalid")
            return PackageCheck(package.id, CheckOutcome.NOT_FOUND, result=result)

        outcome = _OUTCOMES[result.transition]
        if outcome is CheckOutcome.BASELINE:
            logger.info(
                "Baseline saved",
                latest_event=format_latest_event(result.new_signature)
                or "status unknown",
            )
        elif outcome is CheckOutcome.UNCHANGED:
            logger.info("No change")

        check = PackageCheck(package.id, outcome, result=result)
        if result.should_notify:
            check.message = format_change_report(
                package.id,
                package.display_name,
                result.new_signature,
                snapshot.events,
                result.delivered,
                result.in_customs,
            )
            logger.info("Status changed, notifying", delivered=result.delivered)
            check.notification = self._notify(check.message)

        return check

    def _notify(self, message: str) -> MessageResult:
        try:
            notification = self.notifier.notify(message)
        except Exception as e:
            notification = MessageResult(success=False, error_message=str(e))

        if not notification.success:
            logger.warning(
                f"Failed to send notification: {notification.error_message}"
            )
        return notification
