"""Change detection between consecutive tracking observations."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..storage.types import TrackedPackage, utcnow
from ..utils.logging import get_structured_logger
from .classifier import StatusClassifier
from .signature import build_signature
from .types import PageSnapshot, Transition

logger = get_structured_logger(__name__)


@dataclass(frozen=True)
class ChangeResult:
    """Classified outcome of one check, plus the values it observed."""

    transition: Transition
    new_signature: Optional[str] = None
    delivered: bool = False
    in_customs: bool = False
    found: bool = True

    @property
    def should_notify(self) -> bool:
        return self.transition is Transition.CHANGED

    def apply_to(
        self, package: TrackedPackage, checked_at: Optional[datetime] = None
    ) -> TrackedPackage:
        """Return the package record this result proposes; the input is not modified."""
        checked_at = checked_at or utcnow()
        updated = replace(package, last_checked_at=checked_at)

        if self.transition is Transition.NONE:
            return updated

        updated = replace(
            updated, last_signature=self.new_signature, delivered=self.delivered
        )
        if self.transition is Transition.CHANGED:
            updated = replace(updated, last_changed_at=checked_at)
        return updated


class ChangeDetector:
    """Compares a fresh snapshot against a package's stored signature.

    Signatures are compared by exact string equality. Any difference, even
    whitespace drift from the carrier's markup, counts as a change: a spurious
    alert is acceptable, a missed delivery is not.
    """

    def __init__(self, classifier: Optional[StatusClassifier] = None):
        self.classifier = classifier or StatusClassifier()

    def detect_change(
        self, package: TrackedPackage, snapshot: PageSnapshot
    ) -> ChangeResult:
        if package.delivered:
            # Delivered is terminal; callers skip these before fetching.
            logger.warning(
                "Delivered package passed to change detection",
                tracking_id=package.id,
            )
            return ChangeResult(
                transition=Transition.NONE, delivered=True, found=snapshot.found
            )

        if not snapshot.found:
            return ChangeResult(transition=Transition.NONE, found=False)

        signature = build_signature(snapshot.events, snapshot.raw)
        flags = self.classifier.classify(snapshot.events, snapshot.raw)

        if package.last_signature is None:
            transition = Transition.BASELINE
        elif signature == package.last_signature:
            transition = Transition.NONE
        else:
            transition = Transition.CHANGED

        return ChangeResult(
            transition=transition,
            new_signature=signature,
            delivered=flags.delivered,
            in_customs=flags.in_customs,
        )
