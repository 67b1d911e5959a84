"""Type definitions for storage components."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class StorageError(Exception):
    """Base exception for storage-related errors."""

    pass


class PackageState(str, Enum):
    """Lifecycle state of a tracked package."""

    UNCHECKED = "unchecked"
    BASELINED = "baselined"
    UPDATED = "updated"
    DELIVERED = "delivered"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # Older state files were written with a trailing "Z".
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TrackedPackage:
    """A shipment on the watchlist."""

    id: str
    display_name: str
    added_at: datetime = field(default_factory=utcnow)
    last_checked_at: Optional[datetime] = None
    last_signature: Optional[str] = None
    delivered: bool = False
    last_changed_at: Optional[datetime] = None

    @property
    def state(self) -> PackageState:
        if self.delivered:
            return PackageState.DELIVERED
        if self.last_signature is None:
            return PackageState.UNCHECKED
        if self.last_changed_at is not None:
            return PackageState.UPDATED
        return PackageState.BASELINED

    @classmethod
    def from_dict(cls, package_id: str, data: dict[str, Any]) -> "TrackedPackage":
        """Create from a state file entry."""
        return cls(
            id=package_id,
            display_name=data.get("name") or package_id,
            added_at=_parse_timestamp(data.get("addedAt")) or utcnow(),
            last_checked_at=_parse_timestamp(data.get("lastCheckedAt")),
            last_signature=data.get("lastSignature"),
            delivered=bool(data.get("delivered", False)),
            last_changed_at=_parse_timestamp(data.get("lastChangedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a state file entry."""
        return {
            "name": self.display_name,
            "addedAt": _format_timestamp(self.added_at),
            "lastCheckedAt": _format_timestamp(self.last_checked_at),
            "lastSignature": self.last_signature,
            "delivered": self.delivered,
            "lastChangedAt": _format_timestamp(self.last_changed_at),
        }


@dataclass
class NotifyTarget:
    """Where change notifications are delivered."""

    channel: str = "whatsapp"
    target: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.target)
