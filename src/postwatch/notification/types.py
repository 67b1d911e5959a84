"""Type definitions for the notification module."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


@dataclass
class MessageResult:
    """Result of sending a message."""

    success: bool
    channel: Optional[str] = None
    target: Optional[str] = None
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None

    def __post_init__(self):
        if self.sent_at is None:
            self.sent_at = datetime.now(timezone.utc)


class Notifier(Protocol):
    """Delivers a plain-text message somewhere a person will see it.

    Delivery is best-effort: implementations report failure through the
    returned :class:`MessageResult` instead of raising.
    """

    def notify(self, message: str) -> MessageResult:
        ...
