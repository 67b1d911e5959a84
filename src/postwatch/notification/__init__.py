"""Notification channels for package status changes."""

from .channels import CommandNotifier, ConsoleNotifier, SlackNotifier, create_notifier
from .types import MessageResult, NotificationError, Notifier

__all__ = [
    "NotificationError",
    "MessageResult",
    "Notifier",
    "ConsoleNotifier",
    "CommandNotifier",
    "SlackNotifier",
    "create_notifier",
]
