"""Notifier implementations for the supported delivery channels."""

import shutil
import subprocess
from typing import Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from ..config.settings import NotificationSettings
from ..storage.types import NotifyTarget
from ..utils.logging import get_structured_logger
from .types import MessageResult, NotificationError, Notifier

logger = get_structured_logger(__name__)


class ConsoleNotifier:
    """Logs the message instead of sending it; used when no target is set."""

    def __init__(self, echo=print):
        self.echo = echo

    def notify(self, message: str) -> MessageResult:
        self.echo(f"[NOTIFY] {message}")
        logger.info("Notification written to console")
        return MessageResult(success=True, channel="console")


class CommandNotifier:
    """Sends through the ``openclaw message send`` command-line client."""

    def __init__(
        self,
        channel: str,
        target: str,
        command: str = "openclaw",
        timeout: float = 60.0,
        runner=subprocess.run,
    ):
        self.channel = channel
        self.target = target
        self.command = command
        self.timeout = timeout
        self.runner = runner

    def build_args(self, message: str) -> list[str]:
        return [
            self.command,
            "message",
            "send",
            "--channel",
            self.channel,
            "--target",
            self.target,
            "--message",
            message,
        ]

    def notify(self, message: str) -> MessageResult:
        try:
            self._send(message)
        except NotificationError as e:
            logger.error(
                "Notification delivery failed",
                channel=self.channel,
                error=str(e),
            )
            return MessageResult(
                success=False,
                channel=self.channel,
                target=self.target,
                error_message=str(e),
            )

        logger.info("Notification sent", channel=self.channel)
        return MessageResult(success=True, channel=self.channel, target=self.target)

    def _send(self, message: str) -> None:
        try:
            completed = self.runner(
                self.build_args(message),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise NotificationError(f"Command not found: {self.command}") from e
        except subprocess.TimeoutExpired as e:
            raise NotificationError(
                f"{self.command} timed out after {self.timeout}s"
            ) from e

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise NotificationError(
                f"{self.command} exited with status {completed.returncode}: {detail}"
            )


class SlackNotifier:
    """Posts the message to a Slack channel or user with the Web API."""

    def __init__(self, token: str, target: str, client: Optional[WebClient] = None):
        self.target = target
        self.client = client or WebClient(token=token)

    def notify(self, message: str) -> MessageResult:
        try:
            response = self.client.chat_postMessage(channel=self.target, text=message)
        except SlackApiError as e:
            error = e.response.get("error", str(e))
            logger.error("Slack delivery failed", target=self.target, error=error)
            return MessageResult(
                success=False, channel="slack", target=self.target, error_message=error
            )

        logger.info("Notification sent", channel="slack", target=self.target)
        return MessageResult(
            success=True,
            channel="slack",
            target=self.target,
            message_id=response.get("ts"),
        )


def create_notifier(
    notify_target: NotifyTarget, settings: Optional[NotificationSettings] = None
) -> Notifier:
    """Pick the notifier matching the configured channel and target."""
    settings = settings or NotificationSettings()

    if not notify_target:
        return ConsoleNotifier()

    if notify_target.channel == "slack":
        token = settings.slack_bot_token.get_secret_value()
        if not token:
            raise NotificationError(
                "Slack notifications require POSTWATCH_NOTIFICATION__SLACK_BOT_TOKEN"
            )
        return SlackNotifier(token=token, target=notify_target.target)

    if shutil.which(settings.command) is None:
        logger.warning(
            "Notification command not found on PATH", command=settings.command
        )

    return CommandNotifier(
        channel=notify_target.channel,
        target=notify_target.target,
        command=settings.command,
        timeout=settings.command_timeout,
    )
