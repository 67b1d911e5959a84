"""Type definitions for the CLI module."""

from datetime import datetime, timezone
from typing import Any, Optional

import click

from ..config.settings import AppSettings
from ..storage.watchlist import WatchlistStore


class CLIError(click.ClickException):
    """A command failed; click prints the message and exits with status 1."""


class CommandResult:
    """Result of a CLI command execution."""

    def __init__(
        self,
        success: bool,
        message: str = "",
        data: Optional[dict[str, Any]] = None,
        exit_code: int = 0,
    ):
        self.success = success
        self.message = message
        self.data = data or {}
        self.exit_code = exit_code
        self.timestamp = datetime.now(timezone.utc)

    def __bool__(self) -> bool:
        return self.success


class CLIContext:
    """Context object shared by CLI commands."""

    def __init__(
        self,
        settings: AppSettings,
        store: WatchlistStore,
        verbose: bool = False,
        debug: bool = False,
    ):
        self.settings = settings
        self.store = store
        self.verbose = verbose
        self.debug = debug
