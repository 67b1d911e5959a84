"""Command-line interface components."""

from .main import cli, run
from .types import CLIContext, CLIError, CommandResult

__all__ = [
    "CLIError",
    "CommandResult",
    "CLIContext",
    "cli",
    "run",
]
