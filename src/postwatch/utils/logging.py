"""Structured logging setup using structlog.

Log lines go to stderr so that command output on stdout stays clean for
piping; the check cycle binds ``tracking_id`` around each package so every
line logged while it is processed carries the identifier.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import FilteringBoundLogger, Processor

DEFAULT_LOGGER_NAME = "postwatch"


def setup_logging(log_level: str = "WARNING", json_logs: bool = False) -> None:
    """Configure structlog (and stdlib logging) for the CLI process."""
    level = getattr(logging, log_level.upper())

    # Library modules such as the YAML loader log through the stdlib.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
        _renderer(json_logs),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        # Hebrew status text stays readable in JSON output.
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _stderr_logger_factory(*args: Any) -> structlog.WriteLogger:
    # Resolved per call so redirected or replaced streams are honoured.
    return structlog.WriteLogger(sys.stderr)


def _add_logger_name(logger, method_name: str, event_dict):
    event_dict["logger"] = event_dict.pop("logger_name", DEFAULT_LOGGER_NAME)
    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structlog logger that reports ``name`` as its origin."""
    return structlog.get_logger(name, logger_name=name)


class LoggingContextManager:
    """Bind structured context for the duration of a ``with`` block."""

    def __init__(self, **context: Any):
        self.context = context
        self._tokens = None

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.reset_contextvars(**self._tokens)


class StructuredLogger:
    """Thin wrapper giving every module a named, structured logger."""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(name)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.logger.error(message, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
