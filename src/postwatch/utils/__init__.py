"""Shared utilities for postwatch."""

from .async_utils import AsyncContextManager, retry_async
from .logging import (
    LoggingContextManager,
    get_logger,
    get_structured_logger,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_structured_logger",
    "LoggingContextManager",
    "retry_async",
    "AsyncContextManager",
]
