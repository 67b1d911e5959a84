"""Watchlist persistence for postwatch."""

from .types import NotifyTarget, PackageState, StorageError, TrackedPackage
from .watchlist import WatchlistStore

__all__ = [
    "StorageError",
    "PackageState",
    "TrackedPackage",
    "NotifyTarget",
    "WatchlistStore",
]
