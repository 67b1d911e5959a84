"""JSON-file watchlist store.

The state file keeps the layout used by earlier releases of the tracker::

    {
      "notifyChannel": "whatsapp",
      "notifyTarget": null,
      "packages": {"RR123456789IL": {"name": ..., "lastSignature": ...}}
    }

A store is an explicit handle: :meth:`load` reads the file into memory, the
accessors work on that copy, and :meth:`commit` writes it back.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..utils.logging import get_structured_logger
from .types import NotifyTarget, StorageError, TrackedPackage

logger = get_structured_logger(__name__)

DEFAULT_CHANNEL = "whatsapp"


class WatchlistStore:
    """Watched packages and notification target, persisted as JSON."""

    def __init__(self, path: Path, default_channel: str = DEFAULT_CHANNEL):
        self.path = Path(path).expanduser()
        self.default_channel = default_channel
        self._packages: dict[str, TrackedPackage] = {}
        self._notify_target = NotifyTarget(channel=default_channel)
        self._loaded = False
        self._dirty = False

    def load(self) -> "WatchlistStore":
        """Read the state file, replacing any uncommitted in-memory changes."""
        data = self._read()

        self._notify_target = NotifyTarget(
            channel=data.get("notifyChannel") or self.default_channel,
            target=data.get("notifyTarget"),
        )
        packages = data.get("packages") or {}
        if not isinstance(packages, dict):
            raise StorageError(f"Invalid 'packages' section in {self.path}")

        self._packages = {
            package_id: TrackedPackage.from_dict(package_id, entry)
            for package_id, entry in packages.items()
        }
        self._loaded = True
        self._dirty = False

        logger.debug("Loaded watchlist", path=str(self.path), packages=len(self._packages))
        return self

    def commit(self) -> None:
        """Write in-memory state back to disk if anything changed."""
        if not self._dirty:
            return

        data = {
            "notifyChannel": self._notify_target.channel,
            "notifyTarget": self._notify_target.target,
            "packages": {
                package_id: package.to_dict()
                for package_id, package in self._packages.items()
            },
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # The state file is only ever replaced whole.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {str(e)}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {self.path}: {str(e)}") from e

        self._dirty = False
        logger.debug("Committed watchlist", path=str(self.path))

    def get(self, package_id: str) -> Optional[TrackedPackage]:
        self._ensure_loaded()
        return self._packages.get(package_id)

    def upsert(self, package_id: str, package: TrackedPackage) -> None:
        self._ensure_loaded()
        self._packages[package_id] = package
        self._dirty = True

    def list(self) -> list[tuple[str, TrackedPackage]]:
        self._ensure_loaded()
        return list(self._packages.items())

    def remove(self, package_id: str) -> Optional[TrackedPackage]:
        """Drop a package; returns the removed record, if there was one."""
        self._ensure_loaded()
        removed = self._packages.pop(package_id, None)
        if removed is not None:
            self._dirty = True
        return removed

    @property
    def notify_target(self) -> NotifyTarget:
        self._ensure_loaded()
        return self._notify_target

    def set_notify_target(self, target: str, channel: Optional[str] = None) -> None:
        self._ensure_loaded()
        self._notify_target = NotifyTarget(
            channel=channel or self.default_channel, target=target
        )
        self._dirty = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"State file {self.path} is not valid JSON: {str(e)}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {str(e)}") from e

        if not isinstance(data, dict):
            raise StorageError(f"State file {self.path} must contain a JSON object")
        return data
