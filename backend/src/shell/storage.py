"""Key/Value Stores - The local persistence substrate.

String keys map to string values, like browser local storage. Stores are
synchronous and shared by every user; isolation comes from key namespacing
in the persistence gateway.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from ..core.errors import StorageReadError, StorageWriteError


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string key/value substrate."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """In-memory store with an optional size quota.

    The quota counts characters of keys plus values, mirroring how browsers
    bound local storage.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageWriteError(f"Value for {key} must be a string")
        if self.quota_bytes is not None:
            current = self._items.get(key)
            used = self.used_bytes() - (len(key) + len(current) if current is not None else 0)
            if used + len(key) + len(value) > self.quota_bytes:
                raise StorageWriteError(f"Quota exceeded writing {key}")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def used_bytes(self) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items())

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileStore:
    """Store persisted as a single JSON object on disk.

    The whole file is read on first access and rewritten atomically on every
    change.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize file store.

        Args:
            path: JSON file to read and write (created on first write)
        """
        self.path = Path(path).expanduser()
        self._items: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._items is not None:
            return self._items

        if not self.path.exists():
            self._items = {}
            return self._items

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StorageReadError(f"Cannot read store file {self.path}: {e}") from e
        except json.JSONDecodeError:
            data = None

        if not isinstance(data, dict):
            # Keep the unreadable file aside and start from an empty store
            backup = self.path.with_name(self.path.name + ".corrupt")
            logger.warning("Store file %s is corrupt, moving it to %s", self.path, backup)
            try:
                os.replace(self.path, backup)
            except OSError as e:
                raise StorageReadError(f"Cannot move corrupt store file {self.path}: {e}") from e
            data = {}

        self._items = {k: v for k, v in data.items() if isinstance(v, str)}
        logger.debug("Loaded %d keys from %s", len(self._items), self.path)
        return self._items

    def _flush(self, items: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            raise StorageWriteError(f"Cannot write store file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_path)
            raise StorageWriteError(f"Cannot write store file {self.path}: {e}") from e

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._load())
        items[key] = value
        self._flush(items)
        self._items = items

    def remove_item(self, key: str) -> None:
        items = dict(self._load())
        if items.pop(key, None) is not None:
            self._flush(items)
            self._items = items
