"""Key-value persistence port and its adapters.

Each collection lives under one fixed key and is stored whole as JSON:
``FileStore`` writes one ``<key>.json`` file per key inside
``.reserve/data/``; ``MemoryStore`` keeps deep copies in a dict and backs
the tests.  The key names carry a version suffix, and a format change means
a new key rather than a migration.

Read-modify-write goes through :meth:`Store.update` (one key) or
:meth:`Store.update_many` (several keys at once).  Both hold the locks of
every key involved from the read until the write, so concurrent writers
never overwrite each other's changes.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol

from reserve.storage.fs import DATA_DIR, LOCKS_DIR, read_json, write_json
from reserve.storage.locks import key_locks, store_lock

RECORDS_KEY = "app_records_v3"
USERS_KEY = "app_users_v3"
CURRENT_USER_KEY = "app_current_user_v3"
CLOUD_CONFIG_KEY = "app_cloud_config_v3"

ManyUpdater = Callable[[dict[str, Any]], dict[str, Any]]


class Store(Protocol):
    """What the repository and the synchronizer need from local storage."""

    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def has(self, key: str) -> bool: ...

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any: ...

    def update_many(
        self,
        keys: Iterable[str],
        fn: ManyUpdater,
        defaults: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...


class FileStore:
    """JSON-file store rooted at a ``.reserve`` directory."""

    def __init__(self, reserve_dir: Path) -> None:
        self.data_dir = reserve_dir / DATA_DIR
        self.locks_dir = reserve_dir / LOCKS_DIR
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.locks_dir.mkdir(parents=True, exist_ok=True)

    def has(self, key: str) -> bool:
        return self._path(key).exists()

    def load(self, key: str, default: Any = None) -> Any:
        return read_json(self._path(key), default)

    def save(self, key: str, value: Any) -> None:
        with store_lock(self.locks_dir, key):
            write_json(self._path(key), value)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Read-modify-write *key* under its lock; returns the new value."""
        with store_lock(self.locks_dir, key):
            new_value = fn(self.load(key, copy.deepcopy(default)))
            write_json(self._path(key), new_value)
        return new_value

    def update_many(
        self,
        keys: Iterable[str],
        fn: ManyUpdater,
        defaults: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Read several keys, pass them to *fn*, write back what it returns.

        All key locks are held from the first read to the last write.  Keys
        missing from *fn*'s result are left as they were.
        """
        keys = list(keys)
        defaults = defaults or {}
        with key_locks(self.locks_dir, keys):
            current = {k: self.load(k, copy.deepcopy(defaults.get(k))) for k in keys}
            new_values = fn(current)
            for key in keys:
                if key in new_values:
                    write_json(self._path(key), new_values[key])
        return new_values

    def remove(self, key: str) -> None:
        with store_lock(self.locks_dir, key):
            self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"


class MemoryStore:
    """In-process store; values are deep-copied on the way in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def has(self, key: str) -> bool:
        return key in self._data

    def load(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            new_value = fn(copy.deepcopy(self._data.get(key, default)))
            self._data[key] = copy.deepcopy(new_value)
        return new_value

    def update_many(
        self,
        keys: Iterable[str],
        fn: ManyUpdater,
        defaults: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        keys = list(keys)
        defaults = defaults or {}
        with self._lock:
            current = {k: copy.deepcopy(self._data.get(k, defaults.get(k))) for k in keys}
            new_values = fn(current)
            for key in keys:
                if key in new_values:
                    self._data[key] = copy.deepcopy(new_values[key])
        return new_values

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
