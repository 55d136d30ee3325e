"""Per-key file locks for the local store.

Every store key has its own lock file, ``locks/<key>.lock``.  A writer that
touches several keys takes all of their locks before reading any of them,
so a read-merge-write over records and users cannot interleave with a
single-key update from another thread or another ``reserve`` process.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator, Iterable
from pathlib import Path

from filelock import FileLock, Timeout

DEFAULT_TIMEOUT = 10.0


class LockTimeout(Exception):
    """A key lock could not be acquired within the timeout period."""

    def __init__(self, key: str, timeout: float) -> None:
        super().__init__(f"Could not acquire lock '{key}' within {timeout}s")
        self.key = key
        self.timeout = timeout


@contextlib.contextmanager
def key_locks(
    locks_dir: Path,
    keys: Iterable[str],
    timeout: float = DEFAULT_TIMEOUT,
) -> Generator[None, None, None]:
    """Hold the locks of *keys* for the duration of the block.

    Keys are de-duplicated and taken in sorted order, so two writers with
    overlapping key sets cannot deadlock.  Locks already taken are released
    in reverse order, including when a later acquire times out.

    Raises:
        LockTimeout: If any lock cannot be acquired within *timeout* seconds.
    """
    held: list[FileLock] = []
    try:
        for key in sorted(set(keys)):
            lock = FileLock(locks_dir / f"{key}.lock", timeout=timeout)
            try:
                lock.acquire()
            except Timeout:
                raise LockTimeout(key, timeout) from None
            held.append(lock)
        yield
    finally:
        for lock in reversed(held):
            lock.release()


def store_lock(locks_dir: Path, key: str, timeout: float = DEFAULT_TIMEOUT):  # noqa: ANN201
    """Lock a single key; shorthand for ``key_locks(locks_dir, [key])``."""
    return key_locks(locks_dir, [key], timeout)
