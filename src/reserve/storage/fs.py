"""On-disk layout of a reserve store, JSON file I/O and root discovery.

Layout under the project root::

    .reserve/
        data/<key>.json     one JSON value per store key
        locks/<key>.lock    one file lock per store key

Every data file is replaced whole through :func:`atomic_write`, so a reader
sees either the previous value or the new one, never a torn write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

RESERVE_DIR = ".reserve"
DATA_DIR = "data"
LOCKS_DIR = "locks"
RESERVE_ROOT_ENV = "RESERVE_ROOT"


class ReserveRootError(Exception):
    """Raised when RESERVE_ROOT env var is set but invalid."""


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def _fsync_directory(path: Path) -> None:
    # Not every platform can fsync a directory descriptor.
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


def atomic_write(path: Path, content: str | bytes) -> None:
    """Replace *path* with *content* via temp file, fsync and rename.

    The temp file is created next to *path* so the rename never crosses a
    filesystem boundary.

    Raises:
        FileNotFoundError: If the parent directory does not exist.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    data = content.encode("utf-8") if isinstance(content, str) else content

    fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=f".{path.name}.")
    closed = False
    try:
        view = memoryview(data)
        while view:
            view = view[os.write(fd, view):]
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
        _fsync_directory(parent)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def dump_json(value: Any) -> str:
    """Sorted, indented JSON with non-ASCII kept readable and a trailing newline."""
    return json.dumps(value, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


def write_json(path: Path, value: Any) -> None:
    atomic_write(path, dump_json(value))


def read_json(path: Path, default: Any = None) -> Any:
    """Decode the JSON value at *path*, or return *default* if it is absent.

    A file that exists but does not decode is logged and treated as absent,
    the way an unparseable browser storage entry reads as empty.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("reserve: ignoring corrupt %s: %s", path.name, exc)
        return default


# ---------------------------------------------------------------------------
# Layout & discovery
# ---------------------------------------------------------------------------


def ensure_reserve_dirs(root: Path) -> Path:
    """Create ``.reserve/data`` and ``.reserve/locks`` under *root*.

    Returns the ``.reserve`` directory itself.
    """
    reserve_dir = root / RESERVE_DIR
    for subdir in (DATA_DIR, LOCKS_DIR):
        (reserve_dir / subdir).mkdir(parents=True, exist_ok=True)
    return reserve_dir


def find_root(start: Path | None = None) -> Path | None:
    """Return the nearest directory at or above *start* holding ``.reserve/``.

    ``RESERVE_ROOT`` takes precedence when set.  It must name an existing
    directory that contains ``.reserve/``; an invalid value is an error
    rather than a reason to fall back to searching from the cwd.

    Raises:
        ReserveRootError: If RESERVE_ROOT is set but invalid.
    """
    env_root = os.environ.get(RESERVE_ROOT_ENV)
    if env_root is not None:
        if not env_root:
            raise ReserveRootError("RESERVE_ROOT is set but empty")
        env_path = Path(env_root)
        if not env_path.is_dir():
            raise ReserveRootError(
                f"RESERVE_ROOT points to a path that does not exist: {env_root}"
            )
        if not (env_path / RESERVE_DIR).is_dir():
            raise ReserveRootError(
                f"RESERVE_ROOT points to a directory with no {RESERVE_DIR}/ inside: {env_root}"
            )
        return env_path

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / RESERVE_DIR).is_dir():
            return candidate
    return None
