"""Merge routines for the local and remote collections.

Records resolve conflicts by ``updatedAt``: the remote copy replaces the
local one only when its timestamp is strictly newer, so ties keep local.
Users carry no timestamp and the remote copy always wins.

Neither merge knows about deletions.  A record removed on one side but
still present on the other comes back after the next sync; there are no
tombstones.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone

from reserve.core.models import PayrollRecord, User, parse_ts

# Missing or unparseable timestamps sort before every real one.
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _updated_at(record: PayrollRecord) -> datetime:
    return parse_ts(record.get("updatedAt")) or _EPOCH


def is_newer(candidate: PayrollRecord, current: PayrollRecord) -> bool:
    """True when *candidate* was updated strictly after *current*."""
    return _updated_at(candidate) > _updated_at(current)


def _with_ids(entries: list) -> Iterator[tuple[str, dict]]:
    # Anything that is not an object with an id cannot take part in a merge.
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id"):
            yield entry["id"], entry


def merge_records(
    local: list[PayrollRecord], remote: list[PayrollRecord]
) -> list[PayrollRecord]:
    """Union by id, keeping the newer copy of ids present on both sides.

    Order: local records first in their local order, then remote-only
    records in remote order.  Entries that are not objects, or have no id,
    are dropped.
    """
    merged: dict[str, PayrollRecord] = dict(_with_ids(local))
    for rid, rec in _with_ids(remote):
        existing = merged.get(rid)
        if existing is None or is_newer(rec, existing):
            merged[rid] = rec
    return list(merged.values())


def merge_users(local: list[User], remote: list[User]) -> list[User]:
    """Union by id; the remote copy overwrites the local one on collision."""
    merged: dict[str, User] = dict(_with_ids(local))
    merged.update(_with_ids(remote))
    return list(merged.values())
