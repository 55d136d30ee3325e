"""Best-effort mirroring of local records and users to a shared cloud document."""

from __future__ import annotations

from reserve.sync.engine import SyncOutcome, Synchronizer
from reserve.sync.merge import merge_records, merge_users
from reserve.sync.scheduler import InlineScheduler, SyncScheduler

__all__ = [
    "InlineScheduler",
    "SyncOutcome",
    "SyncScheduler",
    "Synchronizer",
    "merge_records",
    "merge_users",
]
