"""Read-merge-write synchronization against the shared cloud document.

One call to :meth:`Synchronizer.sync` does, in order:

1. check the local cloud configuration (no I/O at all when incomplete)
2. fetch the remote document
3. merge records (newer ``updatedAt`` wins, ties keep local)
4. merge users (remote wins)
5. replace both local collections with the merge, holding both key locks
   from the read in step 3 until this write
6. push the merge, with a fresh ``lastSync``, as the new remote document

There is no server-side coordination.  Two devices syncing at the same
time both push, and the later push replaces the earlier one in full.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from reserve.core.models import CloudConfig, RemoteDocument, utc_now
from reserve.storage.store import RECORDS_KEY, USERS_KEY, Store
from reserve.sync.client import JsonBinClient, RemoteClient
from reserve.sync.config import is_configured, load_cloud_config
from reserve.sync.errors import (
    ConfigurationError,
    PartialConsistencyError,
    SyncError,
    TransportError,
)
from reserve.sync.merge import merge_records, merge_users

logger = logging.getLogger(__name__)

SyncStatus = Literal["success", "not_configured", "fetch_failed", "push_failed", "failed"]

ClientFactory = Callable[[CloudConfig], RemoteClient]


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one sync attempt.

    ``merged_count`` is the number of records after the merge; it is only
    meaningful for ``success`` and ``push_failed`` (where the merge was
    already committed locally).
    """

    status: SyncStatus
    message: str
    merged_count: int = 0
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def diverged(self) -> bool:
        """True when local storage holds a merge the remote never received."""
        return self.status == "push_failed"

    def to_dict(self) -> dict:
        d: dict = {
            "status": self.status,
            "message": self.message,
            "merged_count": self.merged_count,
        }
        if self.error is not None:
            d["error_type"] = type(self.error).__name__
            status = getattr(self.error, "status", None)
            if status is not None:
                d["http_status"] = status
        return d


class Synchronizer:
    """Reconcile local records and users with the remote document."""

    def __init__(
        self,
        store: Store,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.store = store
        self._client_factory = client_factory or JsonBinClient.from_config

    def sync(self) -> SyncOutcome:
        config = load_cloud_config(self.store)
        if not is_configured(config):
            logger.debug("reserve sync: skipped, cloud sync is not configured")
            return SyncOutcome(
                "not_configured",
                "Cloud sync is not configured.",
                error=ConfigurationError("cloud sync is disabled or missing credentials"),
            )

        client = self._client_factory(config)

        try:
            remote = client.fetch()
        except TransportError as exc:
            logger.warning("reserve sync: fetch failed: %s", exc)
            return SyncOutcome("fetch_failed", f"Fetch failed: {exc}", error=exc)

        def merge(local: dict) -> dict:
            return {
                RECORDS_KEY: merge_records(local[RECORDS_KEY], _collection(remote, "records")),
                USERS_KEY: merge_users(local[USERS_KEY], _collection(remote, "users")),
            }

        # Both keys stay locked from the read to the write, so a mutation
        # committed meanwhile waits and then lands on top of the merge.
        merged = self.store.update_many(
            (RECORDS_KEY, USERS_KEY), merge, defaults={RECORDS_KEY: [], USERS_KEY: []}
        )
        records = merged[RECORDS_KEY]
        users = merged[USERS_KEY]

        document: RemoteDocument = {"records": records, "users": users, "lastSync": utc_now()}
        try:
            client.push(document)
        except TransportError as exc:
            drift = PartialConsistencyError(
                f"merged {len(records)} records locally but push failed: {exc}",
                status=exc.status,
            )
            logger.error("reserve sync: %s", drift)
            return SyncOutcome(
                "push_failed",
                f"Push failed after local merge: {exc}",
                merged_count=len(records),
                error=drift,
            )

        logger.info("reserve sync: %d records, %d users", len(records), len(users))
        return SyncOutcome(
            "success",
            f"Synced {len(records)} records.",
            merged_count=len(records),
        )


def run_sync(synchronizer: Synchronizer) -> SyncOutcome:
    """Run one sync and turn any unexpected error into a ``failed`` outcome.

    Transport problems already come back as outcomes; this catches the rest,
    such as a lock timeout or a disk error during the local write.
    """
    try:
        return synchronizer.sync()
    except Exception as exc:
        logger.exception("reserve sync: run failed")
        return SyncOutcome("failed", f"Sync failed: {exc}")


def _collection(document: RemoteDocument, key: str) -> list:
    """A remote collection, or an empty list when the bin lacks it."""
    value = document.get(key) if isinstance(document, dict) else None
    return value if isinstance(value, list) else []
