"""Background, single-flight scheduling of sync runs.

Every local mutation calls :meth:`SyncScheduler.request` after its own
write has committed.  The request returns immediately.  While a run is in
flight, further requests collapse into one pending follow-up, so a burst of
mutations produces at most two runs: the current one and one more that
sees everything the burst wrote.

Outcomes are published on an :class:`~reserve.storage.bus.OutcomeBus`.
Nothing here raises into the caller.
"""

from __future__ import annotations

import threading

from reserve.storage.bus import OutcomeBus
from reserve.sync.engine import SyncOutcome, Synchronizer, run_sync


class SyncScheduler:
    """Run :meth:`Synchronizer.sync` on a worker thread, one at a time."""

    def __init__(self, synchronizer: Synchronizer, bus: OutcomeBus | None = None) -> None:
        self.synchronizer = synchronizer
        self.bus = bus or OutcomeBus()
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self._idle = threading.Event()
        self._idle.set()
        self._thread: threading.Thread | None = None

    @property
    def busy(self) -> bool:
        return not self._idle.is_set()

    def request(self) -> None:
        """Ask for a sync; start a worker unless one is already running."""
        with self._lock:
            if self._running:
                self._pending = True
                return
            self._running = True
            self._idle.clear()
            self._thread = threading.Thread(
                target=self._worker, name="reserve-sync", daemon=True
            )
            self._thread.start()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no run is in flight or queued.  False on timeout."""
        return self._idle.wait(timeout)

    def _worker(self) -> None:
        while True:
            outcome = self._run_once()
            self.bus.notify(outcome)
            with self._lock:
                if not self._pending:
                    self._running = False
                    self._idle.set()
                    return
                self._pending = False

    def _run_once(self) -> SyncOutcome:
        return run_sync(self.synchronizer)


class InlineScheduler:
    """Run each requested sync synchronously in the caller's thread.

    Used where no background thread is wanted (tests, one-shot scripts).
    Failures are still reported on the bus, never raised.
    """

    def __init__(self, synchronizer: Synchronizer, bus: OutcomeBus | None = None) -> None:
        self.synchronizer = synchronizer
        self.bus = bus or OutcomeBus()

    busy = False

    def request(self) -> None:
        self.bus.notify(run_sync(self.synchronizer))

    def wait(self, timeout: float | None = None) -> bool:
        return True
