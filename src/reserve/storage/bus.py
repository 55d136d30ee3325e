"""In-process notification bus for background sync outcomes.

Listeners are fire-and-forget: a failing listener is logged and skipped,
it never raises into the sync thread or the write path.

Thread-safe: a lock protects the listener list because outcomes are
published from the scheduler's worker thread while the caller may be
registering or removing listeners.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class OutcomeBus:
    """Fan a sync outcome out to every registered listener."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def register(self, fn: Listener) -> None:
        with self._lock:
            self._listeners.append(fn)

    def unregister(self, fn: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(fn)
            except ValueError:
                pass

    def notify(self, outcome: Any) -> None:
        """Fire all registered listeners.  Never raises."""
        with self._lock:
            listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn(outcome)
            except Exception:
                logger.exception("reserve: sync listener %r failed", fn)
