"""Tests for background single-flight scheduling and outcome delivery."""

from __future__ import annotations

import threading

import pytest

from reserve.storage.bus import OutcomeBus
from reserve.sync.engine import SyncOutcome
from reserve.sync.scheduler import InlineScheduler, SyncScheduler


class GatedSynchronizer:
    """Blocks inside sync() until released, counting runs."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.runs = 0

    def sync(self) -> SyncOutcome:
        self.runs += 1
        self.started.set()
        assert self.release.wait(5)
        return SyncOutcome("success", f"run {self.runs}")


class ExplodingSynchronizer:
    def sync(self) -> SyncOutcome:
        raise OSError("disk full")


class TestSyncScheduler:
    def test_single_request_runs_once(self) -> None:
        synchronizer = GatedSynchronizer()
        synchronizer.release.set()
        outcomes: list[SyncOutcome] = []
        bus = OutcomeBus()
        bus.register(outcomes.append)

        scheduler = SyncScheduler(synchronizer, bus)
        scheduler.request()

        assert scheduler.wait(5)
        assert synchronizer.runs == 1
        assert [o.status for o in outcomes] == ["success"]
        assert not scheduler.busy

    def test_burst_coalesces_into_one_follow_up(self) -> None:
        synchronizer = GatedSynchronizer()
        scheduler = SyncScheduler(synchronizer)

        scheduler.request()
        assert synchronizer.started.wait(5)
        assert scheduler.busy
        for _ in range(5):
            scheduler.request()
        synchronizer.release.set()

        assert scheduler.wait(5)
        assert synchronizer.runs == 2

    def test_request_returns_before_sync_finishes(self) -> None:
        synchronizer = GatedSynchronizer()
        scheduler = SyncScheduler(synchronizer)

        scheduler.request()
        assert synchronizer.started.wait(5)
        assert not scheduler.wait(0.05)

        synchronizer.release.set()
        assert scheduler.wait(5)

    def test_unexpected_error_becomes_failed_outcome(self) -> None:
        outcomes: list[SyncOutcome] = []
        bus = OutcomeBus()
        bus.register(outcomes.append)

        scheduler = SyncScheduler(ExplodingSynchronizer(), bus)
        scheduler.request()

        assert scheduler.wait(5)
        assert outcomes[0].status == "failed"
        assert "disk full" in outcomes[0].message

    def test_scheduler_is_reusable_after_idle(self) -> None:
        synchronizer = GatedSynchronizer()
        synchronizer.release.set()
        scheduler = SyncScheduler(synchronizer)

        scheduler.request()
        assert scheduler.wait(5)
        scheduler.request()
        assert scheduler.wait(5)

        assert synchronizer.runs == 2


class TestInlineScheduler:
    def test_runs_in_caller_thread(self) -> None:
        synchronizer = GatedSynchronizer()
        synchronizer.release.set()
        outcomes: list[SyncOutcome] = []
        bus = OutcomeBus()
        bus.register(outcomes.append)

        InlineScheduler(synchronizer, bus).request()

        assert synchronizer.runs == 1
        assert outcomes[0].ok

    def test_never_raises(self) -> None:
        outcomes: list[SyncOutcome] = []
        bus = OutcomeBus()
        bus.register(outcomes.append)

        InlineScheduler(ExplodingSynchronizer(), bus).request()

        assert outcomes[0].status == "failed"


class TestOutcomeBus:
    def test_failing_listener_does_not_block_others(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        seen: list[str] = []
        bus = OutcomeBus()

        def broken(outcome: SyncOutcome) -> None:
            raise RuntimeError("listener bug")

        bus.register(broken)
        bus.register(lambda o: seen.append(o.status))

        bus.notify(SyncOutcome("push_failed", "x"))

        assert seen == ["push_failed"]
        assert "listener" in caplog.text

    def test_unregister(self) -> None:
        seen: list[object] = []
        bus = OutcomeBus()
        bus.register(seen.append)
        bus.unregister(seen.append)
        bus.unregister(seen.append)

        bus.notify("x")

        assert seen == []
