"""Tests for the monitoring scheduler: batching, overlap guard, commits."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from netpulse.models.settings import MonitorSettings
from netpulse.models.target import ConnectionStatus
from netpulse.services.ping_monitor import JOB_ID, MonitoringScheduler
from netpulse.services.probe_executor import ProbeOutcome
from netpulse.services.target_registry import TargetRegistry
from tests.helpers.stubs import StubProbeExecutor, settle


def _scheduler(registry, executor, settings=None, **kwargs) -> MonitoringScheduler:
    return MonitoringScheduler(
        registry,
        executor,
        settings or MonitorSettings(interval=2.0, warning_threshold=150, timeframe=120),
        clock=lambda: 1.0,
        **kwargs,
    )


class TestCycle:
    @pytest.mark.asyncio
    async def test_cycle_probes_and_commits(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor({
            "10.0.0.1": [ProbeOutcome(rtt=20.0, reachable=True)],
            "10.0.0.2": [ProbeOutcome(rtt=300.0, reachable=True)],
            "10.0.0.3": [ProbeOutcome(rtt=0.0, reachable=False)],
        })
        a, b, c = await registry.add(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        assert await _scheduler(registry, executor).run_cycle() is True

        assert registry.get(a).status == ConnectionStatus.ALIVE
        assert registry.get(b).status == ConnectionStatus.UNSTABLE
        assert registry.get(c).status == ConnectionStatus.DEAD
        assert registry.get(c).open_incident is not None
        assert registry.get(a).history[0].timestamp == 1000.0

    @pytest.mark.asyncio
    async def test_batches_of_five_run_sequentially(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor()
        await registry.add([f"10.0.0.{i}" for i in range(1, 13)])

        await _scheduler(registry, executor).run_cycle()

        assert executor.max_in_flight == 5
        assert [len(b) for b in executor.batches] == [5, 5, 2]
        assert executor.calls == [f"10.0.0.{i}" for i in range(1, 13)]

    @pytest.mark.asyncio
    async def test_paused_targets_are_skipped(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor()
        a, b = await registry.add(["10.0.0.1", "10.0.0.2"])
        await registry.toggle(b)

        await _scheduler(registry, executor).run_cycle()

        assert executor.calls == ["10.0.0.1"]
        assert registry.get(a).sent == 1
        assert registry.get(b).sent == 0

    @pytest.mark.asyncio
    async def test_no_active_targets_skips_tick(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor()
        assert await _scheduler(registry, executor).run_cycle() is False
        (tid,) = await registry.add(["10.0.0.1"])
        await registry.toggle(tid)
        assert await _scheduler(registry, executor).run_cycle() is False
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_executor_error_counts_as_failure(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor(fail_for={"10.0.0.2"})
        a, b, c = await registry.add(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        assert await _scheduler(registry, executor).run_cycle() is True

        broken = registry.get(b)
        assert broken.status == ConnectionStatus.DEAD
        assert broken.history[0].rtt == 0.0
        assert broken.lost == 1
        assert registry.get(a).received == 1
        assert registry.get(c).received == 1

    @pytest.mark.asyncio
    async def test_guard_released_after_error(self, registry: TargetRegistry, monkeypatch) -> None:
        async def broken_commit(results, cap):
            raise RuntimeError("commit failed")

        await registry.add(["10.0.0.1"])
        monitor = _scheduler(registry, StubProbeExecutor())
        monkeypatch.setattr(registry, "commit", broken_commit)

        with pytest.raises(RuntimeError):
            await monitor.run_cycle()
        assert monitor.cycle_in_progress is False

        monkeypatch.undo()
        assert await monitor.run_cycle() is True


class TestOverlap:
    @pytest.mark.asyncio
    async def test_tick_during_cycle_is_dropped(self, registry: TargetRegistry) -> None:
        gate = asyncio.Event()
        executor = StubProbeExecutor(gate=gate)
        (tid,) = await registry.add(["10.0.0.1"])
        monitor = _scheduler(registry, executor)

        first = asyncio.create_task(monitor.run_cycle())
        await settle()
        assert monitor.cycle_in_progress is True
        assert executor.calls == ["10.0.0.1"]

        assert await monitor.run_cycle() is False
        assert executor.calls == ["10.0.0.1"]
        assert registry.get(tid).sent == 0

        gate.set()
        assert await first is True
        assert monitor.cycle_in_progress is False
        assert registry.get(tid).sent == 1

        assert await monitor.run_cycle() is True
        assert registry.get(tid).sent == 2
        assert registry.get(tid).sent == registry.get(tid).received + registry.get(tid).lost

    @pytest.mark.asyncio
    async def test_commit_waits_for_every_batch(self, registry: TargetRegistry) -> None:
        gate = asyncio.Event()
        executor = StubProbeExecutor(gate=gate)
        ids = await registry.add([f"10.0.0.{i}" for i in range(1, 8)])
        monitor = _scheduler(registry, executor)

        cycle = asyncio.create_task(monitor.run_cycle())
        await settle()
        # first batch is held open; nothing committed, second batch not started
        assert len(executor.calls) == 5
        assert all(registry.get(i).sent == 0 for i in ids)

        gate.set()
        await cycle
        assert all(registry.get(i).sent == 1 for i in ids)

    @pytest.mark.asyncio
    async def test_target_removed_mid_cycle(self, registry: TargetRegistry) -> None:
        gate = asyncio.Event()
        executor = StubProbeExecutor(
            {"10.0.0.9": [ProbeOutcome(0.0, False), ProbeOutcome(0.0, False), ProbeOutcome(5.0, True)]}
        )
        (tid,) = await registry.add(["10.0.0.9"])
        monitor = _scheduler(registry, executor)
        await monitor.run_cycle()
        await monitor.run_cycle()
        assert registry.get(tid).open_incident.lost_count == 2

        executor.gate = gate
        cycle = asyncio.create_task(monitor.run_cycle())
        await settle()
        await registry.remove(tid)
        gate.set()

        assert await cycle is True
        assert registry.get(tid) is None
        assert registry.snapshot() == []


class TestSettings:
    @pytest.mark.asyncio
    async def test_threshold_read_per_cycle(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor({"10.0.0.1": [ProbeOutcome(100.0, True), ProbeOutcome(100.0, True)]})
        (tid,) = await registry.add(["10.0.0.1"])
        monitor = _scheduler(registry, executor)

        await monitor.run_cycle()
        await monitor.update_settings(MonitorSettings(interval=2.0, warning_threshold=50, timeframe=120))
        await monitor.run_cycle()

        statuses = [h.status for h in registry.get(tid).history]
        assert statuses == [ConnectionStatus.ALIVE, ConnectionStatus.UNSTABLE]

    @pytest.mark.asyncio
    async def test_smaller_retention_truncates_immediately(self, registry: TargetRegistry) -> None:
        (tid,) = await registry.add(["10.0.0.1"])
        monitor = _scheduler(registry, StubProbeExecutor(),
                             MonitorSettings(interval=60.0, warning_threshold=150, timeframe=10))
        for _ in range(6):
            await monitor.run_cycle()
        assert len(registry.get(tid).history) == 6

        # 3 minutes at 60s -> cap of 3
        await monitor.update_settings(MonitorSettings(interval=60.0, warning_threshold=150, timeframe=3))
        assert len(registry.get(tid).history) == 3

        # growing the window again does not bring anything back
        await monitor.update_settings(MonitorSettings(interval=60.0, warning_threshold=150, timeframe=10))
        assert len(registry.get(tid).history) == 3
        await monitor.run_cycle()
        assert len(registry.get(tid).history) == 4

    @pytest.mark.asyncio
    async def test_retention_shrunk_during_cycle_holds_at_commit(self, registry: TargetRegistry) -> None:
        executor = StubProbeExecutor()
        (tid,) = await registry.add(["10.0.0.1"])
        monitor = _scheduler(registry, executor,
                             MonitorSettings(interval=60.0, warning_threshold=150, timeframe=10))
        for _ in range(6):
            await monitor.run_cycle()

        gate = asyncio.Event()
        executor.gate = gate
        cycle = asyncio.create_task(monitor.run_cycle())
        await settle()
        await monitor.update_settings(MonitorSettings(interval=60.0, warning_threshold=150, timeframe=3))
        assert len(registry.get(tid).history) == 3
        gate.set()

        assert await cycle is True
        target = registry.get(tid)
        assert len(target.history) == 3
        assert target.sent == 7

    @pytest.mark.asyncio
    async def test_interval_change_rearms_timer(self, registry: TargetRegistry) -> None:
        aps = AsyncIOScheduler(timezone="UTC")
        monitor = _scheduler(registry, StubProbeExecutor(), scheduler=aps)
        monitor.start()
        try:
            assert aps.get_job(JOB_ID).trigger.interval == timedelta(seconds=2)
            await monitor.update_settings(MonitorSettings(interval=5.0, warning_threshold=150, timeframe=120))
            assert aps.get_job(JOB_ID).trigger.interval == timedelta(seconds=5)
        finally:
            monitor.shutdown()


class TestHistoryCap:
    def test_cap_from_window_and_interval(self) -> None:
        assert MonitorSettings(interval=2.0, timeframe=120).history_cap == 3600
        assert MonitorSettings(interval=2.5, timeframe=1).history_cap == 24

    def test_cap_has_floor_but_no_ceiling(self) -> None:
        assert MonitorSettings(interval=1.0, timeframe=180).history_cap == 10800
        assert MonitorSettings(interval=600, timeframe=1).history_cap == 1

    def test_settings_are_immutable(self) -> None:
        settings = MonitorSettings()
        with pytest.raises(Exception):
            settings.interval = 5.0
