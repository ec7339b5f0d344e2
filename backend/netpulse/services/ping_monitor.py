"""ICMP Ping monitoring service."""
import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from netpulse.models.settings import MonitorSettings
from netpulse.models.target import ConnectionStatus, ProbeResult, Target
from netpulse.services.aggregation import classify
from netpulse.services.probe_executor import ProbeExecutor
from netpulse.services.target_registry import TargetRegistry

logger = logging.getLogger(__name__)

JOB_ID = "ping_cycle"
BATCH_SIZE = 5


class MonitoringScheduler:
    """
    Drives periodic probing of every active target.

    At most one cycle runs at a time: a tick that arrives while a cycle is
    still in flight is dropped, not queued. Probes run in batches of
    `batch_size`; each batch is awaited in full before the next starts, and
    all results of a cycle are committed to the registry in one step.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        executor: ProbeExecutor,
        settings: MonitorSettings,
        scheduler: Optional[AsyncIOScheduler] = None,
        batch_size: int = BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.executor = executor
        self.batch_size = max(1, batch_size)
        self._settings = settings
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._clock = clock
        self._cycle_lock = asyncio.Lock()

    @property
    def settings(self) -> MonitorSettings:
        return self._settings

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    # ── timer ──────────────────────────────────────────────

    def start(self) -> None:
        # max_instances=1 stops APScheduler itself from stacking runs;
        # the cycle lock covers manual run_cycle() calls as well.
        self._scheduler.add_job(
            self.run_cycle,
            "interval",
            seconds=self._settings.interval,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info("Ping monitor started (interval %.1fs)", self._settings.interval)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("Ping monitor stopped")

    async def update_settings(self, settings: MonitorSettings) -> None:
        """Replace the settings value; re-arm the timer and re-cap histories as needed."""
        previous = self._settings
        self._settings = settings

        if settings.interval != previous.interval and self._scheduler.get_job(JOB_ID):
            self._scheduler.reschedule_job(JOB_ID, trigger="interval", seconds=settings.interval)
            logger.info("Ping interval changed to %.1fs", settings.interval)

        if settings.history_cap < previous.history_cap:
            await self.registry.apply_retention(settings.history_cap)

    # ── cycle ──────────────────────────────────────────────

    async def run_cycle(self) -> bool:
        """Run one monitoring cycle. Returns False if the tick was skipped."""
        if self._cycle_lock.locked():
            logger.debug("Previous ping cycle still running, skipping tick")
            return False

        async with self._cycle_lock:
            active = active_targets(self.registry.snapshot())
            if not active:
                return False

            settings = self._settings
            results: Dict[str, ProbeResult] = {}
            for i in range(0, len(active), self.batch_size):
                batch = active[i:i + self.batch_size]
                outcomes = await asyncio.gather(
                    *[self._probe(target, settings) for target in batch]
                )
                for target, result in zip(batch, outcomes):
                    results[target.id] = result

            # Retention may have shrunk while probes were in flight
            cap = min(settings.history_cap, self._settings.history_cap)
            updated = await self.registry.commit(results, cap)
            logger.debug("Ping cycle complete: %d probed, %d updated", len(results), updated)
            return True

    async def _probe(self, target: Target, settings: MonitorSettings) -> ProbeResult:
        try:
            outcome = await self.executor.probe(target.ip)
        except Exception as e:
            logger.warning(f"Probe executor failed for {target.ip}: {e}")
            return ProbeResult(timestamp=self._clock() * 1000, rtt=0.0, status=ConnectionStatus.DEAD)

        status = classify(outcome.rtt, outcome.reachable, settings.warning_threshold)
        rtt = outcome.rtt if outcome.reachable else 0.0
        return ProbeResult(timestamp=self._clock() * 1000, rtt=rtt, status=status)


def active_targets(targets: List[Target]) -> List[Target]:
    return [t for t in targets if t.is_monitoring]
