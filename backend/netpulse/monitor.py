"""Wires the registry, scheduler and trace controller into one runtime."""
import logging
from typing import Optional

from fastapi import Request

from netpulse.config import Settings, settings as app_settings
from netpulse.models.settings import MonitorSettings
from netpulse.services.name_resolver import NameResolver, ReverseDnsResolver
from netpulse.services.ping_monitor import MonitoringScheduler
from netpulse.services.probe_executor import ProbeExecutor, SimulatedProbeExecutor, SystemPingExecutor
from netpulse.services.target_registry import TargetRegistry
from netpulse.services.trace_controller import TraceController
from netpulse.services.traceroute import SimulatedTraceExecutor, SystemTraceExecutor, TraceExecutor

logger = logging.getLogger(__name__)


class Monitor:
    def __init__(
        self,
        probe_executor: ProbeExecutor,
        trace_executor: TraceExecutor,
        monitor_settings: MonitorSettings,
        resolver: Optional[NameResolver] = None,
        batch_size: int = 5,
    ):
        self.registry = TargetRegistry(resolver=resolver)
        self.scheduler = MonitoringScheduler(
            self.registry, probe_executor, monitor_settings, batch_size=batch_size
        )
        self.tracer = TraceController(self.registry, trace_executor)

    @property
    def settings(self) -> MonitorSettings:
        return self.scheduler.settings

    @classmethod
    def from_settings(cls, config: Settings = app_settings) -> "Monitor":
        if config.PROBE_MODE == "simulated":
            probe: ProbeExecutor = SimulatedProbeExecutor()
            trace: TraceExecutor = SimulatedTraceExecutor()
        else:
            probe = SystemPingExecutor(timeout_ms=config.PROBE_TIMEOUT_MS)
            trace = SystemTraceExecutor(max_hops=config.TRACE_MAX_HOPS, wait_ms=config.TRACE_TIMEOUT_MS)
        resolver = ReverseDnsResolver(config.RESOLVE_TIMEOUT_SECONDS) if config.RESOLVE_HOSTNAMES else None
        monitor_settings = MonitorSettings(
            interval=config.PING_INTERVAL_SECONDS,
            warning_threshold=config.WARNING_THRESHOLD_MS,
            timeframe=config.TIMEFRAME_MINUTES,
        )
        logger.info("Probe mode: %s", config.PROBE_MODE)
        return cls(probe, trace, monitor_settings, resolver=resolver, batch_size=config.PROBE_BATCH_SIZE)

    def start(self) -> None:
        self.scheduler.start()

    async def stop(self) -> None:
        self.scheduler.shutdown()
        await self.tracer.close()
        await self.registry.close()


def get_monitor(request: Request) -> Monitor:
    return request.app.state.monitor
