"""Monitored target and its probe history."""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class ConnectionStatus(str, Enum):
    ALIVE = "alive"          # reachable, rtt below the warning threshold
    UNSTABLE = "unstable"    # reachable, rtt at or above the warning threshold
    DEAD = "dead"            # unreachable, timed out, or the probe itself failed
    UNKNOWN = "unknown"      # no probe recorded yet


@dataclass(frozen=True)
class ProbeResult:
    """One probe outcome. Timestamps are epoch milliseconds."""
    timestamp: float
    rtt: float
    status: ConnectionStatus

    @property
    def failed(self) -> bool:
        return self.status == ConnectionStatus.DEAD


@dataclass(frozen=True)
class DowntimeEvent:
    """A contiguous run of failed probes."""
    id: str
    start_time: float
    end_time: Optional[float] = None
    lost_count: int = 1

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def duration(self, now: float) -> float:
        """Milliseconds from start to end, or to `now` while still open."""
        end = self.end_time if self.end_time is not None else now
        return max(0.0, end - self.start_time)


@dataclass(frozen=True)
class Hop:
    """One row of a path trace."""
    number: int
    ip: str
    name: str = ""
    avg: float = 0.0
    min: float = 0.0
    cur: float = 0.0
    pl: float = 0.0     # packet loss %


@dataclass(frozen=True)
class NotTraced:
    """No trace has completed for the target yet."""


@dataclass(frozen=True)
class Traced:
    """Result of the most recent completed trace. Empty hops means it failed."""
    hops: Tuple[Hop, ...]
    finished_at: float


TraceState = Union[NotTraced, Traced]

NOT_TRACED = NotTraced()


@dataclass(frozen=True)
class Target:
    id: str
    ip: str
    label: str
    hostname: str = "Network Target"
    custom_name: Optional[str] = None
    is_resolving: bool = False
    is_monitoring: bool = True
    is_graphed: bool = False

    history: Tuple[ProbeResult, ...] = ()
    downtime_events: Tuple[DowntimeEvent, ...] = ()

    min_rtt: float = math.inf
    max_rtt: float = 0.0
    avg_rtt: float = 0.0
    cur_rtt: float = 0.0

    sent: int = 0
    received: int = 0
    lost: int = 0
    packet_loss: float = 0.0

    trace: TraceState = field(default=NOT_TRACED)
    is_tracing: bool = False

    @property
    def display_name(self) -> str:
        return self.custom_name or self.label

    @property
    def status(self) -> ConnectionStatus:
        if not self.history:
            return ConnectionStatus.UNKNOWN
        return self.history[-1].status

    @property
    def open_incident(self) -> Optional[DowntimeEvent]:
        if self.downtime_events and self.downtime_events[-1].is_open:
            return self.downtime_events[-1]
        return None
