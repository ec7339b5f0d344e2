from netpulse.models.target import (
    ConnectionStatus, ProbeResult, DowntimeEvent, Hop, NotTraced, Traced, TraceState, NOT_TRACED, Target,
)
from netpulse.models.settings import MonitorSettings, StatusColors

__all__ = [
    "ConnectionStatus", "ProbeResult", "DowntimeEvent", "Hop",
    "NotTraced", "Traced", "TraceState", "NOT_TRACED", "Target",
    "MonitorSettings", "StatusColors",
]
