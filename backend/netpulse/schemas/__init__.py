from netpulse.schemas.target import (
    TargetCreate, TargetRename, TargetResponse, TargetAddResponse, TargetSummary,
    ProbeResultResponse, DowntimeEventResponse, HopResponse, TraceResponse,
)
from netpulse.schemas.settings import SettingsUpdate, SettingsResponse, StatusColorsUpdate

__all__ = [
    "TargetCreate", "TargetRename", "TargetResponse", "TargetAddResponse", "TargetSummary",
    "ProbeResultResponse", "DowntimeEventResponse", "HopResponse", "TraceResponse",
    "SettingsUpdate", "SettingsResponse", "StatusColorsUpdate",
]
