"""Runtime monitoring settings."""
import math
from pydantic import BaseModel, Field


class StatusColors(BaseModel):
    """Display colors per status. Presentation only, never read by the engine."""
    alive: str = "#10b981"
    unstable: str = "#f59e0b"
    dead: str = "#ef4444"

    model_config = {"frozen": True}


class MonitorSettings(BaseModel):
    """Immutable settings value.

    A change produces a new instance that replaces the old one wholesale;
    the scheduler reads it once at the start of every cycle.
    """
    interval: float = Field(2.0, gt=0)              # seconds
    warning_threshold: int = Field(150, gt=0)       # ms
    timeframe: int = Field(120, gt=0)               # minutes of history retention
    status_colors: StatusColors = StatusColors()

    model_config = {"frozen": True}

    @property
    def history_cap(self) -> int:
        """Number of history points covering the retention window."""
        points = math.floor((self.timeframe * 60) / self.interval)
        return max(1, points)
