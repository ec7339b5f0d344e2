from pydantic import BaseModel, field_validator
from typing import Optional
import re

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


class StatusColorsUpdate(BaseModel):
    alive: Optional[str] = None
    unstable: Optional[str] = None
    dead: Optional[str] = None

    @field_validator("alive", "unstable", "dead")
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _COLOR_RE.match(v):
            raise ValueError(f"Invalid color: {v}")
        return v


class SettingsUpdate(BaseModel):
    interval: Optional[float] = None
    warning_threshold: Optional[int] = None
    timeframe: Optional[int] = None
    status_colors: Optional[StatusColorsUpdate] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("Interval must be greater than 0")
        return v

    @field_validator("warning_threshold", "timeframe")
    @classmethod
    def validate_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("Value must be greater than 0")
        return v


class SettingsResponse(BaseModel):
    interval: float
    warning_threshold: int
    timeframe: int
    history_cap: int
    status_colors: dict
