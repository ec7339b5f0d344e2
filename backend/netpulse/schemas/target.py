import time
from pydantic import BaseModel, field_validator
from typing import Optional, List

from netpulse.models.target import ConnectionStatus, Target, Traced


class TargetCreate(BaseModel):
    targets: str       # e.g. "8.8.8.8, 10.0.0.1-50 192.168.1.0/24"

    @field_validator("targets")
    @classmethod
    def validate_targets(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("At least one target is required")
        return v


class TargetRename(BaseModel):
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 100:
            raise ValueError("Name must be at most 100 characters")
        return v


class ProbeResultResponse(BaseModel):
    timestamp: float
    rtt: float
    status: ConnectionStatus

    model_config = {"from_attributes": True}


class DowntimeEventResponse(BaseModel):
    id: str
    start_time: float
    end_time: Optional[float] = None
    lost_count: int
    duration_ms: float = 0.0         # up to now while the incident is open

    model_config = {"from_attributes": True}


class HopResponse(BaseModel):
    number: int
    ip: str
    name: str
    avg: float
    min: float
    cur: float
    pl: float

    model_config = {"from_attributes": True}


class TargetResponse(BaseModel):
    id: str
    ip: str
    label: str
    display_name: str
    hostname: str
    custom_name: Optional[str] = None
    is_resolving: bool
    is_monitoring: bool
    is_graphed: bool
    status: str
    min_rtt: Optional[float] = None     # None until a reply has been seen
    max_rtt: float
    avg_rtt: float
    cur_rtt: float
    sent: int
    received: int
    lost: int
    packet_loss: float
    history: List[ProbeResultResponse] = []
    downtime_events: List[DowntimeEventResponse] = []
    traced: bool = False
    hops: List[HopResponse] = []
    is_tracing: bool

    @classmethod
    def from_target(
        cls, target: Target, include_history: bool = True, now: Optional[float] = None
    ) -> "TargetResponse":
        traced = isinstance(target.trace, Traced)
        now = time.time() * 1000 if now is None else now
        return cls(
            id=target.id,
            ip=target.ip,
            label=target.label,
            display_name=target.display_name,
            hostname=target.hostname,
            custom_name=target.custom_name,
            is_resolving=target.is_resolving,
            is_monitoring=target.is_monitoring,
            is_graphed=target.is_graphed,
            status=target.status.value,
            min_rtt=None if target.min_rtt == float("inf") else target.min_rtt,
            max_rtt=target.max_rtt,
            avg_rtt=target.avg_rtt,
            cur_rtt=target.cur_rtt,
            sent=target.sent,
            received=target.received,
            lost=target.lost,
            packet_loss=target.packet_loss,
            history=[ProbeResultResponse.model_validate(h) for h in target.history] if include_history else [],
            downtime_events=[
                DowntimeEventResponse(
                    id=e.id,
                    start_time=e.start_time,
                    end_time=e.end_time,
                    lost_count=e.lost_count,
                    duration_ms=e.duration(now),
                )
                for e in target.downtime_events
            ],
            traced=traced,
            hops=[HopResponse.model_validate(h) for h in target.trace.hops] if traced else [],
            is_tracing=target.is_tracing,
        )


class TargetAddResponse(BaseModel):
    added: int
    ids: List[str]


class TargetSummary(BaseModel):
    total_targets: int
    monitoring: int
    alive: int
    unstable: int
    dead: int
    unknown: int
    open_incidents: int


class TraceResponse(BaseModel):
    target_id: str
    hops: List[HopResponse]
