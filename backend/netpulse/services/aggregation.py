"""
Aggregation Engine - folds probe results into per-target statistics.
Pure functions: no I/O and no clock reads beyond the result's own timestamp.
"""
from dataclasses import replace
from typing import Iterable, Tuple

from netpulse.models.target import ConnectionStatus, DowntimeEvent, ProbeResult, Target


def classify(rtt: float, reachable: bool, warning_threshold: float) -> ConnectionStatus:
    if not reachable:
        return ConnectionStatus.DEAD
    if rtt >= warning_threshold:
        return ConnectionStatus.UNSTABLE
    return ConnectionStatus.ALIVE


def _rtt_stats(history: Iterable[ProbeResult], target: Target) -> Tuple[float, float, float]:
    """
    Returns (min, max, avg) over the non-failed entries of history.
    With no such entries min/max keep the target's last known good values
    and avg drops to 0.
    """
    alive = [h.rtt for h in history if not h.failed]
    if not alive:
        return target.min_rtt, target.max_rtt, 0.0
    return min(alive), max(alive), sum(alive) / len(alive)


def _update_incidents(
    target: Target, result: ProbeResult
) -> Tuple[DowntimeEvent, ...]:
    """Each target has at most ONE open incident; only the last entry can be open."""
    events = target.downtime_events
    last = events[-1] if events else None

    if result.failed:
        if last is not None and last.is_open:
            return events[:-1] + (replace(last, lost_count=last.lost_count + 1),)
        opened = DowntimeEvent(
            id=f"{target.id}:{len(events) + 1}",
            start_time=result.timestamp,
            lost_count=1,
        )
        return events + (opened,)

    if last is not None and last.is_open:
        return events[:-1] + (replace(last, end_time=result.timestamp),)
    return events


def fold(target: Target, result: ProbeResult, cap: int) -> Target:
    """Apply one probe result to a target and return the updated target."""
    history = (target.history + (result,))[-max(cap, 1):]
    min_rtt, max_rtt, avg_rtt = _rtt_stats(history, target)

    failed = result.failed
    sent = target.sent + 1
    lost = target.lost + (1 if failed else 0)
    received = target.received + (0 if failed else 1)

    return replace(
        target,
        history=history,
        downtime_events=_update_incidents(target, result),
        min_rtt=min_rtt,
        max_rtt=max_rtt,
        avg_rtt=avg_rtt,
        cur_rtt=0.0 if failed else result.rtt,
        sent=sent,
        received=received,
        lost=lost,
        packet_loss=(lost / sent) * 100,
    )


def truncate(target: Target, cap: int) -> Target:
    """Shrink history to a smaller cap and re-derive the windowed statistics."""
    cap = max(cap, 1)
    if len(target.history) <= cap:
        return target
    history = target.history[-cap:]
    min_rtt, max_rtt, avg_rtt = _rtt_stats(history, target)
    return replace(target, history=history, min_rtt=min_rtt, max_rtt=max_rtt, avg_rtt=avg_rtt)
