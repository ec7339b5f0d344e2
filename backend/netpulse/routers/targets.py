from fastapi import APIRouter, Depends, HTTPException
from typing import List

from netpulse.models.target import ConnectionStatus
from netpulse.monitor import Monitor, get_monitor
from netpulse.schemas.target import (
    TargetCreate, TargetRename, TargetResponse, TargetAddResponse, TargetSummary,
    TraceResponse, HopResponse,
)
from netpulse.services.target_parser import parse_targets

router = APIRouter(prefix="/api/targets", tags=["Targets"])


def _get_or_404(monitor: Monitor, target_id: str):
    target = monitor.registry.get(target_id)
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return target


@router.get("/", response_model=List[TargetResponse])
async def list_targets(
    include_history: bool = True,
    monitor: Monitor = Depends(get_monitor),
):
    return [TargetResponse.from_target(t, include_history) for t in monitor.registry.snapshot()]


@router.post("/", response_model=TargetAddResponse)
async def add_targets(payload: TargetCreate, monitor: Monitor = Depends(get_monitor)):
    addresses = parse_targets(payload.targets)
    if not addresses:
        raise HTTPException(status_code=400, detail="No valid targets in input")
    ids = await monitor.registry.add(addresses)
    return TargetAddResponse(added=len(ids), ids=ids)


@router.get("/summary", response_model=TargetSummary)
async def get_summary(monitor: Monitor = Depends(get_monitor)):
    """Dashboard summary statistics."""
    targets = monitor.registry.snapshot()
    by_status = {s: 0 for s in ConnectionStatus}
    for t in targets:
        by_status[t.status] += 1
    return TargetSummary(
        total_targets=len(targets),
        monitoring=sum(1 for t in targets if t.is_monitoring),
        alive=by_status[ConnectionStatus.ALIVE],
        unstable=by_status[ConnectionStatus.UNSTABLE],
        dead=by_status[ConnectionStatus.DEAD],
        unknown=by_status[ConnectionStatus.UNKNOWN],
        open_incidents=sum(1 for t in targets if t.open_incident is not None),
    )


@router.get("/{target_id}", response_model=TargetResponse)
async def get_target(target_id: str, monitor: Monitor = Depends(get_monitor)):
    return TargetResponse.from_target(_get_or_404(monitor, target_id))


@router.delete("/{target_id}")
async def delete_target(target_id: str, monitor: Monitor = Depends(get_monitor)):
    # Removing an unknown id is not an error; the UI may race the scheduler
    removed = await monitor.registry.remove(target_id)
    return {"id": target_id, "removed": removed}


@router.post("/{target_id}/toggle", response_model=TargetResponse)
async def toggle_target(target_id: str, monitor: Monitor = Depends(get_monitor)):
    target = await monitor.registry.toggle(target_id)
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return TargetResponse.from_target(target)


@router.put("/{target_id}/name", response_model=TargetResponse)
async def rename_target(
    target_id: str,
    payload: TargetRename,
    monitor: Monitor = Depends(get_monitor),
):
    target = await monitor.registry.rename(target_id, payload.name)
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return TargetResponse.from_target(target)


@router.post("/{target_id}/graph", response_model=TargetResponse)
async def graph_target(
    target_id: str,
    enabled: bool = True,
    monitor: Monitor = Depends(get_monitor),
):
    target = await monitor.registry.set_graphed(target_id, enabled)
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return TargetResponse.from_target(target)


@router.post("/{target_id}/trace", response_model=TraceResponse)
async def trace_target(target_id: str, monitor: Monitor = Depends(get_monitor)):
    _get_or_404(monitor, target_id)
    hops = await monitor.tracer.trace(target_id)
    return TraceResponse(target_id=target_id, hops=[HopResponse.model_validate(h) for h in hops])
