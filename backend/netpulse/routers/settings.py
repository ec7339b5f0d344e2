from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from netpulse.models.settings import MonitorSettings
from netpulse.monitor import Monitor, get_monitor
from netpulse.schemas.settings import SettingsUpdate, SettingsResponse

router = APIRouter(prefix="/api/settings", tags=["Settings"])


def _to_response(current: MonitorSettings) -> SettingsResponse:
    return SettingsResponse(
        interval=current.interval,
        warning_threshold=current.warning_threshold,
        timeframe=current.timeframe,
        history_cap=current.history_cap,
        status_colors=current.status_colors.model_dump(),
    )


@router.get("/", response_model=SettingsResponse)
async def get_settings(monitor: Monitor = Depends(get_monitor)):
    return _to_response(monitor.settings)


@router.put("/", response_model=SettingsResponse)
async def update_settings(payload: SettingsUpdate, monitor: Monitor = Depends(get_monitor)):
    current = monitor.settings.model_dump()
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    colors = changes.pop("status_colors", None)
    if colors:
        current["status_colors"] = {**current["status_colors"], **colors}
    current.update(changes)

    try:
        new_settings = MonitorSettings(**current)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await monitor.scheduler.update_settings(new_settings)
    return _to_response(new_settings)
