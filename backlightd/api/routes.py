from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from ..core.config import settings
from ..core.timeutil import now_utc
from ..services.backlight_service import BacklightService
from ..sensors.simulated_lux_sensor import SimulatedLuxSensor
from .schemas import SimEnableRequest, SimLuxRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py binds the real ones via app.dependency_overrides.
def get_service() -> BacklightService:  # overridden in main
    raise RuntimeError("Service dependency not configured")

def get_sim_sensor() -> SimulatedLuxSensor:  # overridden in main
    raise RuntimeError("Simulated sensor dependency not configured")


@router.get("/live")
async def get_live(svc: BacklightService = Depends(get_service)):
    live = svc.live
    return {
        "app": settings.app_name,
        "mode": live.mode,
        "now_utc": now_utc().isoformat(),
        "running": live.running,
        "cancelled": svc.cancelled,
        "ambient": {
            "lux": live.ambient_lux,
            "baseline_lux": live.baseline_lux,
            "read_failures": live.sensor_read_failures,
        },
        "last_event": {
            "ts_utc": live.last_event_utc.isoformat() if live.last_event_utc else None,
            "lux": live.last_event_lux,
            "target": live.last_target,
        },
        "backlight": {
            "device": live.device,
            "brightness": live.last_brightness,
            "last_outcome": live.last_outcome,
            "last_error": live.last_error,
        },
        "counters": {
            "events": live.events,
            "ramps": live.ramps,
            "failures": live.failures,
            "pending_events": live.pending_events,
        },
    }


@router.get("/range")
async def get_range(svc: BacklightService = Depends(get_service)):
    rng = svc.range
    return {"device": svc.backlight.device, "max": rng.max, "min": rng.min, "step": rng.step}


@router.get("/target")
async def get_target(lux: int = Query(ge=0), svc: BacklightService = Depends(get_service)):
    return {"lux": lux, "target": svc.actuator.target(lux)}


# --- Simulation endpoints ---
@router.get("/sim/status")
async def sim_status(sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    return sensor.status()


@router.post("/sim/lux")
async def sim_set_lux(req: SimLuxRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    sensor.set_lux(req.lux)
    logger.info("Simulated lux set to %d", req.lux)
    return {"ok": True, "lux": req.lux}


@router.post("/sim/enabled")
async def sim_set_enabled(req: SimEnableRequest, sensor: SimulatedLuxSensor = Depends(get_sim_sensor)):
    if req.enabled:
        sensor.enable()
    else:
        sensor.disable()
    return {"ok": True, "enabled": req.enabled}
