from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from .core.config import Settings, settings
from .core.log import configure_logging

from .api.routes import router as api_router
from .api import routes as routes_module

from .domain.errors import StartupError
from .domain.interfaces import Backlight, BrightnessSetter
from .domain.models import BacklightRange
from .drivers.backlight_sim import SimulatedBacklight
from .drivers.login1 import Login1BrightnessSetter
from .drivers.sysfs import SysfsBacklight
from .sensors.base import Sensor
from .sensors.iio_lux_sensor import IioLuxSensor
from .sensors.simulated_lux_sensor import SimulatedLuxSensor
from .services.backlight_service import BacklightService


logger = logging.getLogger(__name__)


sim_sensor: SimulatedLuxSensor | None = None
service: BacklightService | None = None


def build_sensor(cfg: Settings) -> Sensor:
    global sim_sensor

    if cfg.mode.lower() == "sim":
        sim_sensor = SimulatedLuxSensor(lux=cfg.sim_initial_lux)
        return sim_sensor

    return IioLuxSensor(cfg.ambient_path, sensor_id=cfg.sensor_device)


def build_backlight(cfg: Settings) -> tuple[Backlight, BrightnessSetter]:
    if cfg.mode.lower() == "sim":
        sim = SimulatedBacklight(
            max_brightness=cfg.sim_max_brightness,
            brightness=cfg.sim_initial_brightness,
        )
        return sim, sim

    backlight = SysfsBacklight(cfg.backlight_dir, subsystem=cfg.backlight_subsystem)
    transport = cfg.transport.lower()
    if transport == "sysfs":
        return backlight, backlight
    if transport == "login1":
        return backlight, Login1BrightnessSetter.connect(
            service=cfg.dbus_service,
            object_path=cfg.dbus_object_path,
            timeout_s=cfg.dbus_timeout_s,
        )
    raise StartupError(f"Unknown brightness transport: {cfg.transport!r}")


def build_range(backlight: Backlight) -> BacklightRange:
    try:
        max_brightness = backlight.max_brightness()
    except (OSError, ValueError) as e:
        raise StartupError(f"Unable to read max_brightness of {backlight.device}: {e}") from e
    return BacklightRange.from_max(max_brightness)


def build_service(cfg: Settings = settings) -> BacklightService:
    backlight, setter = build_backlight(cfg)
    rng = build_range(backlight)
    logger.info(
        "Backlight %s: max=%d min=%d step=%d (transport=%s)",
        backlight.device, rng.max, rng.min, rng.step,
        "sim" if cfg.mode.lower() == "sim" else cfg.transport,
    )
    return BacklightService(
        sensor=build_sensor(cfg),
        backlight=backlight,
        setter=setter,
        rng=rng,
        mode=cfg.mode,
        poll_interval_s=cfg.poll_interval_s,
        threshold_percent=cfg.change_threshold_percent,
        step_interval_s=cfg.ramp_step_interval_s,
        coalesce_events=cfg.coalesce_events,
    )


def get_service() -> BacklightService:
    if service is None:
        raise HTTPException(status_code=503, detail="Backlight service not running")
    return service


def get_sim_sensor() -> SimulatedLuxSensor:
    if sim_sensor is None:
        raise HTTPException(status_code=409, detail="Simulated sensor not available (mode is not 'sim')")
    return sim_sensor


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (mode=%s)", settings.app_name, settings.mode)

    global service
    service = build_service(settings)
    await service.start()

    try:
        yield
    finally:
        await service.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_service] = get_service
app.dependency_overrides[routes_module.get_sim_sensor] = get_sim_sensor

app.include_router(api_router, prefix="/api")
