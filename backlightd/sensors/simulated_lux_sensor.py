from __future__ import annotations

from threading import Lock

from .base import Sensor
from ..domain.errors import SensorReadError


class SimulatedLuxSensor(Sensor):
    def __init__(self, lux: int = 100, sensor_id: str = "lux_sim"):
        self._sensor_id = sensor_id
        self._lock = Lock()
        self._enabled = True
        self._lux = int(lux)

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def set_lux(self, lux: int) -> None:
        if lux < 0:
            raise ValueError(f"Illuminance must be non-negative, got {lux}")
        with self._lock:
            self._lux = int(lux)

    def status(self) -> dict:
        with self._lock:
            return {"enabled": self._enabled, "lux": self._lux}

    def read(self) -> int:
        with self._lock:
            if not self._enabled:
                raise SensorReadError("Simulated sensor disabled")
            return self._lux
