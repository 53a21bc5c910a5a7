from __future__ import annotations

import logging
from pathlib import Path

from .base import Sensor
from ..domain.errors import SensorReadError
from ..drivers.sysfs import read_sysfs_int

logger = logging.getLogger(__name__)


class IioLuxSensor(Sensor):
    def __init__(self, path: str | Path, sensor_id: str | None = None) -> None:
        self._path = Path(path)
        self._sensor_id = sensor_id or self._path.parent.name

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> int:
        try:
            value = read_sysfs_int(self._path)
        except (OSError, ValueError) as e:
            raise SensorReadError(f"Reading {self._path} failed: {e}") from e
        if value < 0:
            raise SensorReadError(f"Negative illuminance from {self._path}: {value}")
        return value
