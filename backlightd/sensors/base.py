from __future__ import annotations

from abc import ABC, abstractmethod


class Sensor(ABC):
    """Domain-facing illuminance sensor abstraction."""

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @property
    def unit(self) -> str:
        return "lux"

    @abstractmethod
    def read(self) -> int:
        """Return a non-negative integer reading. Raise SensorReadError on failure."""
        ...
