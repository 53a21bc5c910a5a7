from __future__ import annotations
import logging

logger = logging.getLogger(__name__)


class SimulatedBacklight:
    device = "sim_backlight"
    subsystem = "backlight"

    def __init__(self, max_brightness: int = 1000, brightness: int = 500) -> None:
        self._max = max_brightness
        self._brightness = brightness
        self.writes: list[int] = []

    def max_brightness(self) -> int:
        return self._max

    def brightness(self) -> int:
        return self._brightness

    async def set_brightness(self, subsystem: str, device: str, value: int) -> None:
        self._brightness = int(value)
        self.writes.append(self._brightness)
        logger.debug("BACKLIGHT %s/%s=%d", subsystem, device, self._brightness)
