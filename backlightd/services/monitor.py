from __future__ import annotations
import asyncio
import logging
from typing import Optional

from ..core.timeutil import now_utc
from ..domain.controller import ChangeDetector
from ..domain.errors import SensorReadError
from ..domain.models import ChangeEvent
from ..sensors.base import Sensor

logger = logging.getLogger(__name__)


class AmbientMonitor:
    """
    Polls the illuminance sensor and pushes a ChangeEvent onto ``queue``
    whenever the reading moves more than ``threshold_percent`` away from the
    last reported value. Puts ``None`` on the queue when it stops.
    """

    def __init__(
        self,
        sensor: Sensor,
        queue: "asyncio.Queue[Optional[ChangeEvent]]",
        stop: asyncio.Event,
        interval_s: float = 1.0,
        threshold_percent: int = 25,
    ) -> None:
        self._sensor = sensor
        self._queue = queue
        self._stop = stop
        self._interval_s = interval_s
        self._threshold_percent = threshold_percent
        self._detector: Optional[ChangeDetector] = None

        self.last_lux: Optional[int] = None
        self.read_failures = 0

    @property
    def baseline(self) -> Optional[int]:
        return self._detector.baseline if self._detector else None

    async def _read(self) -> int:
        loop = asyncio.get_running_loop()
        lux = await loop.run_in_executor(None, self._sensor.read)
        self.last_lux = lux
        return lux

    async def prime(self) -> int:
        """Read the baseline. Raises SensorReadError; there is no fallback."""
        baseline = await self._read()
        self._detector = ChangeDetector(baseline, self._threshold_percent)
        logger.info("Ambient baseline: %d lux (sensor=%s)", baseline, self._sensor.sensor_id)
        return baseline

    async def run(self) -> None:
        try:
            if self._detector is None:
                await self.prime()
            logger.info(
                "Ambient monitor started (interval=%.3fs threshold=%d%%)",
                self._interval_s,
                self._threshold_percent,
            )
            while not self._stop.is_set():
                self._poll_once(await self._read_or_none())
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self._interval_s)
                except asyncio.TimeoutError:
                    pass
            logger.info("Ambient monitor stopped")
        finally:
            self._queue.put_nowait(None)

    async def _read_or_none(self) -> Optional[int]:
        try:
            return await self._read()
        except SensorReadError as e:
            self.read_failures += 1
            logger.warning("Ambient read failed, skipping cycle: %s", e)
        except Exception:
            self.read_failures += 1
            logger.exception("Ambient read failed unexpectedly, skipping cycle")
        return None

    def _poll_once(self, current: Optional[int]) -> None:
        if current is None:
            return
        assert self._detector is not None
        previous = self._detector.baseline
        change = self._detector.observe(current)
        if change is None:
            return
        logger.info("Ambient change: %d -> %d lux (%d%%)", previous, current, change)
        self._queue.put_nowait(
            ChangeEvent(ts_utc=now_utc(), lux=current, previous_lux=previous, change_percent=change)
        )
