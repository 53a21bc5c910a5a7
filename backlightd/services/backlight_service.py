from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.errors import ActuationError, SensorReadError, StartupError
from ..domain.interfaces import Backlight, BrightnessSetter
from ..domain.models import BacklightRange, ChangeEvent, RampOutcome, RampResult
from ..sensors.base import Sensor
from .actuator import BrightnessActuator
from .monitor import AmbientMonitor


logger = logging.getLogger(__name__)


@dataclass
class LiveState:
    mode: str = "sysfs"
    device: str = ""
    max_brightness: int = 0
    min_brightness: int = 0
    step: int = 0
    running: bool = False
    ambient_lux: Optional[int] = None
    baseline_lux: Optional[int] = None
    sensor_read_failures: int = 0
    last_event_utc: Optional[datetime] = None
    last_event_lux: Optional[int] = None
    last_target: Optional[int] = None
    last_brightness: Optional[int] = None
    last_outcome: Optional[str] = None
    last_error: Optional[str] = None
    events: int = 0
    ramps: int = 0
    failures: int = 0
    pending_events: int = 0


class BacklightService:
    """
    Owns the cancellation flag and the event queue, and runs the ambient
    monitor (producer) and the ramp loop (consumer) as two asyncio tasks.

    The flag is write-once: a stopped service cannot be started again.
    """

    def __init__(
        self,
        sensor: Sensor,
        backlight: Backlight,
        setter: BrightnessSetter,
        rng: BacklightRange,
        *,
        mode: str = "sysfs",
        poll_interval_s: float = 1.0,
        threshold_percent: int = 25,
        step_interval_s: float = 0.01,
        coalesce_events: bool = False,
    ) -> None:
        self._stop = asyncio.Event()
        self._queue: asyncio.Queue[Optional[ChangeEvent]] = asyncio.Queue()
        self._coalesce = coalesce_events
        self._tasks: list[asyncio.Task] = []

        self.sensor = sensor
        self.backlight = backlight
        self.range = rng
        self.monitor = AmbientMonitor(
            sensor,
            self._queue,
            self._stop,
            interval_s=poll_interval_s,
            threshold_percent=threshold_percent,
        )
        self.actuator = BrightnessActuator(
            backlight, setter, rng, self._stop, step_interval_s=step_interval_s
        )
        self._live = LiveState(
            mode=mode,
            device=backlight.device,
            max_brightness=rng.max,
            min_brightness=rng.min,
            step=rng.step,
        )

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def live(self) -> LiveState:
        self._live.ambient_lux = self.monitor.last_lux
        self._live.baseline_lux = self.monitor.baseline
        self._live.sensor_read_failures = self.monitor.read_failures
        self._live.pending_events = self._queue.qsize()
        return self._live

    async def start(self) -> None:
        if self._stop.is_set():
            raise RuntimeError("BacklightService cannot be restarted once stopped")
        try:
            await self.monitor.prime()
        except SensorReadError as e:
            raise StartupError(f"Unable to read ambient baseline: {e}") from e

        self._tasks = [
            asyncio.create_task(self.monitor.run(), name="ambient_monitor"),
            asyncio.create_task(self._consume(), name="brightness_ramp"),
        ]
        self._live.running = True
        logger.info(
            "Backlight service started (device=%s max=%d min=%d step=%d)",
            self.backlight.device, self.range.max, self.range.min, self.range.step,
        )

    def request_stop(self) -> None:
        if not self._stop.is_set():
            logger.info("Stop requested")
            self._stop.set()

    async def join(self) -> None:
        """Wait for both loops to return; re-raises a loop's unexpected error."""
        try:
            await asyncio.gather(*self._tasks)
        finally:
            self._live.running = False

    async def stop(self) -> None:
        self.request_stop()
        if not self._tasks:
            return
        try:
            await self.join()
        except Exception:
            logger.exception("Backlight service loop failed during shutdown")
        logger.info("Backlight service stopped")

    async def _consume(self) -> None:
        logger.info("Ramp loop started (coalesce=%s)", self._coalesce)
        closed = False
        while not closed:
            event = await self._queue.get()
            if event is None:
                break
            if self._coalesce:
                event, closed = self._latest(event)
            if self._stop.is_set():
                break
            await self._apply(event)
        logger.info("Ramp loop stopped")

    def _latest(self, event: ChangeEvent) -> tuple[ChangeEvent, bool]:
        skipped = 0
        while not self._queue.empty():
            queued = self._queue.get_nowait()
            if queued is None:
                return event, True
            event = queued
            skipped += 1
        if skipped:
            logger.info("Coalesced %d queued ambient event(s)", skipped)
        return event, False

    async def _apply(self, event: ChangeEvent) -> Optional[RampResult]:
        self._live.events += 1
        self._live.last_event_utc = event.ts_utc
        self._live.last_event_lux = event.lux
        try:
            self._live.last_target = self.actuator.target(event.lux)
            result = await self.actuator.ramp(event.lux)
        except ActuationError as e:
            logger.exception("Ramp for %d lux failed", event.lux)
            self._live.failures += 1
            self._live.last_outcome = RampOutcome.FAILED.value
            self._live.last_error = str(e)
            if e.result is not None:
                self._live.last_brightness = e.result.final
            return e.result
        except Exception as e:
            logger.exception("Ramp for %d lux failed unexpectedly", event.lux)
            self._live.failures += 1
            self._live.last_outcome = RampOutcome.FAILED.value
            self._live.last_error = str(e)
            return None

        self._live.ramps += 1
        self._live.last_outcome = result.outcome.value
        self._live.last_error = None
        self._live.last_brightness = result.final
        return result
