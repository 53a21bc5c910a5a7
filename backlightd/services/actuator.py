from __future__ import annotations
import asyncio
import logging

from ..core.timeutil import monotonic_s
from ..domain.controller import target_brightness
from ..domain.errors import ActuationError
from ..domain.interfaces import Backlight, BrightnessSetter
from ..domain.models import BacklightRange, RampOutcome, RampResult

logger = logging.getLogger(__name__)


class BrightnessActuator:
    """
    Ramps the backlight toward the level for an ambient reading, one
    ``range.step`` per ``step_interval_s``. Stops early, without a final
    correcting write, once within one step of the target or when ``stop``
    is set.
    """

    def __init__(
        self,
        backlight: Backlight,
        setter: BrightnessSetter,
        rng: BacklightRange,
        stop: asyncio.Event,
        step_interval_s: float = 0.01,
    ) -> None:
        self._backlight = backlight
        self._setter = setter
        self.range = rng
        self._stop = stop
        self._step_interval_s = step_interval_s

    def target(self, lux: int) -> int:
        return target_brightness(lux, self.range)

    async def current_brightness(self) -> int:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._backlight.brightness)
        except (OSError, ValueError) as e:
            raise ActuationError(f"Reading current brightness failed: {e}") from e

    async def ramp(self, lux: int) -> RampResult:
        started = monotonic_s()
        start = await self.current_brightness()
        target = self.target(lux)
        step = self.range.step if target > start else -self.range.step

        logger.info("Ramp start: lux=%d brightness %d -> %d (step %+d)", lux, start, target, step)

        current = start
        writes = 0
        outcome = RampOutcome.CANCELLED
        while not self._stop.is_set():
            if abs(current - target) <= self.range.step:
                outcome = RampOutcome.CONVERGED
                break
            current += step
            try:
                await self._setter.set_brightness(
                    self._backlight.subsystem, self._backlight.device, current
                )
            except Exception as e:
                failed = RampResult(
                    outcome=RampOutcome.FAILED,
                    lux=lux,
                    start=start,
                    target=target,
                    final=current - step,
                    writes=writes,
                    elapsed_s=monotonic_s() - started,
                    error=str(e),
                )
                raise ActuationError(f"Setting brightness to {current} failed: {e}", failed) from e
            writes += 1
            logger.debug("step %d: brightness=%d", writes, current)
            await asyncio.sleep(self._step_interval_s)

        result = RampResult(
            outcome=outcome,
            lux=lux,
            start=start,
            target=target,
            final=current,
            writes=writes,
            elapsed_s=monotonic_s() - started,
        )
        logger.info(
            "Ramp %s: brightness=%d target=%d writes=%d (%.2fs)",
            outcome.value, current, target, writes, result.elapsed_s,
        )
        return result
