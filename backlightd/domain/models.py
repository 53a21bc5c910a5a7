from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import StartupError


@dataclass(frozen=True)
class BacklightRange:
    max: int
    min: int
    step: int

    @classmethod
    def from_max(cls, max_brightness: int) -> "BacklightRange":
        """Derive the usable range from the device's max_brightness.

        min is 5% of max and step is 1% of max, both floored at 1 so that
        devices with very coarse backlights still ramp.
        """
        if max_brightness < 2:
            raise StartupError(f"Unusable max_brightness: {max_brightness}")
        return cls(
            max=max_brightness,
            min=max(max_brightness // 20, 1),
            step=max(max_brightness // 100, 1),
        )

    def clamp(self, value: int) -> int:
        return min(max(value, self.min), self.max)


@dataclass(frozen=True)
class ChangeEvent:
    ts_utc: datetime
    lux: int
    previous_lux: int
    change_percent: int


class RampOutcome(str, Enum):
    CONVERGED = "converged"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class RampResult:
    outcome: RampOutcome
    lux: int
    start: int
    target: int
    final: int
    writes: int
    elapsed_s: float = 0.0
    error: str | None = None
