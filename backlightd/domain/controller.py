from __future__ import annotations
import logging
from typing import Optional

from .models import BacklightRange

logger = logging.getLogger(__name__)

# Brightness units per lux, applied after quantizing lux to LUX_BAND.
#
#     Environment       Lux     Brightness
#     Dark              0       5%
#     Inside (dim)      100     ~20%
#     Inside (bright)   200     ~40%
#     Outside           500+    100%
LUX_GAIN = 192
LUX_BAND = 5


def target_brightness(lux: int, rng: BacklightRange) -> int:
    """Map an illuminance reading to a backlight level inside ``rng``."""
    if lux < 0:
        raise ValueError(f"Illuminance must be non-negative, got {lux}")
    return rng.clamp(LUX_GAIN * (lux + LUX_BAND - lux % LUX_BAND))


def relative_change_percent(baseline: int, current: int) -> int:
    # max(baseline, 1) keeps total darkness from dividing by zero
    return abs(baseline - current) * 100 // max(baseline, 1)


class ChangeDetector:
    """Tracks the last reported lux value and flags significant changes."""

    def __init__(self, baseline: int, threshold_percent: int = 25) -> None:
        self.baseline = baseline
        self.threshold_percent = threshold_percent

    def observe(self, current: int) -> Optional[int]:
        """Return the change in percent if ``current`` should be reported.

        The baseline only moves when a change is reported, so slow drift is
        measured against the last reported value rather than the last read.
        """
        ratio = relative_change_percent(self.baseline, current)
        if ratio > self.threshold_percent:
            logger.debug("change: %d -> %d (%d%%)", self.baseline, current, ratio)
            self.baseline = current
            return ratio
        return None
