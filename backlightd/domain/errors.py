from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import RampResult


class BacklightError(Exception):
    """Base class for backlightd failures."""


class StartupError(BacklightError):
    """A hard dependency could not be brought up; the daemon must not start."""


class SensorReadError(BacklightError):
    """The ambient light sensor could not be read or returned garbage."""


class ActuationError(BacklightError):
    """Reading or setting the backlight failed during a ramp.

    ``result`` carries how far the ramp got when the error was raised from
    inside one.
    """

    def __init__(self, message: str, result: Optional["RampResult"] = None) -> None:
        super().__init__(message)
        self.result = result
