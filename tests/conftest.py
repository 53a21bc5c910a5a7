"""Shared fixtures: a fake sysfs tree and a recording brightness setter."""

from pathlib import Path

import pytest

from backlightd.domain.errors import ActuationError
from backlightd.domain.models import BacklightRange


class RecordingSetter:
    """Brightness setter that keeps every call and can fail on demand."""

    def __init__(self, backlight=None, fail_on_call: int | None = None) -> None:
        self.calls: list[tuple[str, str, int]] = []
        self._backlight = backlight
        self._fail_on_call = fail_on_call

    @property
    def values(self) -> list[int]:
        return [value for _, _, value in self.calls]

    async def set_brightness(self, subsystem: str, device: str, value: int) -> None:
        if self._fail_on_call is not None and len(self.calls) + 1 == self._fail_on_call:
            raise ActuationError("transport refused the call")
        self.calls.append((subsystem, device, value))
        if self._backlight is not None:
            self._backlight.set(value)


class FakeBacklight:
    device = "test_backlight"
    subsystem = "backlight"

    def __init__(self, brightness: int = 50, max_brightness: int = 1000) -> None:
        self._brightness = brightness
        self._max = max_brightness

    def max_brightness(self) -> int:
        return self._max

    def brightness(self) -> int:
        return self._brightness

    def set(self, value: int) -> None:
        self._brightness = value


@pytest.fixture
def rng() -> BacklightRange:
    return BacklightRange.from_max(1000)


@pytest.fixture
def backlight() -> FakeBacklight:
    return FakeBacklight()


@pytest.fixture
def sysfs(tmp_path: Path) -> dict[str, Path]:
    """Minimal /sys layout with one backlight and one IIO light sensor."""
    bl = tmp_path / "class" / "backlight" / "intel_backlight"
    bl.mkdir(parents=True)
    (bl / "max_brightness").write_text("1000\n")
    (bl / "brightness").write_text("500\n")

    iio = tmp_path / "bus" / "iio" / "devices" / "iio:device0"
    iio.mkdir(parents=True)
    (iio / "in_illuminance_raw").write_text("100\n")

    return {
        "backlight_root": tmp_path / "class" / "backlight",
        "backlight": bl,
        "sensor_root": tmp_path / "bus" / "iio" / "devices",
        "sensor": iio / "in_illuminance_raw",
    }


@pytest.fixture
def setter_factory():
    return RecordingSetter


@pytest.fixture
def backlight_factory():
    return FakeBacklight
