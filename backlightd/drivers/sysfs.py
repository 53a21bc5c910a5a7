from __future__ import annotations

import logging
from pathlib import Path

from ..domain.errors import ActuationError

logger = logging.getLogger(__name__)


def read_sysfs_int(path: str | Path) -> int:
    """Read a single integer attribute. Raises OSError or ValueError."""
    raw = Path(path).read_text(encoding="utf-8").strip()
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Non-numeric content in {path}: {raw!r}") from None


def write_sysfs_int(path: str | Path, value: int) -> None:
    Path(path).write_text(str(int(value)), encoding="utf-8")


class SysfsBacklight:
    """
    Backlight device under /sys/class/backlight/<device>.
    Reads brightness/max_brightness; can also write brightness directly
    (requires write access to the attribute, usually root).
    """

    def __init__(self, sysfs_dir: str | Path, subsystem: str = "backlight") -> None:
        self.sysfs_dir = Path(sysfs_dir)
        self.device = self.sysfs_dir.name
        self.subsystem = subsystem

    @property
    def _brightness(self) -> Path:
        return self.sysfs_dir / "brightness"

    @property
    def _max_brightness(self) -> Path:
        return self.sysfs_dir / "max_brightness"

    def max_brightness(self) -> int:
        return read_sysfs_int(self._max_brightness)

    def brightness(self) -> int:
        return read_sysfs_int(self._brightness)

    async def set_brightness(self, subsystem: str, device: str, value: int) -> None:
        if device != self.device:
            raise ActuationError(f"Refusing to write {device!r} through {self.sysfs_dir}")
        try:
            write_sysfs_int(self._brightness, value)
        except OSError as e:
            raise ActuationError(f"Writing {self._brightness} failed: {e}") from e
