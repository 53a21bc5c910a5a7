from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backlight(Protocol):
    """Read side of a backlight device. Blocking; run off the event loop."""

    device: str
    subsystem: str

    def max_brightness(self) -> int:
        ...

    def brightness(self) -> int:
        ...


@runtime_checkable
class BrightnessSetter(Protocol):
    """Write side: whatever actually changes the panel brightness."""

    async def set_brightness(self, subsystem: str, device: str, value: int) -> None:
        ...
