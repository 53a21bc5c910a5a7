from __future__ import annotations

import asyncio
import logging

import sdbus
from sdbus import DbusInterfaceCommonAsync, dbus_method_async

from ..domain.errors import ActuationError, StartupError

logger = logging.getLogger(__name__)


class Login1Session(DbusInterfaceCommonAsync, interface_name="org.freedesktop.login1.Session"):
    def __init__(self, service: str, object_path: str, bus: sdbus.SdBus | None = None):
        super().__init__()
        self._proxify(service, object_path, bus=bus)

    @dbus_method_async("ssu", "")
    async def set_brightness(self, subsystem: str, device: str, brightness: int) -> None:
        raise NotImplementedError


class Login1BrightnessSetter:
    """
    Sets brightness through systemd-logind's Session.SetBrightness, which lets
    an unprivileged session user change the backlight.
    """

    def __init__(self, session: Login1Session, timeout_s: float = 5.0) -> None:
        self._session = session
        self._timeout_s = timeout_s

    @classmethod
    def connect(
        cls,
        service: str = "org.freedesktop.login1",
        object_path: str = "/org/freedesktop/login1/session/auto",
        timeout_s: float = 5.0,
    ) -> "Login1BrightnessSetter":
        try:
            bus = sdbus.sd_bus_open_system()
        except Exception as e:
            raise StartupError(f"Unable to open the system D-Bus: {e}") from e
        logger.info("Connected to system bus (%s %s)", service, object_path)
        return cls(Login1Session(service, object_path, bus=bus), timeout_s=timeout_s)

    async def set_brightness(self, subsystem: str, device: str, value: int) -> None:
        try:
            await asyncio.wait_for(
                self._session.set_brightness(subsystem, device, int(value)),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise ActuationError(
                f"SetBrightness({subsystem}, {device}, {value}) timed out after {self._timeout_s}s"
            ) from e
        except Exception as e:
            raise ActuationError(f"SetBrightness({subsystem}, {device}, {value}) failed: {e}") from e
