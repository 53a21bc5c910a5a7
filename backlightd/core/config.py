from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "backlightd"

    # Mode: "sysfs" drives real hardware; "sim" for development
    mode: str = Field(default="sysfs")

    # Backlight device
    backlight_root: str = "/sys/class/backlight"
    backlight_device: str = "intel_backlight"
    backlight_subsystem: str = "backlight"

    # Ambient light sensor (IIO)
    sensor_root: str = "/sys/bus/iio/devices"
    sensor_device: str = "iio:device0"
    sensor_attribute: str = "in_illuminance_raw"

    # Brightness transport: "login1" (D-Bus, no root needed) or "sysfs" (direct write)
    transport: str = "login1"
    dbus_service: str = "org.freedesktop.login1"
    dbus_object_path: str = "/org/freedesktop/login1/session/auto"
    dbus_timeout_s: float = 5.0

    # Change detection
    poll_interval_ms: int = 1000
    change_threshold_percent: int = 25

    # Ramp
    ramp_step_interval_ms: int = 10
    coalesce_events: bool = False  # act only on the newest queued event

    # Simulation
    sim_max_brightness: int = 1000
    sim_initial_brightness: int = 500
    sim_initial_lux: int = 100

    # Logging
    log_level: str = "INFO"
    log_file: str | None = "backlightd.log"

    @property
    def backlight_dir(self) -> Path:
        return Path(self.backlight_root) / self.backlight_device

    @property
    def brightness_path(self) -> Path:
        return self.backlight_dir / "brightness"

    @property
    def max_brightness_path(self) -> Path:
        return self.backlight_dir / "max_brightness"

    @property
    def ambient_path(self) -> Path:
        return Path(self.sensor_root) / self.sensor_device / self.sensor_attribute

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def ramp_step_interval_s(self) -> float:
        return self.ramp_step_interval_ms / 1000.0


settings = Settings()
