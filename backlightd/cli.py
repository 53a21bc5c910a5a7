"""
Headless backlightd daemon.

Reads the ambient light sensor, and ramps the display backlight toward a
brightness derived from it until SIGINT/SIGTERM/SIGQUIT. A second termination
signal during shutdown exits immediately.

Usage:
    backlightd                                   # defaults / .env
    backlightd --device amdgpu_bl0 --transport sysfs
    backlightd --mode sim -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys

from .core.config import Settings, settings
from .core.log import configure_logging
from .domain.errors import StartupError
from .main import build_service

log = logging.getLogger("backlightd")

TERM_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)


async def run(cfg: Settings) -> None:
    svc = build_service(cfg)
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals) -> None:
        if svc.cancelled:
            log.warning("Received %s while shutting down, exiting now", sig.name)
            os._exit(1)
        log.info("Received %s, shutting down", sig.name)
        svc.request_stop()

    for sig in TERM_SIGNALS:
        loop.add_signal_handler(sig, on_signal, sig)

    log.info("Starting %s (mode=%s device=%s)", cfg.app_name, cfg.mode, cfg.backlight_device)
    log.info("  Sensor:    %s", cfg.ambient_path if cfg.mode.lower() != "sim" else "simulated")
    log.info("  Polling:   every %dms, report changes > %d%%",
             cfg.poll_interval_ms, cfg.change_threshold_percent)
    log.info("  Ramp:      one step every %dms (coalesce=%s)",
             cfg.ramp_step_interval_ms, cfg.coalesce_events)

    await svc.start()
    try:
        await svc.join()
    finally:
        for sig in TERM_SIGNALS:
            loop.remove_signal_handler(sig)
    log.info("Shutdown complete")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ambient-light-adaptive backlight daemon")

    p.add_argument("--mode", choices=["sysfs", "sim"], help=f"Hardware or simulation (default: {settings.mode})")
    p.add_argument("--device", help=f"Backlight device under {settings.backlight_root} (default: {settings.backlight_device})")
    p.add_argument("--sensor-device", help=f"IIO device under {settings.sensor_root} (default: {settings.sensor_device})")
    p.add_argument("--transport", choices=["login1", "sysfs"],
                   help=f"How brightness is written (default: {settings.transport})")

    p.add_argument("--interval-ms", type=int, help="Milliseconds between sensor reads")
    p.add_argument("--threshold", type=int, help="Relative change in percent that triggers a ramp")
    p.add_argument("--step-ms", type=int, help="Milliseconds between ramp steps")
    p.add_argument("--coalesce", action=argparse.BooleanOptionalAction, default=None,
                   help="Only act on the newest queued ambient change")

    p.add_argument("--log-file", help="Rotating log file; empty string disables it")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return p.parse_args(argv)


def settings_from_args(args: argparse.Namespace, base: Settings = settings) -> Settings:
    overrides = {
        "mode": args.mode,
        "backlight_device": args.device,
        "sensor_device": args.sensor_device,
        "transport": args.transport,
        "poll_interval_ms": args.interval_ms,
        "change_threshold_percent": args.threshold,
        "ramp_step_interval_ms": args.step_ms,
        "coalesce_events": args.coalesce,
        "log_file": args.log_file,
    }
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return base.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = settings_from_args(args)
    configure_logging(level=cfg.log_level, log_file=cfg.log_file or "")

    try:
        asyncio.run(run(cfg))
    except StartupError as e:
        log.error("Startup failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
