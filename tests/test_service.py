"""Tests for the monitor → ramp service wiring."""

import asyncio
from datetime import datetime, timezone

import pytest

from backlightd.domain.errors import StartupError
from backlightd.domain.models import BacklightRange, ChangeEvent
from backlightd.drivers.backlight_sim import SimulatedBacklight
from backlightd.sensors.simulated_lux_sensor import SimulatedLuxSensor
from backlightd.services.backlight_service import BacklightService


async def _wait_for(predicate, timeout: float = 3.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.002)


def _event(lux: int) -> ChangeEvent:
    return ChangeEvent(ts_utc=datetime.now(timezone.utc), lux=lux, previous_lux=0, change_percent=100)


def _service(sensor, backlight, setter=None, **kwargs) -> BacklightService:
    kwargs.setdefault("poll_interval_s", 0.005)
    kwargs.setdefault("step_interval_s", 0)
    return BacklightService(
        sensor=sensor,
        backlight=backlight,
        setter=setter or backlight,
        rng=BacklightRange.from_max(backlight.max_brightness()),
        mode="sim",
        **kwargs,
    )


class TestServiceLifecycle:
    def test_ambient_change_ramps_backlight(self) -> None:
        sensor = SimulatedLuxSensor(lux=100)
        backlight = SimulatedBacklight(max_brightness=1000, brightness=50)

        async def scenario() -> BacklightService:
            svc = _service(sensor, backlight)
            await svc.start()
            assert svc.live.running
            sensor.set_lux(0)
            await _wait_for(lambda: svc.live.ramps >= 1)
            await svc.stop()
            return svc

        svc = asyncio.run(scenario())
        live = svc.live
        assert backlight.brightness() == 950
        assert live.last_target == 960
        assert live.last_outcome == "converged"
        assert live.last_event_lux == 0
        assert live.baseline_lux == 0
        assert not live.running
        assert svc.cancelled

    def test_small_changes_leave_backlight_alone(self) -> None:
        sensor = SimulatedLuxSensor(lux=100)
        backlight = SimulatedBacklight(max_brightness=1000, brightness=50)

        async def scenario() -> None:
            svc = _service(sensor, backlight)
            await svc.start()
            sensor.set_lux(120)
            await asyncio.sleep(0.05)
            await svc.stop()

        asyncio.run(scenario())
        assert backlight.writes == []

    def test_unreadable_baseline_is_startup_error(self) -> None:
        sensor = SimulatedLuxSensor()
        sensor.disable()
        svc_backlight = SimulatedBacklight()

        async def scenario() -> None:
            svc = _service(sensor, svc_backlight)
            with pytest.raises(StartupError):
                await svc.start()

        asyncio.run(scenario())

    def test_cannot_restart_after_stop(self) -> None:
        async def scenario() -> None:
            svc = _service(SimulatedLuxSensor(), SimulatedBacklight())
            await svc.start()
            await svc.stop()
            with pytest.raises(RuntimeError):
                await svc.start()

        asyncio.run(scenario())

    def test_stop_interrupts_ramp(self) -> None:
        sensor = SimulatedLuxSensor(lux=100)
        backlight = SimulatedBacklight(max_brightness=1000, brightness=50)

        async def scenario() -> BacklightService:
            svc = _service(sensor, backlight, step_interval_s=0.01)
            await svc.start()
            sensor.set_lux(0)
            await _wait_for(lambda: len(backlight.writes) >= 3)
            await asyncio.wait_for(svc.stop(), timeout=1)
            return svc

        svc = asyncio.run(scenario())
        written = len(backlight.writes)
        assert written < 90
        assert svc.live.last_outcome == "cancelled"
        assert svc.live.last_brightness == backlight.writes[-1]


class TestEventConsumption:
    def test_failed_ramp_does_not_stop_the_loop(self, backlight_factory, setter_factory) -> None:
        sensor = SimulatedLuxSensor(lux=100)
        backlight = backlight_factory(brightness=50)
        setter = setter_factory(backlight, fail_on_call=2)

        async def scenario() -> BacklightService:
            svc = _service(sensor, backlight, setter)
            await svc.start()
            sensor.set_lux(0)
            await _wait_for(lambda: svc.live.failures == 1)
            sensor.set_lux(400)
            await _wait_for(lambda: svc.live.ramps == 1)
            await svc.stop()
            return svc

        svc = asyncio.run(scenario())
        live = svc.live
        assert live.failures == 1
        assert live.last_outcome == "converged"
        assert live.last_error is None
        assert backlight.brightness() == 990

    def test_queued_events_processed_in_order(self, backlight, setter_factory) -> None:
        setter = setter_factory(backlight)

        async def scenario() -> BacklightService:
            svc = _service(SimulatedLuxSensor(), backlight, setter)
            for lux in (0, 600, 0):
                svc._queue.put_nowait(_event(lux))
            svc._queue.put_nowait(None)
            await svc._consume()
            return svc

        svc = asyncio.run(scenario())
        assert svc.live.ramps == 3
        assert setter.values == list(range(60, 951, 10)) + [960, 970, 980, 990, 980, 970]

    def test_coalescing_keeps_newest_event(self, backlight, setter_factory) -> None:
        setter = setter_factory(backlight)

        async def scenario() -> BacklightService:
            svc = _service(SimulatedLuxSensor(), backlight, setter, coalesce_events=True)
            for lux in (600, 300, 0):
                svc._queue.put_nowait(_event(lux))
            svc._queue.put_nowait(None)
            await svc._consume()
            return svc

        svc = asyncio.run(scenario())
        assert svc.live.events == 1
        assert svc.live.last_event_lux == 0
        assert setter.values[-1] == 950

    def test_events_after_cancellation_are_dropped(self, backlight, setter_factory) -> None:
        setter = setter_factory(backlight)

        async def scenario() -> BacklightService:
            svc = _service(SimulatedLuxSensor(), backlight, setter)
            svc.request_stop()
            svc._queue.put_nowait(_event(0))
            svc._queue.put_nowait(None)
            await svc._consume()
            return svc

        svc = asyncio.run(scenario())
        assert svc.live.events == 0
        assert setter.calls == []

    def test_unexpected_error_does_not_stop_the_loop(self, backlight, setter_factory) -> None:
        setter = setter_factory(backlight)

        async def scenario() -> BacklightService:
            svc = _service(SimulatedLuxSensor(), backlight, setter)
            for lux in (-5, 0):
                svc._queue.put_nowait(_event(lux))
            svc._queue.put_nowait(None)
            await svc._consume()
            return svc

        svc = asyncio.run(scenario())
        live = svc.live
        assert live.events == 2
        assert live.failures == 1
        assert live.ramps == 1
        assert live.last_outcome == "converged"
        assert setter.values[-1] == 950

    def test_running_service_survives_bad_sensor_value(self, backlight, setter_factory) -> None:
        class RawSensor(SimulatedLuxSensor):
            """Skips the non-negative check, like a misbehaving driver."""

            def set_raw(self, lux: int) -> None:
                with self._lock:
                    self._lux = lux

        sensor = RawSensor(lux=100)
        setter = setter_factory(backlight)

        async def scenario() -> BacklightService:
            svc = _service(sensor, backlight, setter)
            await svc.start()
            sensor.set_raw(-5)
            await _wait_for(lambda: svc.live.failures == 1)
            sensor.set_lux(0)
            await _wait_for(lambda: svc.live.ramps == 1)
            await svc.stop()
            return svc

        svc = asyncio.run(scenario())
        assert svc.live.pending_events == 0
        assert backlight.brightness() == 950


class TestSimulatedLuxSensor:
    def test_rejects_negative_lux(self) -> None:
        sensor = SimulatedLuxSensor(lux=10)
        with pytest.raises(ValueError):
            sensor.set_lux(-1)
        assert sensor.read() == 10
