# fleetdash/clock.py
# ------------------------------------------------------------
# Virtual clock & tick scheduler.
#
# Simulated time advances by `speed x wall-clock elapsed` and is
# fully decoupled from real time:
# - paused clocks do not accumulate drift (last tick ref is cleared)
# - the first tick after play/resume only records the wall reference
# - speed changes apply from the next tick
#
# The Ticker is the cancellable repeating asyncio task driving it.
# ------------------------------------------------------------

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from .logger import get_logger

logger = get_logger(__name__)

Window = Tuple[datetime, datetime]


def validate_speed(value: float) -> float:
    try:
        speed = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"speed must be a number, got {value!r}")
    if not math.isfinite(speed) or speed <= 0:
        raise ValueError(f"speed must be a positive finite number, got {value!r}")
    return speed


class VirtualClock:
    """
    Simulation time source.

    `simulation_time` is None until the first play(). `advance(now)`
    takes the current wall-clock reading in seconds (monotonic) and
    returns the half-open window (previous, new] that was just swept,
    or None when nothing moved.
    """

    def __init__(self, speed: float = 1.0):
        self.speed = validate_speed(speed)
        self.simulation_time: Optional[datetime] = None
        self.is_running = False
        self._last_wall: Optional[float] = None

    def play(self, start_at: Optional[datetime]) -> None:
        if self.simulation_time is None:
            self.simulation_time = start_at
        self.is_running = True

    def pause(self) -> None:
        self.is_running = False
        self._last_wall = None

    def reset(self) -> None:
        self.is_running = False
        self.simulation_time = None
        self._last_wall = None

    def set_speed(self, value: float) -> None:
        self.speed = validate_speed(value)

    def advance(self, now: float) -> Optional[Window]:
        if not self.is_running or self.simulation_time is None:
            return None

        if self._last_wall is None:
            self._last_wall = now
            return None

        elapsed = max(0.0, now - self._last_wall)
        self._last_wall = now
        if elapsed == 0:
            return None

        previous = self.simulation_time
        self.simulation_time = previous + timedelta(seconds=elapsed * self.speed)
        return previous, self.simulation_time


class Ticker:
    """
    Calls `callback` every `interval_ms` on the running event loop.

    start() outside an event loop is a no-op (callers then drive the
    engine with explicit tick() calls, as the tests do).
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int = 100):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._callback = callback
        self._interval = interval_ms / 1000.0
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        if self.active:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("ticker_manual_mode")
            return False
        self._task = loop.create_task(self._run())
        return True

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback()
            except Exception:
                # a single bad tick must not stop the dashboard
                logger.exception("tick_failed")
