# fleetdash/engine.py
# ------------------------------------------------------------
# Engine handle: public surface of the simulation core.
#
#   engine = initialize(trips)
#   engine.play() / pause() / reset() / set_speed(n)
#   engine.ingest_event(payload)          # push transports
#   engine.vehicle_states / fleet_metrics / simulation_time / alerts
#
# Each engine owns its own clock, timeline and gateway; there are no
# process-wide singletons, so several engines can run side by side.
# ------------------------------------------------------------

from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .alert_log import AlertLog
from .clock import Ticker, VirtualClock
from .config import Settings
from .gateway import IngestionGateway, PushPayload
from .logger import get_logger
from .models import FleetEvent, FleetMetrics, Trip, VehicleState
from .ordering import build_timeline
from .reducer import IngestOutcome

logger = get_logger(__name__)


class FleetEngine:
    def __init__(
        self,
        trips: Sequence[Trip],
        speed: float = 10.0,
        tick_interval_ms: int = 100,
        dedup_window_sec: float = 60,
        wall_clock: Callable[[], float] = time.monotonic,
    ):
        self.trips: Tuple[Trip, ...] = tuple(trips)
        self.timeline = build_timeline(self.trips)
        self._clock = VirtualClock(speed)
        self._gateway = IngestionGateway(self.trips, timedelta(seconds=dedup_window_sec))
        self._ticker = Ticker(self.tick, tick_interval_ms)
        self._wall_clock = wall_clock

        logger.info(
            "engine_initialized",
            trips=len(self.trips),
            events=len(self.timeline),
            speed=self._clock.speed,
        )

    # --------------------------------------------------------
    # Controls
    # --------------------------------------------------------
    def play(self) -> None:
        starting = self._clock.simulation_time is None
        self._clock.play(self.timeline.start)
        if starting and self.timeline.start is not None:
            # tick windows are open on the left, so the opening instant
            # is swept here exactly once
            self._gateway.apply_batch(self.timeline.at(self.timeline.start))
        self._ticker.start()

    def pause(self) -> None:
        self._ticker.stop()
        self._clock.pause()

    def reset(self) -> None:
        self._ticker.stop()
        self._clock.reset()
        self._gateway.reset()
        logger.info("engine_reset", trips=len(self.trips))

    def set_speed(self, speed: float) -> None:
        self._clock.set_speed(speed)

    def tick(self, now: Optional[float] = None) -> List[FleetEvent]:
        """
        Advance the virtual clock to wall time `now` and apply every
        event inside the swept window. Returns the events handed to the
        gateway (duplicates included, the gateway filters them).
        """
        window = self._clock.advance(self._wall_clock() if now is None else now)
        if window is None:
            return []
        events = self.timeline.window(*window)
        if events:
            self._gateway.apply_batch(events)
        return events

    def ingest_event(self, payload: PushPayload) -> IngestOutcome:
        return self._gateway.ingest(payload)

    # --------------------------------------------------------
    # Read accessors (snapshots, no side effects)
    # --------------------------------------------------------
    @property
    def vehicle_states(self) -> Dict[str, VehicleState]:
        return self._gateway.states

    @property
    def fleet_metrics(self) -> FleetMetrics:
        return self._gateway.metrics

    @property
    def alerts(self) -> Tuple[FleetEvent, ...]:
        return self._gateway.alert_log.snapshot()

    @property
    def alert_log(self) -> AlertLog:
        return self._gateway.alert_log

    @property
    def simulation_time(self) -> Optional[datetime]:
        return self._clock.simulation_time

    @property
    def is_running(self) -> bool:
        return self._clock.is_running

    @property
    def speed(self) -> float:
        return self._clock.speed

    @property
    def version(self) -> int:
        """Bumped on every state change; cheap change detection for streams."""
        return self._gateway.version

    def status(self) -> Dict:
        sim_time = self.simulation_time
        end = self.timeline.end
        return {
            "isRunning": self.is_running,
            "speed": self.speed,
            "simulationTime": sim_time.isoformat() if sim_time else None,
            "timelineStart": self.timeline.start.isoformat() if self.timeline.start else None,
            "timelineEnd": end.isoformat() if end else None,
            "finished": bool(sim_time and end and sim_time >= end),
            "events": len(self.timeline),
        }


def initialize(trips: Sequence[Trip], settings: Optional[Settings] = None, **overrides) -> FleetEngine:
    """
    Build an engine for a trip roster using service settings.
    """
    if settings is None:
        settings = Settings()
    kwargs = {
        "speed": settings.default_speed,
        "tick_interval_ms": settings.tick_interval_ms,
        "dedup_window_sec": settings.alert_dedup_window_sec,
    }
    kwargs.update(overrides)
    return FleetEngine(trips, **kwargs)
