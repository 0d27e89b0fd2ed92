# fleetdash/reducer.py
# ------------------------------------------------------------
# Event application: (event, previous vehicle state) -> new state.
#
# Pure: nothing is mutated. The one side effect of the state
# machine (appending accepted alerts to the global alert log) is
# returned as `Reduction.alert` and performed by the gateway.
#
# Status machine:
#   Pending --TripStart--> On Route --alert--> Alert: <type>
#   any non-terminal --TripEnd--> Completed
#   any non-terminal --TripCancelled--> Cancelled
# Completed/Cancelled are terminal: later events are ignored.
# ------------------------------------------------------------

from __future__ import annotations

import math
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from .models import (
    EventType,
    FleetEvent,
    VehicleState,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_ON_ROUTE,
    alert_status,
)

DEFAULT_DEDUP_WINDOW = timedelta(seconds=60)


class IngestOutcome(str, Enum):
    APPLIED = "applied"
    SUPPRESSED = "suppressed"              # alert burst de-duplication
    IGNORED_TERMINAL = "ignored_terminal"  # vehicle already Completed/Cancelled
    DUPLICATE = "duplicate"                # id already processed
    REJECTED = "rejected"                  # malformed payload (no id / tripId)
    UNKNOWN_TRIP = "unknown_trip"

    @property
    def consumed(self) -> bool:
        """True when the event id must be recorded as processed."""
        return self in (
            IngestOutcome.APPLIED,
            IngestOutcome.SUPPRESSED,
            IngestOutcome.IGNORED_TERMINAL,
        )


class Reduction(NamedTuple):
    state: VehicleState
    outcome: IngestOutcome
    alert: Optional[FleetEvent] = None


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round like a dashboard would (2.5 -> 3), not banker's rounding.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _progress(distance_covered: float, total_distance: float) -> float:
    pct = round_half_up(distance_covered / total_distance * 100, 1)
    return min(100.0, max(0.0, pct))


def is_burst_duplicate(
    event: FleetEvent,
    state: VehicleState,
    window: timedelta = DEFAULT_DEDUP_WINDOW,
) -> bool:
    """
    An alert is part of a burst when the vehicle's most recent recorded
    alert has the same type and lies within `window` of it (either side,
    push-mode events may arrive out of order).
    """
    if not state.alerts:
        return False
    last = state.alerts[-1]
    if last.event_type is not event.event_type:
        return False
    return abs(event.timestamp - last.timestamp) <= window


def apply_event(
    event: FleetEvent,
    state: VehicleState,
    dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
) -> Reduction:
    if state.is_terminal:
        return Reduction(state, IngestOutcome.IGNORED_TERMINAL)

    etype = event.event_type
    data = event.data
    update: Dict[str, Any] = {}
    alert: Optional[FleetEvent] = None

    if etype is EventType.TRIP_START:
        update["status"] = STATUS_ON_ROUTE
        update["progress"] = 0.0
        if data.location is not None:
            update["location"] = data.location

    elif etype is EventType.LOCATION_UPDATE:
        if data.location is not None:
            update["location"] = data.location
        if data.speed is not None:
            update["speed"] = round_half_up(data.speed)
        if data.fuel_level is not None:
            update["fuel_level"] = round_half_up(data.fuel_level, 1)
        if data.distance_covered is not None and data.total_distance:
            update["progress"] = _progress(data.distance_covered, data.total_distance)

    elif etype in (
        EventType.SPEEDING,
        EventType.HARD_BRAKING,
        EventType.LOW_FUEL,
        EventType.DEVICE_OFFLINE,
    ):
        if is_burst_duplicate(event, state, dedup_window):
            return Reduction(state, IngestOutcome.SUPPRESSED)
        alert = event
        update["status"] = alert_status(etype)
        update["alerts"] = state.alerts + (event,)

    elif etype is EventType.REFUELING:
        update["fuel_level"] = 100.0

    elif etype is EventType.TRIP_CANCELLED:
        update["status"] = STATUS_CANCELLED
        update["progress"] = 100.0

    elif etype is EventType.TRIP_END:
        update["status"] = STATUS_COMPLETED
        update["progress"] = 100.0

    else:  # pragma: no cover - EventType is closed
        raise AssertionError(f"unhandled event type {etype!r}")

    new_state = state.model_copy(update=update) if update else state
    return Reduction(new_state, IngestOutcome.APPLIED, alert)
