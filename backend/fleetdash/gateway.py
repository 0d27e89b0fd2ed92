# fleetdash/gateway.py
# ------------------------------------------------------------
# Ingestion gateway: the single writer of engine state.
#
# Two callers, one idempotent apply path:
# - batch mode: the scheduler hands over each tick's ordered slice
# - push mode: transports deliver single events, possibly out of
#   order and possibly more than once (redundant channels, redelivery
#   after reconnect)
#
# Every event id is applied at most once until reset(). Malformed
# events are dropped, never raised: one bad telemetry record must not
# halt the dashboard.
# ------------------------------------------------------------

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from .alert_log import AlertLog
from .logger import get_logger
from .metrics import compute_metrics
from .models import FleetEvent, FleetMetrics, Trip, VehicleState
from .reducer import DEFAULT_DEDUP_WINDOW, IngestOutcome, apply_event
from .sources.translate import parse_pushed_event

logger = get_logger(__name__)

PushPayload = Union[FleetEvent, Mapping[str, Any]]


class IngestionGateway:
    """
    Owns the per-vehicle state map, the alert log and the set of
    processed event ids.
    """

    def __init__(self, trips: Sequence[Trip], dedup_window: timedelta = DEFAULT_DEDUP_WINDOW):
        self._trips = tuple(trips)
        self._dedup_window = dedup_window
        self._states: Dict[str, VehicleState] = {}
        self._processed: Set[str] = set()
        self.alert_log = AlertLog()
        self.metrics = FleetMetrics()
        self.version = 0
        self.reset()

    # --------------------------------------------------------
    # Read side
    # --------------------------------------------------------
    @property
    def states(self) -> Dict[str, VehicleState]:
        # states are immutable, a shallow copy is a safe snapshot
        return dict(self._states)

    def is_processed(self, event_id: str) -> bool:
        return event_id in self._processed

    # --------------------------------------------------------
    # Write side
    # --------------------------------------------------------
    def reset(self) -> None:
        self._states = {trip.id: VehicleState.initial(trip) for trip in self._trips}
        self._processed.clear()
        self.alert_log.clear()
        self._refresh()

    def apply_batch(self, events: Iterable[FleetEvent]) -> List[IngestOutcome]:
        outcomes = [self._apply(event) for event in events]
        if any(o.consumed for o in outcomes):
            self._refresh()
        return outcomes

    def ingest(self, payload: PushPayload) -> IngestOutcome:
        if isinstance(payload, FleetEvent):
            event: Optional[FleetEvent] = payload
        else:
            event = parse_pushed_event(payload)

        if event is None or not event.id or not event.trip_id:
            logger.debug("push_event_rejected")
            return IngestOutcome.REJECTED

        outcome = self._apply(event)
        if outcome.consumed:
            self._refresh()
        return outcome

    def _apply(self, event: FleetEvent) -> IngestOutcome:
        if event.id in self._processed:
            return IngestOutcome.DUPLICATE

        state = self._states.get(event.trip_id) if event.trip_id else None
        if state is None:
            logger.debug("event_unknown_trip", event_id=event.id, trip_id=event.trip_id)
            return IngestOutcome.UNKNOWN_TRIP

        reduction = apply_event(event, state, self._dedup_window)
        self._states[event.trip_id] = reduction.state
        self._processed.add(event.id)
        if reduction.alert is not None:
            self.alert_log.append(reduction.alert)
        return reduction.outcome

    def _refresh(self) -> None:
        self.metrics = compute_metrics(self._states.values(), self.alert_log)
        self.version += 1
