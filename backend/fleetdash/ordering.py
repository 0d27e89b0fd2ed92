# fleetdash/ordering.py
# ------------------------------------------------------------
# Global event ordering.
#
# All trip timelines are merged once into a single list ordered by
# timestamp. Python's sort is stable, so events sharing a timestamp
# keep their source order (trip roster order, then event order inside
# the trip). Every consumer (scheduler sweep, SSE replay) relies on
# this exact order.
# ------------------------------------------------------------

from __future__ import annotations

from bisect import bisect_left, bisect_right
from datetime import datetime
from typing import List, Optional, Sequence

from .models import FleetEvent, Trip


class Timeline:
    """
    Immutable, globally ordered view over every trip's events.

    Each event is stamped with the id of the trip it belongs to.
    Window queries are O(log n) via bisection on the timestamps.
    """

    def __init__(self, trips: Sequence[Trip]):
        merged: List[FleetEvent] = [
            event.model_copy(update={"trip_id": trip.id})
            for trip in trips
            for event in trip.events
        ]
        self._events: List[FleetEvent] = sorted(merged, key=lambda e: e.timestamp)
        self._stamps: List[datetime] = [e.timestamp for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self._events)

    def __getitem__(self, idx):
        return self._events[idx]

    @property
    def start(self) -> Optional[datetime]:
        return self._stamps[0] if self._stamps else None

    @property
    def end(self) -> Optional[datetime]:
        return self._stamps[-1] if self._stamps else None

    def window(self, after: datetime, until: datetime) -> List[FleetEvent]:
        """
        Events with `after < timestamp <= until`, in global order.
        """
        if until <= after:
            return []
        lo = bisect_right(self._stamps, after)
        hi = bisect_right(self._stamps, until)
        return self._events[lo:hi]

    def at(self, instant: datetime) -> List[FleetEvent]:
        """
        Events stamped exactly `instant`, in global order.
        """
        lo = bisect_left(self._stamps, instant)
        hi = bisect_right(self._stamps, instant)
        return self._events[lo:hi]


def build_timeline(trips: Sequence[Trip]) -> Timeline:
    return Timeline(trips)
