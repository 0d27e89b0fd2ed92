# fleetdash/alert_log.py
# ------------------------------------------------------------
# Global, append-only record of every alert that passed burst
# de-duplication, across all vehicles, in application order.
#
# Source of truth for the summarizer and for severity / temporal
# charts. Only the ingestion gateway appends to it.
# ------------------------------------------------------------

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Tuple

from .models import FleetEvent, SEVERITIES

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AlertLog:
    def __init__(self):
        self._items: List[FleetEvent] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[FleetEvent]:
        return iter(self._items)

    def append(self, event: FleetEvent) -> None:
        self._items.append(event)

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> Tuple[FleetEvent, ...]:
        return tuple(self._items)

    def recent(self, limit: int = 50) -> List[FleetEvent]:
        """
        Newest first, at most `limit` entries.
        """
        if limit <= 0:
            return []
        return list(reversed(self._items[-limit:]))

    def count_by_severity(self) -> Dict[str, int]:
        counts = {s: 0 for s in SEVERITIES}
        for event in self._items:
            if event.severity in counts:
                counts[event.severity] += 1
        return counts

    def count_by_type(self) -> Dict[str, int]:
        return dict(Counter(e.event_type.value for e in self._items))

    def timeline(self, bucket_minutes: int = 60) -> List[Tuple[datetime, int]]:
        """
        Alert counts per fixed bucket of event time, ordered by bucket.

        Buckets are aligned to the epoch so the same alert always lands
        in the same bucket regardless of when the query runs.
        """
        if bucket_minutes <= 0:
            raise ValueError("bucket_minutes must be positive")
        size = timedelta(minutes=bucket_minutes)
        counts: Counter = Counter()
        for event in self._items:
            offset = (event.timestamp - _EPOCH) // size
            counts[_EPOCH + offset * size] += 1
        return sorted(counts.items())

    def to_json(self) -> str:
        """
        JSON array of canonical alert events (summarizer input).
        """
        return json.dumps([e.to_wire() for e in self._items])
