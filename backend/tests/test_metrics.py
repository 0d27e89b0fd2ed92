"""
Tests for fleet metrics, driver scoring and the alert log.
"""

from datetime import datetime, timezone
import json

import pytest

from fleetdash.alert_log import AlertLog
from fleetdash.metrics import compute_metrics, driver_performance
from fleetdash.models import VehicleState
from fleetdash.reducer import apply_event
from conftest import make_event, make_trip


def _state(trip_id, *events):
    state = VehicleState.initial(make_trip(trip_id, []))
    for event in events:
        state = apply_event(event, state).state
    return state


class TestComputeMetrics:
    def test_counts_by_status(self):
        states = [
            _state("a", make_event("a1", "TripStart", 0)),
            _state("b", make_event("b1", "TripStart", 0), make_event("b2", "Speeding", 5)),
            _state("c", make_event("c1", "TripStart", 0), make_event("c2", "TripEnd", 5)),
            _state("d", make_event("d1", "TripStart", 0), make_event("d2", "TripCancelled", 5)),
            _state("e"),
        ]
        metrics = compute_metrics(states, AlertLog())
        assert metrics.total_trips == 5
        assert metrics.active_trips == 2
        assert metrics.completed_trips == 1
        assert metrics.cancelled_trips == 1
        assert metrics.average_completion == pytest.approx(40.0)

    def test_alert_totals_come_from_the_log(self):
        log = AlertLog()
        log.append(make_event("x1", "Speeding", 0, severity="high"))
        log.append(make_event("x2", "HardBraking", 0, severity="low"))
        log.append(make_event("x3", "DeviceOffline", 0))
        metrics = compute_metrics([], log)
        assert metrics.total_alerts == 3
        assert metrics.alerts_by_severity == {"low": 1, "medium": 0, "high": 1}

    def test_empty(self):
        metrics = compute_metrics([], AlertLog())
        assert metrics.total_trips == 0
        assert metrics.average_completion == 0.0

    def test_wire_shape(self):
        wire = compute_metrics([], AlertLog()).to_wire()
        assert set(wire) == {
            "totalTrips", "activeTrips", "completedTrips", "cancelledTrips",
            "totalAlerts", "averageCompletion", "alertsBySeverity",
        }


class TestDriverPerformance:
    def test_scores_and_order(self):
        clean = _state("clean", make_event("c1", "TripStart", 0))
        risky = _state(
            "risky",
            make_event("r1", "TripStart", 0),
            make_event("r2", "Speeding", 10),
            make_event("r3", "DeviceOffline", 20),
            make_event("r4", "HardBraking", 30),
            make_event("r5", "LowFuel", 40),
        )
        rows = driver_performance([risky, clean])
        assert [r["tripId"] for r in rows] == ["clean", "risky"]
        assert rows[0]["performanceScore"] == 100
        assert rows[0]["label"] == "Excellent"
        assert rows[1]["performanceScore"] == 83
        assert rows[1]["label"] == "Good"
        assert rows[1]["alertCount"] == 4

    def test_score_floor(self):
        events = [make_event("s", "TripStart", 0)]
        events += [make_event(f"o{i}", "DeviceOffline", i * 120) for i in range(1, 13)]
        rows = driver_performance([_state("bad", *events)])
        assert rows[0]["performanceScore"] == 0
        assert rows[0]["label"] == "Poor"


class TestAlertLog:
    def setup_method(self):
        self.log = AlertLog()
        self.log.append(make_event("a", "Speeding", 0, severity="medium"))
        self.log.append(make_event("b", "HardBraking", 30 * 60, severity="low"))
        self.log.append(make_event("c", "Speeding", 90 * 60, severity="high"))

    def test_recent_is_newest_first(self):
        assert [e.id for e in self.log.recent(2)] == ["c", "b"]
        assert self.log.recent(0) == []

    def test_count_by_type(self):
        assert self.log.count_by_type() == {"Speeding": 2, "HardBraking": 1}

    def test_timeline_buckets(self):
        buckets = self.log.timeline(60)
        assert buckets == [
            (datetime(2025, 11, 8, 12, 0, tzinfo=timezone.utc), 2),
            (datetime(2025, 11, 8, 13, 0, tzinfo=timezone.utc), 1),
        ]

    def test_timeline_rejects_bad_bucket(self):
        with pytest.raises(ValueError):
            self.log.timeline(0)

    def test_to_json(self):
        payload = json.loads(self.log.to_json())
        assert [e["id"] for e in payload] == ["a", "b", "c"]
        assert payload[0]["eventType"] == "Speeding"
        assert payload[0]["data"]["severity"] == "medium"

    def test_snapshot_is_detached(self):
        snap = self.log.snapshot()
        self.log.clear()
        assert len(snap) == 3
        assert len(self.log) == 0
