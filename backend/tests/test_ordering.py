"""
Tests for the merged global timeline.
"""

from fleetdash.ordering import build_timeline
from conftest import at, make_event, make_trip


def _ids(events):
    return [e.id for e in events]


class TestTimeline:
    def test_merges_and_sorts_across_trips(self):
        trips = [
            make_trip("a", [make_event("a1", "TripStart", 0), make_event("a2", "TripEnd", 30)]),
            make_trip("b", [make_event("b1", "TripStart", 10), make_event("b2", "TripEnd", 20)]),
        ]
        timeline = build_timeline(trips)
        assert _ids(timeline) == ["a1", "b1", "b2", "a2"]
        assert len(timeline) == 4

    def test_events_are_stamped_with_trip_id(self):
        timeline = build_timeline([make_trip("a", [make_event("a1", "TripStart", 0)])])
        assert timeline[0].trip_id == "a"

    def test_equal_timestamps_keep_roster_order(self):
        trips = [
            make_trip("a", [make_event("a1", "TripStart", 0), make_event("a2", "LocationUpdate", 0)]),
            make_trip("b", [make_event("b1", "TripStart", 0)]),
        ]
        assert _ids(build_timeline(trips)) == ["a1", "a2", "b1"]

    def test_unsorted_trip_events_are_ordered(self):
        trip = make_trip("a", [make_event("late", "TripEnd", 50), make_event("early", "TripStart", 5)])
        assert _ids(build_timeline([trip])) == ["early", "late"]

    def test_bounds(self):
        trips = [make_trip("a", [make_event("a1", "TripStart", 5), make_event("a2", "TripEnd", 50)])]
        timeline = build_timeline(trips)
        assert timeline.start == at(5)
        assert timeline.end == at(50)

    def test_empty_roster(self):
        timeline = build_timeline([])
        assert len(timeline) == 0
        assert timeline.start is None
        assert timeline.end is None


class TestWindows:
    def setup_method(self):
        self.timeline = build_timeline([make_trip("a", [
            make_event("e0", "TripStart", 0),
            make_event("e10", "LocationUpdate", 10),
            make_event("e20", "LocationUpdate", 20),
            make_event("e20b", "Speeding", 20),
            make_event("e30", "TripEnd", 30),
        ])])

    def test_window_is_open_left_closed_right(self):
        assert _ids(self.timeline.window(at(0), at(20))) == ["e10", "e20", "e20b"]

    def test_adjacent_windows_never_overlap(self):
        first = self.timeline.window(at(0), at(15))
        second = self.timeline.window(at(15), at(30))
        assert _ids(first) + _ids(second) == ["e10", "e20", "e20b", "e30"]

    def test_empty_or_inverted_window(self):
        assert self.timeline.window(at(20), at(20)) == []
        assert self.timeline.window(at(25), at(5)) == []

    def test_at_returns_exact_instant(self):
        assert _ids(self.timeline.at(at(20))) == ["e20", "e20b"]
        assert self.timeline.at(at(21)) == []
