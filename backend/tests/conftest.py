"""
Shared test fixtures for the fleet backend test suite.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set env vars before any application imports
os.environ.setdefault("FLEET_ENVIRONMENT", "testing")
os.environ.setdefault("FLEET_PUBSUB_ENABLED", "false")
os.environ.setdefault("FLEET_SUMMARIZER_API_KEY", "")

from fleetdash.engine import FleetEngine  # noqa: E402
from fleetdash.models import FleetEvent, Trip  # noqa: E402

T0 = datetime(2025, 11, 8, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def make_event(event_id, event_type, seconds=0.0, trip_id=None, **data):
    return FleetEvent(
        id=event_id,
        timestamp=at(seconds),
        event_type=event_type,
        trip_id=trip_id,
        data=data,
    )


def make_trip(trip_id, events, name=None):
    return Trip(
        id=trip_id,
        trip_name=name or f"Trip {trip_id}",
        driver_name=f"Driver {trip_id}",
        vehicle_model="Test Truck",
        events=tuple(events),
    )


class FakeWallClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def scenario_trips():
    """
    trip-A: TripStart@t0, LocationUpdate(50/100)@t1, TripEnd@t2
    trip-B: TripStart@t0, Speeding(high)@t0.5
    (t = minutes)
    """
    trip_a = make_trip("trip-A", [
        make_event("a-start", "TripStart", 0, location={"latitude": 34.05, "longitude": -118.24}),
        make_event("a-loc", "LocationUpdate", 60, distanceCovered=50, totalDistance=100, speed=72.6),
        make_event("a-end", "TripEnd", 120),
    ])
    trip_b = make_trip("trip-B", [
        make_event("b-start", "TripStart", 0, location={"latitude": 37.77, "longitude": -122.42}),
        make_event("b-speed", "Speeding", 30, severity="high", speed=118),
    ])
    return [trip_a, trip_b]


@pytest.fixture
def wall():
    return FakeWallClock()


@pytest.fixture
def engine(scenario_trips, wall):
    return FleetEngine(scenario_trips, speed=60, wall_clock=wall)


@pytest.fixture
def test_settings(tmp_path):
    from fleetdash.config import Settings

    return Settings(
        environment="testing",
        trip_config_url=None,
        trip_config_path=str(tmp_path / "trip-config.json"),
        telemetry_data_dir=str(tmp_path),
        synthetic_fallback_enabled=False,
        summarizer_api_key="",
        stream_poll_sec=0.01,
    )


@pytest.fixture
def app_client(scenario_trips, test_settings):
    """FastAPI test client with an engine attached (no startup hook)."""
    from httpx import AsyncClient, ASGITransport
    from fleetdash.main import app
    from fleetdash.sources.loader import TripLoader
    from fleetdash.summarizer import AlertSummarizer

    app.state.settings = test_settings
    app.state.loader = TripLoader(test_settings)
    app.state.summarizer = AlertSummarizer(test_settings)
    app.state.subscriber = None
    app.state.engine = FleetEngine(scenario_trips, speed=10)

    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")
