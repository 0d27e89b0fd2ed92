# fleetdash/generators.py
# ------------------------------------------------------------
# Synthetic trip generator (demo / last-resort telemetry source).
#
# - Vehicles follow fixed waypoint routes (interpolated, no teleport)
# - Location updates carry distance so progress is meaningful
# - Alerts are sprinkled at fixed intervals, with jitter
# - One trip is cancelled, one loses its GPS device for a while
#
# Output is deterministic for a given seed and start time.
# ------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import random
from typing import Any, Dict, List, Optional, Tuple

from .models import EventType, FleetEvent, Trip

LatLon = Tuple[float, float]


# -------------------------------
# Routes (lat, lon)
# -------------------------------
ROUTES: Dict[str, List[LatLon]] = {
    "la-ny": [
        (34.0522, -118.2437), (34.1050, -117.7282), (35.3733, -116.8662),
        (35.3395, -114.9843), (35.1983, -111.6513), (35.0844, -106.6504),
        (35.2220, -101.8313), (35.4676, -97.5164), (35.1495, -90.0490),
        (36.1627, -86.7816), (38.3498, -81.6326), (39.9526, -75.1652),
        (40.7128, -74.0060),
    ],
    "sf-suburbs": [
        (37.7749, -122.4194), (37.7614, -122.4133), (37.7294, -122.4161),
        (37.6879, -122.4702), (37.6305, -122.4111), (37.5585, -122.2711),
        (37.4419, -122.1430), (37.3382, -121.8863),
    ],
    "denver-aspen": [
        (39.7392, -104.9903), (39.6536, -105.1911), (39.7420, -105.5136),
        (39.6403, -106.3742), (39.5501, -107.3248), (39.1911, -106.8175),
    ],
    "dallas-houston": [
        (32.7767, -96.7970), (32.3513, -96.6561), (31.7619, -96.4953),
        (31.3210, -96.1537), (30.7235, -95.5508), (30.1588, -95.4891),
        (29.7604, -95.3698),
    ],
    "atlanta-nashville": [
        (33.7490, -84.3880), (34.0234, -84.6155), (34.7698, -84.9702),
        (35.0456, -85.3097), (35.4834, -86.0886), (36.1627, -86.7816),
    ],
}


# -------------------------------
# Helpers
# -------------------------------
def iso_utc(dt: datetime) -> str:
    """
    Always return UTC ISO string with 'Z' suffix.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def point_along(route: List[LatLon], fraction: float) -> LatLon:
    """
    Linear interpolation along the route waypoints, fraction in [0, 1].
    """
    pos = clamp(fraction, 0.0, 1.0) * (len(route) - 1)
    idx = int(pos)
    nxt = min(idx + 1, len(route) - 1)
    blend = pos - idx
    (a_lat, a_lon), (b_lat, b_lon) = route[idx], route[nxt]
    return a_lat + (b_lat - a_lat) * blend, a_lon + (b_lon - a_lon) * blend


class _TripBuilder:
    """
    Accumulates one trip's events with deterministic ids.
    """

    def __init__(self, rng: random.Random, route: List[LatLon], start: datetime):
        self.rng = rng
        self.route = route
        self.now = start
        self.events: List[FleetEvent] = []

    def emit(
        self,
        event_type: EventType,
        data: Optional[Dict[str, Any]] = None,
        at: Optional[datetime] = None,
    ) -> None:
        self.events.append(FleetEvent(
            id=f"evt_{self.rng.getrandbits(64):016x}",
            timestamp=at or self.now,
            event_type=event_type,
            data=data or {},
        ))

    def jittered(self) -> datetime:
        return self.now + timedelta(seconds=self.rng.random() * 30)

    def location(self, fraction: float) -> Dict[str, float]:
        lat, lon = point_along(self.route, fraction)
        return {"latitude": lat, "longitude": lon}

    def start(self, message: str) -> None:
        self.emit(EventType.TRIP_START, {"location": self.location(0.0), "message": message})

    def finish(self, message: str) -> None:
        self.emit(EventType.TRIP_END, {"location": self.location(1.0), "message": message})

    def ping(self, fraction: float, speed: float, fuel: float, total_distance: float) -> None:
        self.emit(EventType.LOCATION_UPDATE, {
            "location": self.location(fraction),
            "speed": speed,
            "fuelLevel": max(0.0, fuel),
            "distanceCovered": fraction * total_distance,
            "totalDistance": total_distance,
        })


# -------------------------------
# Trip scenarios
# -------------------------------
def _long_haul(rng: random.Random, start: datetime, steps: int) -> List[FleetEvent]:
    b = _TripBuilder(rng, ROUTES["la-ny"], start)
    b.start("Trip started from Los Angeles Distribution Center")
    total, fuel = 4500.0, 100.0
    for i in range(steps):
        b.now += timedelta(minutes=1)
        frac = i / steps
        fuel -= 85.0 / steps
        if i % 5 == 0:
            b.ping(frac, 75 + (rng.random() - 0.5) * 20, fuel, total)
        if i and i % 1500 == 0:
            b.emit(EventType.SPEEDING, {
                "speed": 95 + rng.random() * 20, "severity": "medium",
                "message": "Excessive speed detected",
            }, at=b.jittered())
        if i and i % 2000 == 0:
            b.emit(EventType.HARD_BRAKING, {
                "severity": "low", "message": "Hard braking event recorded",
            }, at=b.jittered())
        if fuel < 20:
            b.emit(EventType.LOW_FUEL, {"fuelLevel": fuel, "severity": "high", "message": "Fuel level critical"})
            b.now += timedelta(minutes=20)
            fuel = 100.0
            b.emit(EventType.REFUELING, {"message": "Vehicle refueled at station"})
    b.finish("Trip completed successfully in New York")
    return b.events


def _urban(rng: random.Random, start: datetime, steps: int) -> List[FleetEvent]:
    b = _TripBuilder(rng, ROUTES["sf-suburbs"], start)
    b.start("Urban delivery route started")
    total = 50.0
    for i in range(steps):
        b.now += timedelta(minutes=2)
        frac = i / steps
        if i % 3 == 0:
            b.ping(frac, 20 + rng.random() * 25, 95 - frac * 20, total)
        if i and i % 80 == 0:
            b.emit(EventType.HARD_BRAKING, {
                "severity": "low", "message": "Urban driving - hard stop",
            }, at=b.jittered())
    b.finish("All deliveries completed")
    return b.events


def _mountain_cancelled(rng: random.Random, start: datetime, steps: int) -> List[FleetEvent]:
    b = _TripBuilder(rng, ROUTES["denver-aspen"], start)
    b.start("Mountain route trip started")
    total = 320.0
    for i in range(steps):
        b.now += timedelta(minutes=5)
        frac = min(i / steps, 0.4)  # weather stops the trip at 40%
        b.ping(frac, 60 + rng.random() * 15, 95 - frac * 20, total)
    b.now += timedelta(minutes=5)
    b.emit(EventType.TRIP_CANCELLED, {
        "reason": "Severe weather warning - blizzard conditions in mountain passes",
        "severity": "high",
        "message": "Trip cancelled due to weather conditions",
    })
    return b.events


def _technical_issues(rng: random.Random, start: datetime, steps: int) -> List[FleetEvent]:
    b = _TripBuilder(rng, ROUTES["dallas-houston"], start)
    b.start("Logistics route started")
    total = 385.0
    offline_from, offline_to = int(steps * 0.4), int(steps * 0.6)
    for i in range(steps):
        b.now += timedelta(minutes=1.5)
        frac = i / steps
        if offline_from < i < offline_to:
            if i == offline_from + 1:
                b.emit(EventType.DEVICE_OFFLINE, {"severity": "high", "message": "GPS device went offline"})
            continue
        if i % 4 == 0:
            b.ping(frac, 85 + (rng.random() - 0.5) * 30, 85 - frac * 60, total)
        if i and i % 300 == 0:
            b.emit(EventType.SPEEDING, {"speed": 105 + rng.random() * 15, "severity": "medium"}, at=b.jittered())
    b.finish("Trip completed successfully in Houston")
    return b.events


def _regional(rng: random.Random, start: datetime, steps: int) -> List[FleetEvent]:
    b = _TripBuilder(rng, ROUTES["atlanta-nashville"], start)
    b.start("Regional logistics trip started")
    total, fuel = 400.0, 40.0
    for i in range(steps):
        b.now += timedelta(minutes=1)
        frac = i / steps
        fuel -= 0.04
        if i % 3 == 0:
            b.ping(frac, 90 + (rng.random() - 0.5) * 20, fuel, total)
        if 12 < fuel < 15:
            b.emit(EventType.LOW_FUEL, {"fuelLevel": fuel, "severity": "medium", "message": "Fuel running low"})
        if fuel < 12:
            b.now += timedelta(minutes=25)
            fuel = 95.0
            b.emit(EventType.REFUELING, {"message": "Vehicle refueled"})
    b.finish("Regional logistics trip completed")
    return b.events


# (id, name, driver, vehicle, from, to, builder, start offset min, steps)
SCENARIOS = [
    ("trip-1", "Cross-Country Long Haul", "John Doe", "Freightliner Cascadia",
     "Los Angeles, CA", "New York, NY", _long_haul, 0, 10000),
    ("trip-2", "Urban Dense Delivery", "Jane Smith", "Ford Transit",
     "Downtown, SF", "Suburbs, SF", _urban, 5, 500),
    ("trip-3", "Mountain Route Cancelled", "Alex Johnson", "Jeep Wrangler",
     "Denver, CO", "Aspen, CO", _mountain_cancelled, 10, 100),
    ("trip-4", "Southern Technical Issues", "Maria Garcia", "Peterbilt 579",
     "Dallas, TX", "Houston, TX", _technical_issues, 2, 1000),
    ("trip-5", "Regional Logistics", "Sam Wilson", "Volvo VNL",
     "Atlanta, GA", "Nashville, TN", _regional, 8, 2000),
]


# -------------------------------
# Public API used by the app
# -------------------------------
def generate_demo_trips(
    seed: int = 42,
    start: Optional[datetime] = None,
    scale: float = 1.0,
) -> List[Trip]:
    """
    Build the demo roster. `scale` shrinks every trip's step count
    (tests use small values to keep rosters light).
    """
    rng = random.Random(seed)
    if start is None:
        start = datetime.now(timezone.utc).replace(second=0, microsecond=0)

    trips: List[Trip] = []
    for trip_id, name, driver, vehicle, origin, dest, build, offset, steps in SCENARIOS:
        events = build(rng, start + timedelta(minutes=offset), max(10, int(steps * scale)))
        trips.append(Trip(
            id=trip_id,
            trip_name=name,
            driver_name=driver,
            vehicle_model=vehicle,
            start_location_name=origin,
            end_location_name=dest,
            events=tuple(events),
        ))
    return trips
