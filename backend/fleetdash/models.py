# fleetdash/models.py
# ------------------------------------------------------------
# Core domain models for the fleet tracking engine.
#
# Wire format is camelCase (eventType, tripId, fuelLevel, ...);
# Python attributes are snake_case. Both are accepted on input.
# ------------------------------------------------------------

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Literal, Dict, Tuple
from datetime import datetime, timezone
from enum import Enum


# -------------------------------
# Shared helpers & enums
# -------------------------------
Severity = Literal["low", "medium", "high"]
SEVERITIES: Tuple[str, ...] = ("low", "medium", "high")


class EventType(str, Enum):
    """
    Closed set of canonical telemetry event variants.
    """

    TRIP_START = "TripStart"
    LOCATION_UPDATE = "LocationUpdate"
    HARD_BRAKING = "HardBraking"
    SPEEDING = "Speeding"
    LOW_FUEL = "LowFuel"
    TRIP_CANCELLED = "TripCancelled"
    DEVICE_OFFLINE = "DeviceOffline"
    REFUELING = "Refueling"
    TRIP_END = "TripEnd"

    @property
    def is_alert(self) -> bool:
        return self in ALERT_EVENT_TYPES


ALERT_EVENT_TYPES = frozenset({
    EventType.SPEEDING,
    EventType.HARD_BRAKING,
    EventType.LOW_FUEL,
    EventType.DEVICE_OFFLINE,
})


# Vehicle status values. Alert statuses are "Alert: <EventType>".
STATUS_PENDING = "Pending"
STATUS_ON_ROUTE = "On Route"
STATUS_COMPLETED = "Completed"
STATUS_CANCELLED = "Cancelled"
ALERT_STATUS_PREFIX = "Alert: "
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED})


def alert_status(event_type: EventType) -> str:
    return f"{ALERT_STATUS_PREFIX}{event_type.value}"


def utcnow() -> datetime:
    """
    Always return timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> Dict:
        """
        JSON-ready dict in the camelCase wire shape (None fields omitted).
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -------------------------------
# Location
# -------------------------------
class Location(_CamelModel):
    latitude: float
    longitude: float


# -------------------------------
# Canonical event
# -------------------------------
class EventData(_CamelModel):
    """
    Variant-specific payload. Every field is optional; the reducer
    only touches the fields that are present.
    """

    location: Optional[Location] = None
    speed: Optional[float] = None               # km/h
    fuel_level: Optional[float] = None          # percent, 0-100
    distance_covered: Optional[float] = None    # km
    total_distance: Optional[float] = None      # km
    severity: Optional[Severity] = None
    message: Optional[str] = None
    reason: Optional[str] = None                # cancellation reason


class FleetEvent(_CamelModel):
    """
    A single telemetry occurrence after adapter translation.

    `id` is the idempotency key, `timestamp` defines the total order.
    """

    id: str = Field(min_length=1)
    timestamp: datetime
    event_type: EventType
    trip_id: Optional[str] = None
    data: EventData = Field(default_factory=EventData)

    @field_validator("timestamp")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def severity(self) -> Optional[str]:
        return self.data.severity


# -------------------------------
# Trip roster
# -------------------------------
class Trip(_CamelModel):
    """
    Static roster entry with its full, precomputed event timeline.
    """

    id: str
    trip_name: str
    driver_name: str = "Unknown"
    vehicle_model: str = ""
    start_location_name: str = ""
    end_location_name: str = ""
    events: Tuple[FleetEvent, ...] = ()

    def start_location(self) -> Location:
        for event in self.events:
            if event.event_type is EventType.TRIP_START:
                return event.data.location or Location(latitude=0.0, longitude=0.0)
        return Location(latitude=0.0, longitude=0.0)


# -------------------------------
# Vehicle state
# -------------------------------
class VehicleState(_CamelModel):
    """
    Live derived state of one trip's vehicle. Immutable: the reducer
    returns a new instance for every change.
    """

    id: str
    trip_name: str
    driver_name: str
    vehicle_model: str
    location: Location
    status: str = STATUS_PENDING
    speed: float = 0
    fuel_level: float = 100
    progress: float = 0
    alerts: Tuple[FleetEvent, ...] = ()

    @classmethod
    def initial(cls, trip: Trip) -> "VehicleState":
        return cls(
            id=trip.id,
            trip_name=trip.trip_name,
            driver_name=trip.driver_name,
            vehicle_model=trip.vehicle_model,
            location=trip.start_location(),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ON_ROUTE or self.status.startswith(ALERT_STATUS_PREFIX)


# -------------------------------
# Fleet metrics
# -------------------------------
class FleetMetrics(_CamelModel):
    total_trips: int = 0
    active_trips: int = 0
    completed_trips: int = 0
    cancelled_trips: int = 0
    total_alerts: int = 0
    average_completion: float = 0.0
    alerts_by_severity: Dict[str, int] = Field(
        default_factory=lambda: {s: 0 for s in SEVERITIES}
    )
