# fleetdash/sources/translate.py
# ------------------------------------------------------------
# Raw telemetry -> canonical FleetEvent.
#
# This is the only place where event-type *strings* are compared.
# Unknown source types fall back to LocationUpdate, so the engine
# only ever sees the closed EventType set.
#
# Raw (source) shape, as produced by the telemetry files and feeds:
#   {"event_id", "event_type", "timestamp", "trip_id",
#    "location": {"lat", "lng"}, "movement": {"speed_kmh"},
#    "fuel_level", "distance_travelled_km", "planned_distance_km",
#    "severity", "event_description", "cancellation_reason",
#    "overspeed"}
# ------------------------------------------------------------

from __future__ import annotations

import uuid
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ..logger import get_logger
from ..models import EventType, FleetEvent, SEVERITIES

logger = get_logger(__name__)

EVENT_TYPE_MAP: Dict[str, EventType] = {
    "trip_started": EventType.TRIP_START,
    "trip_ended": EventType.TRIP_END,
    "trip_cancelled": EventType.TRIP_CANCELLED,
    "location_ping": EventType.LOCATION_UPDATE,
    "overspeed_event": EventType.SPEEDING,
    "hard_braking_event": EventType.HARD_BRAKING,
    "fuel_low": EventType.LOW_FUEL,
    "refueling": EventType.REFUELING,
    "device_offline": EventType.DEVICE_OFFLINE,
}

# These win over the `overspeed` flag on the raw payload.
_PRIORITY_TYPES = ("trip_started", "trip_ended", "trip_cancelled", "location_ping")

_CANONICAL = {e.value: e for e in EventType}


def map_event_type(raw_type: Optional[str], overspeed: bool = False) -> EventType:
    raw_type = raw_type or ""
    if raw_type in _PRIORITY_TYPES:
        return EVENT_TYPE_MAP[raw_type]
    if overspeed:
        return EventType.SPEEDING
    return EVENT_TYPE_MAP.get(raw_type, EventType.LOCATION_UPDATE)


def coerce_event_type(value: Any) -> EventType:
    """
    Accept a canonical name ("Speeding") or a source name
    ("overspeed_event"); anything else is a LocationUpdate.
    """
    if isinstance(value, EventType):
        return value
    if isinstance(value, str) and value in _CANONICAL:
        return _CANONICAL[value]
    return map_event_type(value if isinstance(value, str) else None)


def _severity(raw: Mapping[str, Any], raw_type: str) -> Optional[str]:
    sev = raw.get("severity")
    if isinstance(sev, str) and sev.lower() in SEVERITIES:
        return sev.lower()
    if "hard" in raw_type:
        return "low"
    if "overspeed" in raw_type:
        return "medium"
    return None


def convert_raw_event(raw: Mapping[str, Any], trip_id: Optional[str] = None) -> FleetEvent:
    """
    Translate one raw source event. Raises pydantic.ValidationError
    when the payload cannot form a valid event (e.g. bad timestamp).
    """
    raw_type = str(raw.get("event_type") or "")
    # nested blocks that are not objects count as absent
    loc = raw.get("location")
    if not isinstance(loc, Mapping):
        loc = None
    movement = raw.get("movement")
    if not isinstance(movement, Mapping):
        movement = {}

    data: Dict[str, Any] = {
        "location": {"latitude": loc.get("lat"), "longitude": loc.get("lng")} if loc else None,
        "speed": movement.get("speed_kmh"),
        "fuelLevel": raw.get("fuel_level"),
        "distanceCovered": raw.get("distance_travelled_km"),
        "totalDistance": raw.get("planned_distance_km"),
        "severity": _severity(raw, raw_type),
        "message": raw.get("event_description") or raw_type or None,
        "reason": raw.get("cancellation_reason"),
    }

    return FleetEvent.model_validate({
        "id": raw.get("event_id") or str(uuid.uuid4()),
        "timestamp": raw.get("timestamp"),
        "eventType": map_event_type(raw_type, bool(raw.get("overspeed"))),
        "tripId": raw.get("trip_id") or trip_id,
        "data": data,
    })


def parse_pushed_event(payload: Mapping[str, Any]) -> Optional[FleetEvent]:
    """
    Normalize a push-transport payload (canonical or raw vocabulary).

    Returns None for anything that cannot become a valid event with an
    id. Push events never get a generated id: without one there is no
    idempotency key.
    """
    if not isinstance(payload, Mapping):
        return None

    try:
        if "event_type" in payload and "eventType" not in payload:
            if not payload.get("event_id"):
                return None
            return convert_raw_event(payload, payload.get("tripId"))

        if not payload.get("id"):
            return None
        body = dict(payload)
        body["eventType"] = coerce_event_type(body.get("eventType", body.get("event_type")))
        body.pop("event_type", None)
        return FleetEvent.model_validate(body)
    except ValidationError as exc:
        logger.debug("push_event_invalid", errors=exc.error_count())
        return None
