# fleetdash/sources/loader.py
# ------------------------------------------------------------
# Telemetry source adapter: produces the trip roster for the engine.
#
# Fallback chain:
#   trip configs (remote / local) + per-trip telemetry JSON files
#   -> synthetic generator (if enabled)
#   -> empty roster (engine idles, metrics all zero)
#
# The engine never learns which source was used.
# ------------------------------------------------------------

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..generators import generate_demo_trips
from ..logger import get_logger
from ..models import FleetEvent, Trip
from .translate import convert_raw_event
from .trip_config import TripConfig, get_trip_configs

logger = get_logger(__name__)


def load_trip_file(config: TripConfig, data_dir: Path) -> Optional[Trip]:
    """
    Read one raw telemetry file and translate up to `max_events`
    valid events. Malformed records are skipped.
    """
    path = data_dir / config.file_name
    if not path.exists():
        logger.warning("telemetry_file_missing", path=str(path), trip_id=config.id)
        return None

    try:
        raw_events = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("telemetry_file_unreadable", path=str(path), error=str(exc))
        return None

    if not isinstance(raw_events, list):
        logger.warning("telemetry_file_invalid", path=str(path), reason="not a JSON array")
        return None

    events: List[FleetEvent] = []
    skipped = 0
    for raw in raw_events:
        if len(events) >= config.max_events:
            break
        if not isinstance(raw, dict):
            skipped += 1
            continue
        try:
            events.append(convert_raw_event(raw, config.id))
        except ValidationError:
            skipped += 1

    if not events:
        return None

    logger.info("trip_loaded", trip_id=config.id, events=len(events), skipped=skipped)
    return Trip(
        id=config.id,
        trip_name=config.trip_name,
        driver_name=config.driver_name or "Unknown",
        vehicle_model=config.vehicle_model or "",
        start_location_name=config.start_location_name or "",
        end_location_name=config.end_location_name or "",
        events=tuple(events),
    )


class TripLoader:
    """
    Loads and caches the roster. `load_trips(refresh=True)` bypasses
    the in-memory cache.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.source: Optional[str] = None
        self._cached: Optional[List[Trip]] = None

    async def load_trips(self, refresh: bool = False) -> List[Trip]:
        if self._cached is not None and not refresh:
            return self._cached

        trips: List[Trip] = []
        configs = await get_trip_configs(self.settings)
        if not configs:
            logger.warning("trip_configs_empty")

        data_dir = Path(self.settings.telemetry_data_dir)
        for config in configs:
            trip = load_trip_file(config, data_dir)
            if trip is not None:
                trips.append(trip)
        self.source = "telemetry_files" if trips else None

        if not trips and self.settings.synthetic_fallback_enabled:
            trips = generate_demo_trips(seed=self.settings.synthetic_seed)
            self.source = "synthetic"

        if not trips:
            logger.warning("no_trips_loaded")

        logger.info("trips_ready", count=len(trips), source=self.source)
        self._cached = trips
        return trips


async def load_trips(settings: Optional[Settings] = None) -> List[Trip]:
    return await TripLoader(settings).load_trips()
