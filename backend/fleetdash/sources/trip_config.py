# fleetdash/sources/trip_config.py
# ------------------------------------------------------------
# Trip roster configuration.
#
# Resolution order:
# 1. remote JSON (settings.trip_config_url)
# 2. local JSON file (settings.trip_config_path)
# 3. empty roster
#
# Every failure is logged for operators and degrades to the next
# step; nothing here raises into the engine.
# ------------------------------------------------------------

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..config import Settings
from ..logger import get_logger

logger = get_logger(__name__)


class TripConfig(BaseModel):
    """
    One roster entry: trip metadata plus the telemetry file to read.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    trip_name: str
    driver_name: Optional[str] = None
    vehicle_model: Optional[str] = None
    start_location_name: Optional[str] = None
    end_location_name: Optional[str] = None
    max_events: int = Field(ge=0)
    file_name: str


_CONFIGS = TypeAdapter(List[TripConfig])


def parse_trip_configs(payload: Any) -> Optional[List[TripConfig]]:
    try:
        return _CONFIGS.validate_python(payload)
    except ValidationError as exc:
        logger.warning("trip_config_invalid", errors=exc.error_count())
        return None


async def _fetch_remote(url: str, timeout: float = 10.0) -> Optional[List[TripConfig]]:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, headers={"Cache-Control": "no-store"})
    except httpx.HTTPError as exc:
        logger.warning("trip_config_fetch_failed", url=url, error=str(exc))
        return None

    if response.status_code != 200:
        logger.warning("trip_config_fetch_failed", url=url, status=response.status_code)
        return None

    try:
        payload = response.json()
    except ValueError as exc:
        logger.warning("trip_config_fetch_failed", url=url, error=str(exc))
        return None
    return parse_trip_configs(payload)


def _read_local(path: Path) -> Optional[List[TripConfig]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("trip_config_read_failed", path=str(path), error=str(exc))
        return None
    return parse_trip_configs(payload)


async def get_trip_configs(settings: Settings) -> List[TripConfig]:
    if settings.trip_config_url:
        configs = await _fetch_remote(settings.trip_config_url)
        if configs is not None:
            return configs

    configs = _read_local(Path(settings.trip_config_path))
    if configs is not None:
        return configs

    return []
