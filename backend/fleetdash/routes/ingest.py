# fleetdash/routes/ingest.py
# ------------------------------------------------------------
# HTTP push transport.
#
# Socket-style single-event push: any producer can POST one event
# (canonical or raw source vocabulary). Duplicates and malformed
# payloads are not errors; the outcome is reported back instead.
# ------------------------------------------------------------

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..engine import FleetEngine
from ._common import get_engine

router = APIRouter(tags=["ingest"])


@router.post("/api/ingest", status_code=202)
async def ingest_event(
    payload: Dict[str, Any] = Body(...),
    engine: FleetEngine = Depends(get_engine),
):
    outcome = engine.ingest_event(payload)
    return {"ok": True, "outcome": outcome.value, "version": engine.version}
