# fleetdash/routes/vehicles.py
# ------------------------------------------------------------
# Vehicles API
#
# Latest derived state per trip's vehicle, in roster order.
# Used by the map markers and the trip detail cards.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException

from ..engine import FleetEngine
from ._common import get_engine

router = APIRouter(tags=["vehicles"])


@router.get("/api/vehicles")
async def list_vehicles(engine: FleetEngine = Depends(get_engine)):
    states = engine.vehicle_states
    return {"items": [states[trip.id].to_wire() for trip in engine.trips]}


@router.get("/api/vehicles/{trip_id}")
async def get_vehicle(trip_id: str, engine: FleetEngine = Depends(get_engine)):
    state = engine.vehicle_states.get(trip_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown trip {trip_id}")
    return state.to_wire()
