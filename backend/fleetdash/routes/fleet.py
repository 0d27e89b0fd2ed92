# fleetdash/routes/fleet.py
# ------------------------------------------------------------
# Fleet-level API
#
# - /api/metrics              aggregate counters for the overview card
# - /api/drivers/performance  driver scores derived from alerts
# - /api/trips                loaded roster (event bodies omitted)
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, Query, Request

from ..engine import FleetEngine, initialize
from ..logger import get_logger
from ..metrics import driver_performance
from ._common import get_engine

router = APIRouter(tags=["fleet"])
logger = get_logger(__name__)


@router.get("/api/metrics")
async def fleet_metrics(engine: FleetEngine = Depends(get_engine)):
    sim_time = engine.simulation_time
    return {
        **engine.fleet_metrics.to_wire(),
        "simulationTime": sim_time.isoformat() if sim_time else None,
    }


@router.get("/api/drivers/performance")
async def drivers_performance(engine: FleetEngine = Depends(get_engine)):
    states = engine.vehicle_states
    return {"items": driver_performance(states[t.id] for t in engine.trips)}


@router.get("/api/trips")
async def list_trips(request: Request, refresh: bool = Query(False)):
    """
    Roster summary. `refresh=true` reloads the telemetry sources and
    replaces the engine (the simulation restarts from scratch).
    """
    state = request.app.state
    if refresh:
        trips = await state.loader.load_trips(refresh=True)
        old = getattr(state, "engine", None)
        if old is not None:
            old.pause()
        state.engine = initialize(trips, state.settings)
        logger.info("roster_reloaded", trips=len(trips), source=state.loader.source)

    engine = get_engine(request)
    return {
        "count": len(engine.trips),
        "source": state.loader.source,
        "items": [
            {
                **trip.model_dump(mode="json", by_alias=True, exclude={"events"}),
                "eventCount": len(trip.events),
            }
            for trip in engine.trips
        ],
    }
