# fleetdash/routes/simulation.py
# ------------------------------------------------------------
# Simulation controls: play / pause / reset / speed.
#
# Every control returns the resulting simulation status so the UI
# can update its toolbar from the response alone.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine import FleetEngine
from ..logger import get_logger
from ._common import get_engine

router = APIRouter(tags=["simulation"])
logger = get_logger(__name__)


class SpeedRequest(BaseModel):
    speed: float = Field(gt=0, le=100000)


@router.get("/api/simulation")
async def simulation_state(engine: FleetEngine = Depends(get_engine)):
    return engine.status()


@router.post("/api/simulation/play")
async def play(engine: FleetEngine = Depends(get_engine)):
    engine.play()
    logger.info("simulation_play", speed=engine.speed)
    return engine.status()


@router.post("/api/simulation/pause")
async def pause(engine: FleetEngine = Depends(get_engine)):
    engine.pause()
    logger.info("simulation_pause")
    return engine.status()


@router.post("/api/simulation/reset")
async def reset(engine: FleetEngine = Depends(get_engine)):
    engine.reset()
    return engine.status()


@router.post("/api/simulation/speed")
async def set_speed(body: SpeedRequest, engine: FleetEngine = Depends(get_engine)):
    try:
        engine.set_speed(body.speed)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return engine.status()
