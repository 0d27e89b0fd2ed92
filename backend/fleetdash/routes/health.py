# fleetdash/routes/health.py
# ------------------------------------------------------------
# Health endpoint
#
# Purpose:
# - quick liveness check
# - counts for UI chips
# - push transport visibility
# ------------------------------------------------------------

from fastapi import APIRouter, Request
from datetime import datetime, timezone
import time

from ..generators import iso_utc

router = APIRouter(tags=["health"])

# server start reference (module load time)
STARTED_AT = datetime.now(timezone.utc)


@router.get("/api/health")
async def health(request: Request):
    """
    Health status for the dashboard.

    Returns:
    - ok, utc
    - started_at, uptime_seconds
    - counts (trips, events, alerts)
    - simulation (running flag, clock)
    - pubsub (enabled, messages received)
    - latency_ms (server-measured for this handler)
    """
    t0 = time.perf_counter()
    state = request.app.state
    engine = getattr(state, "engine", None)

    counts = {"trips": 0, "events": 0, "alerts": 0}
    simulation = None
    if engine is not None:
        counts = {
            "trips": len(engine.trips),
            "events": len(engine.timeline),
            "alerts": len(engine.alert_log),
        }
        simulation = engine.status()

    subscriber = getattr(state, "subscriber", None)
    pubsub = {
        "enabled": subscriber is not None,
        "received": subscriber.received if subscriber is not None else 0,
    }

    now = datetime.now(timezone.utc)
    return {
        "ok": engine is not None,
        "utc": iso_utc(now),
        "started_at": iso_utc(STARTED_AT),
        "uptime_seconds": int((now - STARTED_AT).total_seconds()),
        "source": getattr(getattr(state, "loader", None), "source", None),
        "counts": counts,
        "simulation": simulation,
        "pubsub": pubsub,
        "latency_ms": round((time.perf_counter() - t0) * 1000, 2),
    }
