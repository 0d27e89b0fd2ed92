# fleetdash/routes/alerts.py
# ------------------------------------------------------------
# Alerts API
#
# Read side of the global alert log:
# - recent alerts (newest first)
# - per-bucket counts for the temporal chart
# - on-demand AI summary (never per tick)
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, Query, Request

from ..engine import FleetEngine
from ._common import events_to_wire, get_engine

router = APIRouter(tags=["alerts"])


@router.get("/api/alerts")
async def list_alerts(
    limit: int = Query(50, ge=1, le=1000),
    engine: FleetEngine = Depends(get_engine),
):
    log = engine.alert_log
    return {
        "total": len(log),
        "bySeverity": log.count_by_severity(),
        "byType": log.count_by_type(),
        "items": events_to_wire(log.recent(limit)),
    }


@router.get("/api/alerts/timeline")
async def alerts_timeline(
    bucket_minutes: int = Query(60, ge=1, le=24 * 60),
    engine: FleetEngine = Depends(get_engine),
):
    buckets = engine.alert_log.timeline(bucket_minutes)
    return {
        "bucketMinutes": bucket_minutes,
        "items": [{"time": t.isoformat(), "count": n} for t, n in buckets],
    }


@router.post("/api/alerts/summary")
async def summarize_alerts(request: Request, engine: FleetEngine = Depends(get_engine)):
    """
    Summarize the alert log as it stands now. The summarizer may be
    slow; the engine keeps ticking while this request waits.
    """
    if len(engine.alert_log) == 0:
        return {"summary": "No alerts to summarize.", "alerts": 0}

    count = len(engine.alert_log)
    snapshot = engine.alert_log.to_json()
    result = await request.app.state.summarizer.summarize(snapshot)
    return {**result, "alerts": count}
