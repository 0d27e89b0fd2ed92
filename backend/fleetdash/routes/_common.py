# fleetdash/routes/_common.py
# ------------------------------------------------------------
# Shared helpers for route modules.
# Keeps route files small and consistent.
# ------------------------------------------------------------

import json
from typing import Any, Dict, Iterable, List

from fastapi import HTTPException, Request

from ..engine import FleetEngine
from ..models import FleetEvent


def get_engine(request: Request) -> FleetEngine:
    """
    FastAPI dependency: the engine attached to the running app.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def events_to_wire(events: Iterable[FleetEvent]) -> List[Dict[str, Any]]:
    return [e.to_wire() for e in events]


def sse(event: str, data_obj) -> str:
    """
    Build an SSE message.

    Format:
        event: name
        data: json
    """
    return f"event: {event}\ndata: {json.dumps(data_obj)}\n\n"


SSE_HEADERS = {
    # SSE must not be cached
    "Cache-Control": "no-cache",
    # keep TCP connection open
    "Connection": "keep-alive",
    # if behind nginx, prevents response buffering
    "X-Accel-Buffering": "no",
}
