# fleetdash/routes/stream.py
# ------------------------------------------------------------
# Server-Sent Events (SSE) streams
#
# /api/stream        dashboard feed: a `snapshot` (metrics + clock)
#                    whenever engine state changes, plus heartbeats
# /api/fleet-stream  replay feed: the merged, time-ordered event
#                    timeline as `fleetEvent` messages, paced by
#                    `speed` (1/speed seconds between events)
#
# Both use async sleep (they never block the event loop).
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
import asyncio
import time
from typing import AsyncGenerator

from ..engine import FleetEngine
from ._common import SSE_HEADERS, get_engine, sse

router = APIRouter(tags=["stream"])


def snapshot(engine: FleetEngine) -> dict:
    return {
        "version": engine.version,
        "metrics": engine.fleet_metrics.to_wire(),
        "simulation": engine.status(),
    }


async def dashboard_feed(request: Request) -> AsyncGenerator[str, None]:
    """
    Live dashboard updates.

    Implementation notes:
    - Starts with the current snapshot, then only sends on change.
    - The engine is looked up on every pass: a roster refresh swaps it,
      and a swap always produces a fresh snapshot.
    - Sends a heartbeat periodically to keep the connection alive.
    """
    state = request.app.state
    settings = state.settings
    engine = state.engine

    # initial hello + retry hint (client reconnect delay)
    yield "retry: 2000\n\n"
    yield sse("hello", {"ok": True, "ts": time.time()})
    yield sse("snapshot", snapshot(engine))

    last_version = engine.version
    last_heartbeat = time.time()

    while True:
        if await request.is_disconnected():
            break

        current = getattr(state, "engine", None)
        if current is not None and (current is not engine or current.version != last_version):
            engine = current
            last_version = engine.version
            yield sse("snapshot", snapshot(engine))

        now = time.time()
        if now - last_heartbeat >= settings.stream_heartbeat_sec:
            yield sse("heartbeat", {"t": now})
            last_heartbeat = now

        await asyncio.sleep(settings.stream_poll_sec)


@router.get("/api/stream", dependencies=[Depends(get_engine)])
async def stream(request: Request):
    return StreamingResponse(dashboard_feed(request), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/api/fleet-stream")
async def fleet_stream(
    speed: float = Query(1.0, gt=0, le=10000),
    engine: FleetEngine = Depends(get_engine),
):
    """
    Replay the loaded timeline for push-mode clients. Each message
    carries a canonical event including its tripId, ready to be fed
    into another engine's ingest path.
    """
    events = list(engine.timeline)
    delay = 1.0 / speed

    async def gen() -> AsyncGenerator[str, None]:
        for event in events:
            yield sse("fleetEvent", event.to_wire())
            await asyncio.sleep(delay)

    return StreamingResponse(gen(), media_type="text/event-stream", headers=SSE_HEADERS)
