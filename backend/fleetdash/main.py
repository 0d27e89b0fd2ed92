# fleetdash/main.py
# ------------------------------------------------------------
# FastAPI entrypoint for the fleet tracking dashboard backend.
#
# Responsibilities:
# - App initialization & middleware
# - Route registration
# - Startup bootstrapping (roster load, engine, push transports)
# ------------------------------------------------------------

from typing import Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .engine import FleetEngine, initialize
from .logger import configure_logging, get_logger
from .models import Trip
from .redis_client import get_redis
from .routes import alerts, fleet, health, ingest, simulation, stream, vehicles
from .sources.loader import TripLoader
from .summarizer import AlertSummarizer
from .transports.pubsub import PubSubSubscriber

configure_logging(environment=settings.environment)
logger = get_logger(__name__)


# ------------------------------------------------------------
# FastAPI application instance
# ------------------------------------------------------------
app = FastAPI(
    title="Fleet Tracking Dashboard API",
    version="0.1.0",
    description="Event-driven fleet simulation and live telemetry backend",
)


# ------------------------------------------------------------
# CORS configuration
# Allows frontend dashboards to connect safely
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", method=request.method, path=str(request.url))
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": str(exc), "path": str(request.url)},
    )


# ------------------------------------------------------------
# API routes
# ------------------------------------------------------------
app.include_router(simulation.router)
app.include_router(vehicles.router)
app.include_router(alerts.router)
app.include_router(fleet.router)
app.include_router(ingest.router)
app.include_router(stream.router)
app.include_router(health.router)


def attach_engine(target: FastAPI, trips: Sequence[Trip]) -> FleetEngine:
    """
    Build an engine for `trips` and make it the app's live engine.
    """
    engine = initialize(trips, settings)
    target.state.engine = engine
    return engine


# ------------------------------------------------------------
# Application lifecycle hooks
# ------------------------------------------------------------
@app.on_event("startup")
async def startup():
    """
    On startup:
    1. Load the trip roster (sources fall back down to synthetic / empty).
    2. Build the engine (idle until play).
    3. Start the pub/sub push transport if enabled.
    """
    app.state.settings = settings
    app.state.loader = TripLoader(settings)
    app.state.summarizer = AlertSummarizer(settings)
    app.state.subscriber = None

    trips = await app.state.loader.load_trips()
    attach_engine(app, trips)

    if not settings.pubsub_enabled:
        return

    subscriber = PubSubSubscriber(
        client_factory=get_redis,
        channel=settings.pubsub_channel,
        # resolve the engine per message: /api/trips?refresh swaps it
        ingest=lambda payload: app.state.engine.ingest_event(payload),
    )
    subscriber.start()
    app.state.subscriber = subscriber


@app.on_event("shutdown")
async def shutdown():
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        engine.pause()
    subscriber = getattr(app.state, "subscriber", None)
    if subscriber is not None:
        await subscriber.stop()
