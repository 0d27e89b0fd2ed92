"""
Tests for the Redis pub/sub push transport (decoding and dispatch).
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from fleetdash.reducer import IngestOutcome
from fleetdash.transports.pubsub import PubSubSubscriber, decode_message, publish_event
from conftest import make_event

EVENT = {
    "id": "p1",
    "timestamp": "2025-11-08T12:00:00Z",
    "eventType": "TripStart",
    "tripId": "trip-A",
}


class TestDecodeMessage:
    def test_envelope(self):
        raw = json.dumps({"type": "fleetEvent", "data": EVENT})
        assert decode_message(raw) == EVENT

    def test_bare_event_and_bytes(self):
        assert decode_message(json.dumps(EVENT).encode()) == EVENT

    @pytest.mark.parametrize("raw", [
        None,
        "not json",
        "[1, 2]",
        json.dumps({"type": "control", "data": {"cmd": "flush"}}),
        json.dumps({"type": "fleetEvent", "data": "nope"}),
    ])
    def test_ignored(self, raw):
        assert decode_message(raw) is None


class TestSubscriber:
    def test_handle_feeds_engine(self, engine):
        subscriber = PubSubSubscriber(MagicMock(), "fleet-events", engine.ingest_event)

        raw = json.dumps({"type": "fleetEvent", "data": EVENT})
        assert subscriber.handle(raw) is IngestOutcome.APPLIED
        assert subscriber.handle(raw) is IngestOutcome.DUPLICATE
        assert subscriber.handle("garbage") is None

        assert subscriber.received == 2
        assert engine.vehicle_states["trip-A"].status == "On Route"

    def test_bad_nested_block_is_applied_without_location(self, engine):
        subscriber = PubSubSubscriber(MagicMock(), "fleet-events", engine.ingest_event)
        raw = json.dumps({
            "event_id": "x1",
            "event_type": "trip_started",
            "trip_id": "trip-A",
            "timestamp": "2025-11-08T12:00:00Z",
            "location": "n/a",
        })
        assert subscriber.handle(raw) is IngestOutcome.APPLIED
        assert engine.vehicle_states["trip-A"].location.latitude == 34.05

    def test_failing_ingest_does_not_raise(self):
        ingest = MagicMock(side_effect=RuntimeError("engine exploded"))
        subscriber = PubSubSubscriber(MagicMock(), "fleet-events", ingest)

        assert subscriber.handle(json.dumps(EVENT)) is None
        assert subscriber.handle(json.dumps(EVENT)) is None
        assert ingest.call_count == 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        subscriber = PubSubSubscriber(MagicMock(), "fleet-events", MagicMock())
        await subscriber.stop()


@pytest.mark.asyncio
async def test_publish_event_wraps_in_envelope():
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)

    event = make_event("e1", "Speeding", 0, trip_id="trip-B", severity="high")
    assert await publish_event(client, "fleet-events", event) == 1

    channel, body = client.publish.await_args.args
    assert channel == "fleet-events"
    message = json.loads(body)
    assert message["type"] == "fleetEvent"
    assert message["data"]["id"] == "e1"
    assert message["data"]["tripId"] == "trip-B"
    assert decode_message(body)["eventType"] == "Speeding"
