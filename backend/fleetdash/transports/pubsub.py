# fleetdash/transports/pubsub.py
# ------------------------------------------------------------
# Redis pub/sub push transport.
#
# Producers publish on the fleet channel either an envelope
#   {"type": "fleetEvent", "data": {...event...}}
# or a bare event object (canonical or raw source vocabulary).
# The subscriber decodes each message and hands it to the engine;
# the engine's gateway takes care of duplicates and bad payloads.
#
# Connection loss -> reconnect with exponential backoff (1s .. 30s).
# Redelivered messages after a reconnect are harmless (idempotent).
# ------------------------------------------------------------

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, Optional, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..logger import get_logger
from ..models import FleetEvent
from ..reducer import IngestOutcome

logger = get_logger(__name__)

MESSAGE_TYPE = "fleetEvent"
MAX_BACKOFF_SEC = 30.0

IngestFn = Callable[[Dict[str, Any]], IngestOutcome]


def decode_message(raw: Union[str, bytes, None]) -> Optional[Dict[str, Any]]:
    """
    Extract the event payload from a pub/sub message body.

    Returns None for non-JSON bodies and for envelopes of other types
    (control messages etc. are not events).
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", "ignore")
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    if "type" in payload and "data" in payload:
        if payload["type"] != MESSAGE_TYPE or not isinstance(payload["data"], dict):
            return None
        return payload["data"]
    return payload


async def publish_event(
    client: aioredis.Redis,
    channel: str,
    event: Union[FleetEvent, Dict[str, Any]],
) -> int:
    """
    Publish one event wrapped in the fleetEvent envelope.
    Returns the number of subscribers that received it.
    """
    data = event.to_wire() if isinstance(event, FleetEvent) else event
    return await client.publish(channel, json.dumps({"type": MESSAGE_TYPE, "data": data}))


class PubSubSubscriber:
    """
    Long-running subscriber task. start()/stop() are idempotent.
    """

    def __init__(
        self,
        client_factory: Callable[[], aioredis.Redis],
        channel: str,
        ingest: IngestFn,
    ):
        self._client_factory = client_factory
        self._channel = channel
        self._ingest = ingest
        self._task: Optional[asyncio.Task] = None
        self.received = 0

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def handle(self, raw: Union[str, bytes, None]) -> Optional[IngestOutcome]:
        payload = decode_message(raw)
        if payload is None:
            logger.debug("pubsub_message_ignored", channel=self._channel)
            return None
        self.received += 1
        try:
            return self._ingest(payload)
        except Exception:
            # one bad message must not end the subscription
            logger.exception("pubsub_message_failed", channel=self._channel)
            return None

    async def _run(self) -> None:
        attempt = 0
        while True:
            client = self._client_factory()
            try:
                async with client.pubsub() as pubsub:
                    await pubsub.subscribe(self._channel)
                    logger.info("pubsub_subscribed", channel=self._channel)
                    attempt = 0
                    async for message in pubsub.listen():
                        if message.get("type") == "message":
                            self.handle(message.get("data"))
            except (RedisError, OSError) as exc:
                attempt += 1
                delay = min(2.0 ** attempt, MAX_BACKOFF_SEC)
                logger.warning("pubsub_disconnected", error=str(exc), retry_in_sec=delay)
                await asyncio.sleep(delay)
            finally:
                await client.aclose()
