# fleetdash/redis_client.py
# ------------------------------------------------------------
# Centralized Redis connection helper.
#
# Redis only carries the pub/sub push transport; the engine itself
# is purely in-memory.
# ------------------------------------------------------------

from typing import Optional

import redis.asyncio as aioredis

from .config import settings


def get_redis(url: Optional[str] = None) -> aioredis.Redis:
    """
    Returns an asyncio Redis client instance.

    - decode_responses=True ensures all values are returned as str
      (pub/sub payloads are JSON text).
    """
    return aioredis.Redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
    )
