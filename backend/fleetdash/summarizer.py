# fleetdash/summarizer.py
# ------------------------------------------------------------
# Alert summarizer client.
#
# Called on demand (never per tick) with the alert log as a JSON
# string. Remote calls go to an OpenAI-compatible chat endpoint:
# - results cached per input for a short TTL
# - remote calls serialized, with a minimum gap between them
# - HTTP 429 retried with exponential backoff
# - any other failure, or no API key, falls back to a local summary
# ------------------------------------------------------------

from __future__ import annotations

import asyncio
import json
import time
from collections import Counter
from typing import Dict, Optional, Tuple

import httpx

from .config import Settings, settings as default_settings
from .logger import get_logger
from .models import SEVERITIES

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a fleet management assistant. Analyze fleet tracking events, "
    "aggregate and summarize alerts by severity and frequency, and provide "
    "actionable insights for a fleet manager."
)


class SummarizerError(Exception):
    """Remote summarizer failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def local_summary(events_json: str) -> str:
    """
    Deterministic summary by event type and severity.
    """
    try:
        events = json.loads(events_json)
    except ValueError:
        logger.warning("summary_parse_failed")
        return "Unable to parse events for summarization."
    if not isinstance(events, list):
        return "Unable to parse events for summarization."
    if not events:
        return "No alerts detected."

    by_type: Counter = Counter()
    by_severity: Dict[str, int] = {s: 0 for s in SEVERITIES}
    by_severity["unknown"] = 0

    for event in events:
        event = event if isinstance(event, dict) else {}
        by_type[event.get("eventType") or "unknown"] += 1
        data = event.get("data") if isinstance(event.get("data"), dict) else {}
        sev = str(data.get("severity") or event.get("severity") or "unknown").lower()
        by_severity[sev if sev in SEVERITIES else "unknown"] += 1

    top_types = ", ".join(f"{k}: {v}" for k, v in by_type.most_common(5))
    severities = ", ".join(f"{k}: {v}" for k, v in by_severity.items() if v > 0)

    return (
        f"Fleet Alert Summary: {len(events)} total events. Top issues: {top_types}. "
        f"Severity breakdown: {severities}. Action: Review high-severity items immediately."
    )


class AlertSummarizer:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._cache: Dict[str, Tuple[float, Dict[str, str]]] = {}
        self._lock = asyncio.Lock()
        self._last_request = 0.0

    # --------------------------------------------------------
    # Cache
    # --------------------------------------------------------
    def _cached(self, key: str) -> Optional[Dict[str, str]]:
        hit = self._cache.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if expires_at < time.monotonic():
            del self._cache[key]
            return None
        return value

    def _store(self, key: str, value: Dict[str, str]) -> None:
        now = time.monotonic()
        # drop expired entries so the cache cannot grow without bound
        self._cache = {k: v for k, v in self._cache.items() if v[0] >= now}
        self._cache[key] = (now + self.settings.summarizer_cache_ttl_sec, value)

    # --------------------------------------------------------
    # Remote call
    # --------------------------------------------------------
    async def _call_remote(self, events_json: str) -> str:
        cfg = self.settings
        body = {
            "model": cfg.summarizer_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Events: {events_json}\n\nSummary:"},
            ],
            "stream": False,
            "temperature": 0.3,
            "max_tokens": 500,
        }
        headers = {"Authorization": f"Bearer {cfg.summarizer_api_key}"}

        try:
            async with httpx.AsyncClient(timeout=cfg.summarizer_timeout_sec) as client:
                response = await client.post(cfg.summarizer_api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise SummarizerError(f"summarizer request failed: {exc}") from exc

        if response.status_code != 200:
            raise SummarizerError(
                f"summarizer error: {response.status_code} {response.text[:200]}",
                status=response.status_code,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise SummarizerError("malformed summarizer response") from exc
        if not content.strip():
            raise SummarizerError("empty summarizer response")
        return content.strip()

    async def _call_with_retry(self, events_json: str) -> str:
        attempts = max(1, self.settings.summarizer_max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await self._call_remote(events_json)
            except SummarizerError as exc:
                if exc.status == 429 and attempt < attempts:
                    backoff = min(2 ** attempt, 30)
                    logger.warning("summarizer_rate_limited", attempt=attempt, backoff_sec=backoff)
                    await asyncio.sleep(backoff)
                    continue
                logger.warning("summarizer_fallback", attempt=attempt, error=str(exc))
                break
        return local_summary(events_json)

    async def _throttled(self, events_json: str) -> str:
        async with self._lock:
            wait = self.settings.summarizer_min_interval_sec - (time.monotonic() - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            try:
                return await self._call_with_retry(events_json)
            finally:
                self._last_request = time.monotonic()

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------
    async def summarize(self, events_json: str) -> Dict[str, str]:
        cached = self._cached(events_json)
        if cached is not None:
            logger.debug("summary_cache_hit")
            return cached

        if not self.settings.summarizer_api_key:
            result = {"summary": local_summary(events_json)}
        else:
            result = {"summary": await self._throttled(events_json)}

        self._store(events_json, result)
        return result
