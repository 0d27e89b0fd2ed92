"""
Tests for the alert summarizer (local fallback, cache, retries).
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from fleetdash import summarizer as summarizer_module
from fleetdash.summarizer import AlertSummarizer, local_summary

EVENTS = json.dumps([
    {"id": "1", "eventType": "Speeding", "data": {"severity": "high"}},
    {"id": "2", "eventType": "Speeding", "data": {"severity": "medium"}},
    {"id": "3", "eventType": "DeviceOffline", "data": {}},
])


def _completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


@pytest.fixture
def remote_settings(test_settings):
    return test_settings.model_copy(update={
        "summarizer_api_key": "test-key",
        "summarizer_api_url": "http://llm.test/v1/chat/completions",
        "summarizer_min_interval_sec": 0,
    })


def _mock_remote(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(summarizer_module.httpx, "AsyncClient", factory)


class TestLocalSummary:
    def test_counts_types_and_severities(self):
        text = local_summary(EVENTS)
        assert text.startswith("Fleet Alert Summary: 3 total events.")
        assert "Speeding: 2" in text
        assert "DeviceOffline: 1" in text
        assert "high: 1" in text
        assert "unknown: 1" in text

    def test_empty(self):
        assert local_summary("[]") == "No alerts detected."

    def test_unparseable(self):
        assert local_summary("{oops") == "Unable to parse events for summarization."
        assert local_summary('{"a": 1}') == "Unable to parse events for summarization."


class TestAlertSummarizer:
    @pytest.mark.asyncio
    async def test_without_api_key_uses_local_summary(self, test_settings):
        result = await AlertSummarizer(test_settings).summarize(EVENTS)
        assert result == {"summary": local_summary(EVENTS)}

    @pytest.mark.asyncio
    async def test_remote_summary(self, monkeypatch, remote_settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=_completion("  Two speeding alerts.  "))

        _mock_remote(monkeypatch, handler)
        result = await AlertSummarizer(remote_settings).summarize(EVENTS)

        assert result == {"summary": "Two speeding alerts."}
        assert seen[0].headers["Authorization"] == "Bearer test-key"
        body = json.loads(seen[0].content)
        assert body["model"] == remote_settings.summarizer_model
        assert EVENTS in body["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_results_are_cached(self, monkeypatch, remote_settings):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json=_completion("cached"))

        _mock_remote(monkeypatch, handler)
        summarizer = AlertSummarizer(remote_settings)
        await summarizer.summarize(EVENTS)
        await summarizer.summarize(EVENTS)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried_with_backoff(self, monkeypatch, remote_settings):
        responses = [
            httpx.Response(429, text="slow down"),
            httpx.Response(200, json=_completion("after retry")),
        ]
        _mock_remote(monkeypatch, lambda request: responses.pop(0))

        with patch.object(summarizer_module.asyncio, "sleep", new=AsyncMock()) as sleep:
            result = await AlertSummarizer(remote_settings).summarize(EVENTS)

        assert result == {"summary": "after retry"}
        sleep.assert_awaited_with(2)

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted_falls_back(self, monkeypatch, remote_settings):
        _mock_remote(monkeypatch, lambda request: httpx.Response(429))

        with patch.object(summarizer_module.asyncio, "sleep", new=AsyncMock()) as sleep:
            result = await AlertSummarizer(remote_settings).summarize(EVENTS)

        assert result == {"summary": local_summary(EVENTS)}
        assert [c.args[0] for c in sleep.await_args_list] == [2, 4]

    @pytest.mark.asyncio
    async def test_server_error_falls_back_without_retry(self, monkeypatch, remote_settings):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(500, text="down")

        _mock_remote(monkeypatch, handler)
        result = await AlertSummarizer(remote_settings).summarize(EVENTS)
        assert result == {"summary": local_summary(EVENTS)}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_response_falls_back(self, monkeypatch, remote_settings):
        _mock_remote(monkeypatch, lambda request: httpx.Response(200, json={"choices": []}))
        result = await AlertSummarizer(remote_settings).summarize(EVENTS)
        assert result == {"summary": local_summary(EVENTS)}
