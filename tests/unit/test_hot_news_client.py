"""Unit tests for the hot-list fetch executor.

HTTP is served by ``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from app.services.hot_news_client import (
    FailureKind,
    FetchEmpty,
    FetchFailure,
    FetchOk,
    HotNewsClient,
)

BASE_URL = "https://provider.test/api/v1/dailynews/"


def _payload(count: int) -> dict:
    return {
        "status": "200",
        "data": [
            {"title": f"Story {i}", "url": f"https://news.test/{i}"} for i in range(1, count + 1)
        ],
    }


def _client(handler, *, timeout: float = 5.0) -> HotNewsClient:
    return HotNewsClient(
        base_url=BASE_URL,
        user_agent="test-agent",
        timeout=timeout,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestHotNewsClient:
    """Tests for HotNewsClient.fetch()."""

    async def test_sends_platform_param_and_user_agent(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_payload(2))

        async with _client(handler) as client:
            outcome = await client.fetch("shaoshupai", 20)

        assert isinstance(outcome, FetchOk)
        assert seen[0].url.params["platform"] == "shaoshupai"
        assert seen[0].headers["User-Agent"] == "test-agent"

    async def test_truncates_to_limit_in_provider_order(self):
        async with _client(lambda r: httpx.Response(200, json=_payload(30))) as client:
            outcome = await client.fetch("weibo", 20)

        assert isinstance(outcome, FetchOk)
        assert len(outcome.items) == 20
        assert outcome.items[0].title == "Story 1"
        assert outcome.items[-1].title == "Story 20"

    async def test_empty_list_is_not_a_failure(self):
        async with _client(lambda r: httpx.Response(200, json=_payload(0))) as client:
            outcome = await client.fetch("weibo", 20)
        assert isinstance(outcome, FetchEmpty)

    async def test_http_error_status(self):
        async with _client(lambda r: httpx.Response(503)) as client:
            outcome = await client.fetch("weibo", 20)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FailureKind.HTTP_STATUS
        assert outcome.reason == "HTTP 503"

    async def test_invalid_json_is_malformed(self):
        async with _client(lambda r: httpx.Response(200, text="<html>oops</html>")) as client:
            outcome = await client.fetch("weibo", 20)

        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == "malformed data"

    async def test_wrong_envelope_status_is_malformed(self):
        body = {"status": "404", "data": []}
        async with _client(lambda r: httpx.Response(200, json=body)) as client:
            outcome = await client.fetch("weibo", 20)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FailureKind.MALFORMED

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            outcome = await client.fetch("weibo", 20)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FailureKind.TRANSPORT
        assert outcome.reason == "connection refused"

    async def test_slow_provider_times_out(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=_payload(1))

        async with _client(handler, timeout=0.05) as client:
            outcome = await client.fetch("qq", 20)

        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == "timeout"

    async def test_fetch_outside_context_manager_raises(self):
        client = _client(lambda r: httpx.Response(200, json=_payload(1)))
        with pytest.raises(RuntimeError):
            await client.fetch("weibo", 20)
