"""Tests for the HTTP fetcher and per-source rate limiter."""
from __future__ import annotations

import httpx
import pytest

from obituary_collector.config import CollectorSettings
from obituary_collector.net import HttpFetcher, RateLimiter


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _fetcher(handler, **settings) -> HttpFetcher:
    return HttpFetcher(CollectorSettings(**settings), transport=httpx.MockTransport(handler))


class TestHttpFetcher:
    @pytest.mark.asyncio
    async def test_success_sends_identifying_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text="<html>ok</html>", headers={"content-type": "text/html"})

        async with _fetcher(handler, user_agent="TestBot/1.0") as fetcher:
            result = await fetcher.get("https://example.com/obituaries")

        assert result.ok
        assert result.status_code == 200
        assert result.content == "<html>ok</html>"
        assert seen["user-agent"] == "TestBot/1.0"
        assert seen["accept-language"] == "en-CA,en;q=0.9"

    @pytest.mark.asyncio
    async def test_non_2xx_becomes_error(self):
        async with _fetcher(lambda request: httpx.Response(503)) as fetcher:
            result = await fetcher.get("https://example.com/obituaries")
        assert not result.ok
        assert result.status_code == 503
        assert "HTTP 503" in result.error

    @pytest.mark.asyncio
    async def test_transport_error_becomes_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _fetcher(handler) as fetcher:
            result = await fetcher.get("https://example.com/obituaries")
        assert not result.ok
        assert "Request failed" in result.error

    @pytest.mark.asyncio
    async def test_timeout_becomes_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        async with _fetcher(handler) as fetcher:
            result = await fetcher.get("https://example.com/obituaries")
        assert result.error.startswith("Timeout")

    @pytest.mark.asyncio
    async def test_malformed_url_never_requested(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with _fetcher(handler) as fetcher:
            result = await fetcher.get("ftp://example.com/file")
        assert "Malformed URL" in result.error
        assert calls == []

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        async with _fetcher(handler) as fetcher:
            await fetcher.get("https://example.com/obituaries")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_retries_transport_errors_when_configured(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("flaky", request=request)
            return httpx.Response(200, text="second time lucky")

        async with _fetcher(handler, fetch_attempts=2) as fetcher:
            result = await fetcher.get("https://example.com/obituaries")
        assert result.ok
        assert len(calls) == 2


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_spaces_calls_by_min_interval(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

        await limiter.acquire()
        await limiter.acquire()
        clock.now += 0.5
        await limiter.acquire()

        assert clock.sleeps == [2.0, 1.5]

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

        await limiter.acquire()
        clock.now += 5.0
        await limiter.acquire()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_interval_never_sleeps(self):
        clock = FakeClock()
        limiter = RateLimiter(0, clock=clock, sleep=clock.sleep)
        for _ in range(3):
            await limiter.acquire()
        assert clock.sleeps == []
