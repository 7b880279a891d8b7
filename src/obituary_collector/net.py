"""HTTP access and per-source politeness.

Every outbound request goes through :class:`HttpFetcher` so the user agent,
``Accept-Language`` and timeout are uniform, and so transport failures come
back as values instead of exceptions.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from .config import CollectorSettings
from .logging import get_logger

log = get_logger(__name__)

_RETRYABLE = (httpx.TimeoutException, httpx.TransportError)


@dataclass
class FetchResult:
    """Outcome of one GET: either content or an error message."""

    url: str
    content: str = ""
    status_code: int = 0
    content_type: str = "text/html"
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RateLimiter:
    """Min-interval spacing between calls made through one limiter."""

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_call is not None and self.min_interval > 0:
                wait_for = self.min_interval - (self._clock() - self._last_call)
                if wait_for > 0:
                    await self._sleep(wait_for)
            self._last_call = self._clock()


class HttpFetcher:
    """Shared async HTTP client for adapters and the image-trust check."""

    def __init__(
        self,
        settings: CollectorSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or CollectorSettings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.http_timeout,
                follow_redirects=True,
                transport=self._transport,
                headers={
                    "User-Agent": self.settings.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": self.settings.accept_language,
                },
            )
        return self._client

    async def get(self, url: str, headers: dict[str, str] | None = None) -> FetchResult:
        """GET ``url``; non-2xx, timeouts and bad URLs become ``FetchResult.error``."""
        if not url or not url.lower().startswith(("http://", "https://")):
            return FetchResult(url=url, error=f"Malformed URL: {url!r}")

        @retry(
            reraise=True,
            stop=stop_after_attempt(self.settings.fetch_attempts),
            wait=wait_exponential_jitter(initial=0.5, max=4.0),
            retry=retry_if_exception_type(_RETRYABLE),
        )
        async def _do() -> httpx.Response:
            resp = await self.client.get(url, headers=headers)
            resp.raise_for_status()
            return resp

        try:
            resp = await _do()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            log.warning("http_status_error", url=url, status=code)
            return FetchResult(url=url, status_code=code, error=f"HTTP {code} for {url}")
        except httpx.TimeoutException:
            log.warning("http_timeout", url=url)
            return FetchResult(url=url, error=f"Timeout fetching {url}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("http_error", url=url, error=str(e))
            return FetchResult(url=url, error=f"Request failed for {url}: {e}")

        return FetchResult(
            url=url,
            content=resp.text,
            status_code=resp.status_code,
            content_type=resp.headers.get("content-type", "text/html"),
        )

    async def head(self, url: str) -> httpx.Response:
        """Header-only request; errors propagate to the caller."""
        return await self.client.head(url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False
