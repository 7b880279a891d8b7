"""Tests for the portrait heuristic (HEAD size check)."""
from __future__ import annotations

import httpx
import pytest

from obituary_collector.extraction.images import check_portrait, is_placeholder_image_url
from obituary_collector.net import HttpFetcher


def _fetcher_returning(response: httpx.Response | None = None, error: Exception | None = None) -> HttpFetcher:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        if error is not None:
            raise error
        return response

    return HttpFetcher(transport=httpx.MockTransport(handler))


def _image(length: str | None, content_type: str = "image/jpeg", status: int = 200) -> httpx.Response:
    headers = {"content-type": content_type}
    if length is not None:
        headers["content-length"] = length
    return httpx.Response(status, headers=headers)


class TestPlaceholderFilter:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.com/images/placeholder.jpg",
            "https://cdn.example.com/no-photo.png",
            "https://cdn.example.com/site-logo.svg",
            "data:image/gif;base64,R0lGOD",
            "",
        ],
    )
    def test_placeholders(self, url):
        assert is_placeholder_image_url(url)

    def test_real_photo(self):
        assert not is_placeholder_image_url("https://cdn.example.com/obits/jane-smith-2026.jpg")


class TestCheckPortrait:
    URL = "https://cdn.example.com/obits/jane-smith.jpg"

    @pytest.mark.asyncio
    async def test_small_image_rejected(self):
        fetcher = _fetcher_returning(_image("8000"))
        check = await check_portrait(fetcher, self.URL, min_bytes=15360)
        assert not check.accepted
        assert check.reason == "too_small"
        assert check.content_length == 8000

    @pytest.mark.asyncio
    async def test_large_image_accepted(self):
        fetcher = _fetcher_returning(_image("40000"))
        check = await check_portrait(fetcher, self.URL, min_bytes=15360)
        assert check.accepted
        assert check.content_length == 40000

    @pytest.mark.asyncio
    async def test_missing_length_accepted(self):
        check = await check_portrait(_fetcher_returning(_image(None)), self.URL)
        assert check.accepted
        assert check.reason == "size_unknown"

    @pytest.mark.asyncio
    async def test_invalid_length_accepted(self):
        check = await check_portrait(_fetcher_returning(_image("lots")), self.URL)
        assert check.accepted

    @pytest.mark.asyncio
    async def test_non_2xx_rejected(self):
        check = await check_portrait(_fetcher_returning(_image("40000", status=404)), self.URL)
        assert not check.accepted
        assert check.reason == "http_404"

    @pytest.mark.asyncio
    async def test_non_image_rejected(self):
        check = await check_portrait(_fetcher_returning(_image("40000", content_type="text/html")), self.URL)
        assert not check.accepted
        assert check.reason == "not_image"

    @pytest.mark.asyncio
    async def test_request_error_rejected(self):
        fetcher = _fetcher_returning(error=httpx.ConnectError("refused"))
        check = await check_portrait(fetcher, self.URL)
        assert not check.accepted
        assert check.reason == "error"

    @pytest.mark.asyncio
    async def test_unparsable_url_rejected(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unparsable URL should not reach the transport")

        fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
        check = await check_portrait(fetcher, "https://cdn.example.com/port\x07rait.jpg")
        assert not check.accepted
        assert check.reason == "error"

    @pytest.mark.asyncio
    async def test_placeholder_not_requested(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("placeholder should not be fetched")

        fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
        check = await check_portrait(fetcher, "https://cdn.example.com/placeholder.jpg")
        assert check.reason == "placeholder"
