"""Portrait heuristics: placeholder filenames and the HEAD size check."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from ..logging import get_logger

if TYPE_CHECKING:
    from ..net import HttpFetcher

log = get_logger(__name__)

_PLACEHOLDER_RE = re.compile(
    r"(placeholder|default|generic|no-?photo|no-?image|avatar|logo|spacer|1x1|blank)", re.IGNORECASE
)

DEFAULT_MIN_PORTRAIT_BYTES = 15360


def is_placeholder_image_url(url: str | None) -> bool:
    if not url:
        return True
    if url.startswith("data:"):
        return True
    return bool(_PLACEHOLDER_RE.search(url))


@dataclass(frozen=True)
class PortraitCheck:
    accepted: bool
    reason: str
    content_length: int | None = None


async def check_portrait(
    fetcher: HttpFetcher,
    url: str,
    min_bytes: int = DEFAULT_MIN_PORTRAIT_BYTES,
) -> PortraitCheck:
    """HEAD the image and decide whether it is a real photo.

    Errors and non-2xx reject; a missing or unparsable Content-Length accepts
    because the size cannot be determined; anything under ``min_bytes`` is
    treated as a logo or icon.
    """
    if is_placeholder_image_url(url):
        return PortraitCheck(False, "placeholder")

    try:
        resp = await fetcher.head(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log.info("portrait_check_error", url=url, error=str(e))
        return PortraitCheck(False, "error")

    if not 200 <= resp.status_code < 300:
        return PortraitCheck(False, f"http_{resp.status_code}")

    content_type = resp.headers.get("content-type", "")
    if content_type and not content_type.lower().startswith("image/"):
        return PortraitCheck(False, "not_image")

    raw_length = resp.headers.get("content-length")
    try:
        length = int(raw_length) if raw_length is not None else None
    except ValueError:
        length = None
    if length is None or length < 0:
        return PortraitCheck(True, "size_unknown")

    if length < min_bytes:
        return PortraitCheck(False, "too_small", length)
    return PortraitCheck(True, "ok", length)
