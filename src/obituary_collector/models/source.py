"""Source registry row model."""
from __future__ import annotations

from datetime import UTC, datetime
from urllib.parse import urlparse

from pydantic import BaseModel, Field


class Source(BaseModel):
    """One obituary source (funeral home, newspaper section, aggregator feed).

    ``domain`` is a unique slug, not necessarily a DNS host: several entries
    can share a host and differ by path (``dignitymemorial.com/aurora-on``).
    The host recorded on obituaries comes from :attr:`host`.
    """

    id: int | None = None
    domain: str
    name: str = ""
    base_url: str
    adapter_type: str = "generic_html"
    config: dict = Field(default_factory=dict, description="Adapter-specific selectors and pagination")
    city: str = Field(default="", description="City hint used when a card has no location")
    region: str = ""
    province: str = "ON"
    enabled: bool = True
    image_allowlisted: bool = False
    max_pages_per_run: int = Field(default=5, ge=1)
    min_request_interval: float = Field(default=2.0, ge=0.0)

    # Health
    consecutive_failures: int = 0
    circuit_open_until: datetime | None = None
    last_success: datetime | None = None
    last_failure: datetime | None = None
    last_failure_reason: str | None = None
    total_collected: int = 0

    @property
    def host(self) -> str:
        host = urlparse(self.base_url).netloc.lower()
        if host.startswith("www."):
            host = host[4:]
        return host.split(":", 1)[0]

    def is_circuit_open(self, now: datetime | None = None) -> bool:
        if self.circuit_open_until is None:
            return False
        now = now or datetime.now(UTC)
        until = self.circuit_open_until
        if until.tzinfo is None:
            until = until.replace(tzinfo=UTC)
        return until > now
