"""Card, normalized record and persisted obituary models."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


@dataclass
class DetailEnrichment:
    """Extra data pulled from an obituary's own page."""

    description: str = ""
    image_url: str = ""
    funeral_home: str = ""
    location: str = ""
    published_date: str = ""
    full_text: str = ""


@dataclass
class Card:
    """One listing-page entry before normalization.

    Lives only for the duration of a collection pass. ``published_date`` is
    kept for diagnostics and never becomes a death date.
    """

    name: str = ""
    date_text: str = ""
    location: str = ""
    funeral_home: str = ""
    detail_url: str = ""
    description: str = ""
    image_url: str = ""
    published_date: str = ""
    year_birth: str = ""
    year_death: str = ""
    full_text: str = ""
    age: int = 0

    def enrich(self, enrichment: DetailEnrichment | None) -> Card:
        """Return a copy with the non-empty enrichment fields applied."""
        if enrichment is None:
            return self
        updates = {
            f.name: getattr(enrichment, f.name)
            for f in fields(enrichment)
            if getattr(enrichment, f.name)
        }
        return replace(self, **updates)


class ObituaryStatus(str, Enum):
    PENDING = "pending"
    PUBLISHED = "published"


class NormalizedRecord(BaseModel):
    """Canonical candidate produced by an adapter's ``normalize``."""

    name: str = ""
    date_of_birth: date | None = None
    date_of_death: date | None = None
    age: int = Field(default=0, ge=0, description="0 means unknown")
    age_approximate: bool = Field(default=False, description="Age derived from years only")
    funeral_home: str = ""
    location: str = ""
    city_normalized: str = ""
    image_url: str = ""
    description: str = ""
    source_url: str = ""
    source_domain: str = ""
    source_type: str = ""
    provenance_hash: str = ""


class PersistedObituary(NormalizedRecord):
    """A stored obituary row."""

    id: int
    status: ObituaryStatus = ObituaryStatus.PENDING
    suppressed_at: datetime | None = None
    suppressed_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_suppressed(self) -> bool:
        return self.suppressed_at is not None
