"""Per-source and per-run outcome summaries."""
from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class SourceResult(BaseModel):
    domain: str
    name: str = ""
    found: int = 0
    added: int = 0
    merged: int = 0
    rejected: int = 0
    suppressed: int = 0
    pages: int = 0
    pages_failed: int = 0
    zero_card_pages: int = 0
    errors: list[str] = Field(default_factory=list)


class RunSummary(BaseModel):
    """What one ``collect()`` call did, for logs and the CLI."""

    obituaries_found: int = 0
    obituaries_added: int = 0
    obituaries_merged: int = 0
    sources_processed: int = 0
    sources_skipped: int = 0
    sources_deferred: int = 0
    errors: dict[str, str] = Field(default_factory=dict, description="domain -> message")
    per_source: list[SourceResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def add(self, result: SourceResult) -> None:
        self.per_source.append(result)
        self.sources_processed += 1
        self.obituaries_found += result.found
        self.obituaries_added += result.added
        self.obituaries_merged += result.merged
