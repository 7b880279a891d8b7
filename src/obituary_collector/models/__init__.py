"""Data models for sources, cards, records and run summaries."""

from obituary_collector.models.records import (
    Card,
    DetailEnrichment,
    NormalizedRecord,
    ObituaryStatus,
    PersistedObituary,
)
from obituary_collector.models.run import RunSummary, SourceResult
from obituary_collector.models.source import Source

__all__ = [
    "Card",
    "DetailEnrichment",
    "NormalizedRecord",
    "ObituaryStatus",
    "PersistedObituary",
    "RunSummary",
    "Source",
    "SourceResult",
]
