"""Cross-source dedup and merge.

A candidate either folds into an existing live row (filling that row's empty
fields) or becomes a new row. Matching, in order:

1. same death date and matching names (see :func:`names_match`); the
   earliest-inserted row wins;
2. only with ``name_only_dedup`` on: matching names whose death dates lie
   within ``name_only_window_days`` of each other. Without the window two
   different people sharing a common name would be folded together;
3. the storage unique keys, which turn an exact re-emit into a no-op.

:meth:`DedupEngine.persist` performs no awaits, so under asyncio the
resolve-then-write sequence for one candidate cannot interleave with another.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import CollectorSettings
from .extraction.names import names_match, normalize_name_for_match
from .logging import get_logger
from .models.records import NormalizedRecord, ObituaryStatus, PersistedObituary
from .storage.obituaries import ObituaryStore

log = get_logger(__name__)

GAP_FILL_FIELDS = ("funeral_home", "location", "city_normalized", "image_url")


class DedupAction(str, Enum):
    INSERT = "insert"
    MERGE = "merge"


class PersistOutcome(str, Enum):
    INSERTED = "inserted"
    MERGED = "merged"
    DUPLICATE = "duplicate"


@dataclass
class DedupDecision:
    action: DedupAction
    existing: PersistedObituary | None = None
    fields: dict[str, Any] = field(default_factory=dict)
    matched_by: str = ""


@dataclass
class PersistResult:
    outcome: PersistOutcome
    obituary_id: int | None = None
    filled: list[str] = field(default_factory=list)


def merge_fields(existing: PersistedObituary, candidate: NormalizedRecord) -> dict[str, Any]:
    """Fields of ``existing`` to fill from ``candidate``.

    Only empty fields are filled. The description is replaced only when the
    candidate's is longer and the row has not been published yet.
    """
    updates: dict[str, Any] = {}

    for name in GAP_FILL_FIELDS:
        if not getattr(existing, name) and getattr(candidate, name):
            updates[name] = getattr(candidate, name)

    if existing.date_of_birth is None and candidate.date_of_birth is not None:
        if existing.date_of_death is None or candidate.date_of_birth < existing.date_of_death:
            updates["date_of_birth"] = candidate.date_of_birth

    if existing.age == 0 and candidate.age > 0:
        updates["age"] = candidate.age
        updates["age_approximate"] = candidate.age_approximate
    elif existing.age_approximate and candidate.age > 0 and not candidate.age_approximate:
        updates["age"] = candidate.age
        updates["age_approximate"] = False

    if (
        existing.status == ObituaryStatus.PENDING
        and len(candidate.description) > len(existing.description)
    ):
        updates["description"] = candidate.description

    return updates


class DedupEngine:
    def __init__(self, store: ObituaryStore, settings: CollectorSettings | None = None) -> None:
        self.store = store
        self.settings = settings or CollectorSettings()

    def resolve(self, record: NormalizedRecord) -> DedupDecision:
        if record.date_of_death is None:
            return DedupDecision(DedupAction.INSERT)

        min_len = self.settings.min_substring_name_length
        for row in self.store.find_by_death_date(record.date_of_death):
            if names_match(row.name, record.name, min_len):
                return DedupDecision(DedupAction.MERGE, row, merge_fields(row, record), "death_date")

        window = self.settings.name_only_window_days
        if self.settings.name_only_dedup and window > 0:
            key = normalize_name_for_match(record.name)
            for row in self.store.find_by_name_near_date(key, record.date_of_death, window):
                if row.date_of_death is None:
                    continue
                if abs((row.date_of_death - record.date_of_death).days) > window:
                    continue
                if names_match(row.name, record.name, min_len):
                    return DedupDecision(DedupAction.MERGE, row, merge_fields(row, record), "name_window")

        return DedupDecision(DedupAction.INSERT)

    def persist(self, record: NormalizedRecord) -> PersistResult:
        """Resolve and write; raises :class:`PersistenceError` on storage failure."""
        decision = self.resolve(record)

        if decision.action == DedupAction.MERGE and decision.existing is not None:
            existing = decision.existing
            if not decision.fields:
                return PersistResult(PersistOutcome.DUPLICATE, existing.id)
            self.store.update_fields(existing.id, decision.fields)
            log.info(
                "record_merged",
                obituary_id=existing.id,
                name=record.name,
                source=record.source_domain,
                matched_by=decision.matched_by,
                filled=sorted(decision.fields),
            )
            return PersistResult(PersistOutcome.MERGED, existing.id, sorted(decision.fields))

        obituary_id = self.store.insert_if_absent(record)
        if obituary_id is None:
            return PersistResult(PersistOutcome.DUPLICATE)
        return PersistResult(PersistOutcome.INSERTED, obituary_id)
