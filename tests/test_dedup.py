"""Tests for cross-source dedup and gap-filling merges."""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from obituary_collector.config import CollectorSettings
from obituary_collector.dedup import DedupAction, DedupEngine, PersistOutcome, merge_fields
from obituary_collector.extraction.names import provenance_hash
from obituary_collector.models.records import NormalizedRecord


def _record(**kwargs) -> NormalizedRecord:
    values = {
        "name": "Jane Smith",
        "date_of_death": date(2026, 1, 10),
        "city_normalized": "Newmarket",
        "source_domain": "obituaries.yorkregion.com",
    }
    values.update(kwargs)
    values.setdefault(
        "provenance_hash",
        provenance_hash(
            values["name"],
            values["date_of_death"].isoformat(),
            values.get("funeral_home", ""),
            values["city_normalized"],
        ),
    )
    return NormalizedRecord(**values)


@pytest.fixture()
def engine(store) -> DedupEngine:
    return DedupEngine(store, CollectorSettings())


class TestCrossSourceMerge:
    def test_second_source_fills_funeral_home(self, engine, store):
        first = engine.persist(_record(funeral_home=""))
        second = engine.persist(_record(funeral_home="Smith & Co.", source_domain="smithandco.ca"))

        assert first.outcome == PersistOutcome.INSERTED
        assert second.outcome == PersistOutcome.MERGED
        assert second.obituary_id == first.obituary_id
        assert "funeral_home" in second.filled
        assert store.count() == 1
        assert store.get(first.obituary_id).funeral_home == "Smith & Co."

    def test_populated_fields_never_overwritten(self, engine, store):
        first = engine.persist(_record(funeral_home="Smith & Co."))
        second = engine.persist(_record(funeral_home="Other Chapel", city_normalized=""))
        assert second.outcome == PersistOutcome.DUPLICATE
        row = store.get(first.obituary_id)
        assert row.funeral_home == "Smith & Co."
        assert row.city_normalized == "Newmarket"

    def test_exact_reemit_is_noop(self, engine, store):
        assert engine.persist(_record()).outcome == PersistOutcome.INSERTED
        assert engine.persist(_record()).outcome == PersistOutcome.DUPLICATE
        assert store.count() == 1

    def test_substring_name_match(self, engine, store):
        engine.persist(_record(name="Margaret Smith"))
        result = engine.persist(_record(name="Margaret Smith-Jones", image_url="https://cdn.example.com/m.jpg"))
        assert result.outcome == PersistOutcome.MERGED
        assert store.count() == 1

    def test_short_names_stay_separate(self, engine, store):
        engine.persist(_record(name="Ann Lee"))
        engine.persist(_record(name="Joann Leeson"))
        assert store.count() == 2

    def test_earliest_row_wins(self, engine, store):
        first = engine.persist(_record(name="Margaret Smith", funeral_home="A"))
        store.insert_if_absent(_record(name="Margaret Smith-Jones", funeral_home="B"))
        assert store.count() == 2
        decision = engine.resolve(_record(name="Margaret Smith-Jones", image_url="https://cdn.example.com/m.jpg"))
        assert decision.action == DedupAction.MERGE
        assert decision.existing.id == first.obituary_id


class TestMergeFields:
    def _existing(self, store, **kwargs):
        obit_id = store.insert_if_absent(_record(**kwargs))
        return store.get(obit_id)

    def test_longer_description_replaces_while_pending(self, store):
        existing = self._existing(store, description="Short.")
        updates = merge_fields(existing, _record(description="A much longer factual description."))
        assert updates == {"description": "A much longer factual description."}

    def test_published_description_kept(self, store):
        existing = self._existing(store, description="Short.")
        store.mark_published(existing.id)
        existing = store.get(existing.id)
        assert merge_fields(existing, _record(description="A much longer factual description.")) == {}

    def test_exact_age_replaces_approximate(self, store):
        existing = self._existing(store, age=100, age_approximate=True)
        updates = merge_fields(existing, _record(age=99))
        assert updates == {"age": 99, "age_approximate": False}

    def test_exact_age_kept(self, store):
        existing = self._existing(store, age=88)
        assert merge_fields(existing, _record(age=87)) == {}

    def test_birth_date_must_precede_death(self, store):
        existing = self._existing(store)
        assert merge_fields(existing, _record(date_of_birth=date(1941, 3, 3))) == {"date_of_birth": date(1941, 3, 3)}
        assert merge_fields(existing, _record(date_of_birth=date(2026, 2, 1))) == {}


class TestNameOnlyPass:
    def test_off_by_default(self, engine, store):
        engine.persist(_record())
        engine.persist(_record(date_of_death=date(2026, 1, 20), funeral_home="Smith & Co."))
        assert store.count() == 2

    def test_merges_within_window(self, store):
        engine = DedupEngine(store, CollectorSettings(name_only_dedup=True, name_only_window_days=90))
        engine.persist(_record())
        result = engine.persist(_record(date_of_death=date(2026, 1, 20), funeral_home="Smith & Co."))
        assert result.outcome == PersistOutcome.MERGED
        assert store.count() == 1
        assert store.get(result.obituary_id).date_of_death == date(2026, 1, 10)

    def test_outside_window_inserts(self, store):
        engine = DedupEngine(store, CollectorSettings(name_only_dedup=True, name_only_window_days=90))
        engine.persist(_record())
        engine.persist(_record(date_of_death=date(2026, 1, 10) + timedelta(days=200)))
        assert store.count() == 2
