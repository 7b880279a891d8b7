from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from obituary_collector.config import CollectorSettings


def test_defaults():
    settings = CollectorSettings()
    assert settings.max_age_days == 7
    assert settings.failure_threshold == 10
    assert settings.circuit_cooldown_hours == 24.0
    assert settings.portrait_min_bytes == 15360
    assert settings.earliest_death_year == 2000
    assert settings.fetch_attempts == 1
    assert not settings.listing_only
    assert not settings.name_only_dedup


def test_from_env(monkeypatch):
    monkeypatch.setenv("OBIT_DB_PATH", "/tmp/obits-test.db")
    monkeypatch.setenv("OBIT_MAX_AGE_DAYS", "3")
    monkeypatch.setenv("OBIT_LISTING_ONLY", "yes")
    monkeypatch.setenv("OBIT_BANNED_SOURCES", "badsite.com, *spam* ,")
    settings = CollectorSettings.from_env()
    assert settings.db_path == Path("/tmp/obits-test.db")
    assert settings.max_age_days == 3
    assert settings.listing_only
    assert settings.banned_sources == ["badsite.com", "*spam*"]


def test_unparsable_env_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("OBIT_FAILURE_THRESHOLD", "lots")
    assert CollectorSettings.from_env().failure_threshold == 10


def test_overrides_win_and_none_is_ignored(monkeypatch):
    monkeypatch.setenv("OBIT_RUN_BUDGET_SECONDS", "30")
    settings = CollectorSettings.from_env(run_budget_seconds=None, listing_only=True)
    assert settings.run_budget_seconds == 30.0
    assert settings.listing_only


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        CollectorSettings(max_concurrent_sources=0)
