"""Runtime settings for the collector.

Every value can be overridden from the environment (``OBIT_*``); the CLI loads
a ``.env`` file first so local overrides do not need exporting.
"""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ObituaryCollector/1.0; +https://example.com/bot)"


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _b(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _list(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


class CollectorSettings(BaseModel):
    """Tunables for one collection run."""

    db_path: Path = Field(default=Path("./data/obituaries.db"))
    max_age_days: int = Field(default=7, ge=1)

    # Circuit breaker
    failure_threshold: int = Field(default=10, ge=1)
    circuit_cooldown_hours: float = Field(default=24.0, gt=0)

    # Run shape
    run_budget_seconds: float = Field(default=0.0, ge=0, description="0 disables the budget")
    listing_only: bool = Field(default=False, description="Skip detail-page fetches")
    max_concurrent_sources: int = Field(default=1, ge=1)
    banned_sources: list[str] = Field(default_factory=list)

    # Dedup policy
    name_only_dedup: bool = False
    name_only_window_days: int = Field(default=90, ge=0)
    min_substring_name_length: int = Field(default=8, ge=1)

    # Extraction / validation
    description_max_length: int = Field(default=200, ge=20)
    portrait_min_bytes: int = Field(default=15360, ge=0)
    earliest_death_year: int = 2000

    # HTTP
    http_timeout: float = Field(default=30.0, gt=0)
    fetch_attempts: int = Field(default=1, ge=1, description="1 means no retry inside a run")
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "en-CA,en;q=0.9"

    @classmethod
    def from_env(cls, **overrides) -> CollectorSettings:
        values = {
            "db_path": Path(os.getenv("OBIT_DB_PATH", "./data/obituaries.db")),
            "max_age_days": _i("OBIT_MAX_AGE_DAYS", 7),
            "failure_threshold": _i("OBIT_FAILURE_THRESHOLD", 10),
            "circuit_cooldown_hours": _f("OBIT_CIRCUIT_COOLDOWN_HOURS", 24.0),
            "run_budget_seconds": _f("OBIT_RUN_BUDGET_SECONDS", 0.0),
            "listing_only": _b("OBIT_LISTING_ONLY", False),
            "max_concurrent_sources": _i("OBIT_MAX_CONCURRENT_SOURCES", 1),
            "banned_sources": _list("OBIT_BANNED_SOURCES"),
            "name_only_dedup": _b("OBIT_NAME_ONLY_DEDUP", False),
            "name_only_window_days": _i("OBIT_NAME_ONLY_WINDOW_DAYS", 90),
            "min_substring_name_length": _i("OBIT_MIN_SUBSTRING_NAME_LENGTH", 8),
            "description_max_length": _i("OBIT_DESCRIPTION_MAX_LENGTH", 200),
            "portrait_min_bytes": _i("OBIT_PORTRAIT_MIN_BYTES", 15360),
            "earliest_death_year": _i("OBIT_EARLIEST_DEATH_YEAR", 2000),
            "http_timeout": _f("OBIT_HTTP_TIMEOUT", 30.0),
            "fetch_attempts": _i("OBIT_FETCH_ATTEMPTS", 1),
            "user_agent": os.getenv("OBIT_USER_AGENT", DEFAULT_USER_AGENT),
            "accept_language": os.getenv("OBIT_ACCEPT_LANGUAGE", "en-CA,en;q=0.9"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
