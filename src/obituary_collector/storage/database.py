"""SQLite connection handling and schema for the collector's tables."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS obituaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    name_normalized TEXT NOT NULL,
    date_of_birth TEXT,
    date_of_death TEXT NOT NULL,
    age INTEGER NOT NULL DEFAULT 0,
    age_approximate INTEGER NOT NULL DEFAULT 0,
    funeral_home TEXT NOT NULL DEFAULT '',
    location TEXT NOT NULL DEFAULT '',
    city_normalized TEXT NOT NULL DEFAULT '',
    image_url TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    source_url TEXT NOT NULL DEFAULT '',
    source_domain TEXT NOT NULL DEFAULT '',
    source_type TEXT NOT NULL DEFAULT '',
    provenance_hash TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'pending',
    suppressed_at TEXT,
    suppressed_reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (name, date_of_death, funeral_home)
);

-- One live row per (person, death date); suppressed rows are exempt
CREATE UNIQUE INDEX IF NOT EXISTS uq_obituaries_person_death
    ON obituaries(name_normalized, date_of_death) WHERE suppressed_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_obituaries_death ON obituaries(date_of_death);
CREATE INDEX IF NOT EXISTS idx_obituaries_provenance ON obituaries(provenance_hash);
CREATE INDEX IF NOT EXISTS idx_obituaries_status ON obituaries(status);

CREATE TABLE IF NOT EXISTS sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    base_url TEXT NOT NULL,
    adapter_type TEXT NOT NULL DEFAULT 'generic_html',
    config TEXT NOT NULL DEFAULT '{}',
    city TEXT NOT NULL DEFAULT '',
    region TEXT NOT NULL DEFAULT '',
    province TEXT NOT NULL DEFAULT 'ON',
    enabled INTEGER NOT NULL DEFAULT 1,
    image_allowlisted INTEGER NOT NULL DEFAULT 0,
    max_pages_per_run INTEGER NOT NULL DEFAULT 5,
    min_request_interval REAL NOT NULL DEFAULT 2.0,
    consecutive_failures INTEGER NOT NULL DEFAULT 0,
    circuit_open_until TEXT,
    last_success TEXT,
    last_failure TEXT,
    last_failure_reason TEXT,
    total_collected INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sources_active ON sources(enabled, circuit_open_until);
CREATE INDEX IF NOT EXISTS idx_sources_region ON sources(region, city);

-- Do-not-republish list; outlives the obituary row it came from
CREATE TABLE IF NOT EXISTS suppressions (
    provenance_hash TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    date_of_death TEXT,
    reason TEXT NOT NULL DEFAULT '',
    obituary_id INTEGER,
    created_at TEXT NOT NULL
);
"""


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_db(value):
    """Python value -> SQLite column value (ISO text for dates, ints for bools)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class Database:
    """Owns the database file and hands out short-lived connections."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
