"""Source registry: configuration rows plus per-source health and circuit breaker."""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import SourceNotFoundError
from ..logging import get_logger
from ..models.source import Source
from .database import Database, to_db, utc_now

log = get_logger(__name__)

# Columns an operator or seed file may set. Health columns are written only
# by record_success / record_failure.
CONFIG_COLUMNS = (
    "name",
    "base_url",
    "adapter_type",
    "config",
    "city",
    "region",
    "province",
    "enabled",
    "image_allowlisted",
    "max_pages_per_run",
    "min_request_interval",
)


def _row_to_source(row: sqlite3.Row) -> Source:
    data = dict(row)
    data["config"] = json.loads(data.get("config") or "{}")
    data.pop("created_at", None)
    data.pop("updated_at", None)
    return Source(**data)


def load_seed_file(path: str | Path | None = None) -> list[dict[str, Any]]:
    """Read a YAML list of source definitions (the packaged list by default)."""
    if path is None:
        text = resources.files("obituary_collector").joinpath("default_sources.yaml").read_text()
    else:
        text = Path(path).read_text()
    data = yaml.safe_load(text) or {}
    return list(data.get("sources", []) if isinstance(data, dict) else data)


class SourceRegistry:
    def __init__(self, db: Database) -> None:
        self.db = db

    # Config ---------------------------------------------------------------

    def upsert_source(self, data: dict[str, Any] | Source) -> int:
        """Insert or update a source by domain; returns its id."""
        if isinstance(data, Source):
            data = data.model_dump()
        if not data.get("domain") or not data.get("base_url"):
            raise ValueError("A source needs both 'domain' and 'base_url'")

        values = {k: data[k] for k in CONFIG_COLUMNS if k in data}
        if "config" in values:
            values["config"] = json.dumps(values["config"] or {})
        values = {k: to_db(v) for k, v in values.items()}
        now = to_db(utc_now())

        cols = ["domain", *values, "created_at", "updated_at"]
        params = [data["domain"], *values.values(), now, now]
        updates = ", ".join(f"{c} = excluded.{c}" for c in values)
        sql = (
            f"INSERT INTO sources ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)}) "
            f"ON CONFLICT(domain) DO UPDATE SET {updates}, updated_at = excluded.updated_at"
        )
        with self.db.connect() as conn:
            conn.execute(sql, params)
            conn.commit()
            row = conn.execute("SELECT id FROM sources WHERE domain = ?", (data["domain"],)).fetchone()
        return int(row["id"])

    def set_enabled(self, source_id: int, enabled: bool) -> None:
        with self.db.connect() as conn:
            conn.execute(
                "UPDATE sources SET enabled = ?, updated_at = ? WHERE id = ?",
                (int(enabled), to_db(utc_now()), source_id),
            )
            conn.commit()

    def seed_defaults(self, path: str | Path | None = None) -> int:
        """Insert seed sources that are not registered yet; existing rows are left alone."""
        added = 0
        for entry in load_seed_file(path):
            if self.get_source_by_domain(entry["domain"]) is None:
                self.upsert_source(entry)
                added += 1
        log.info("sources_seeded", added=added)
        return added

    # Reads ----------------------------------------------------------------

    def get_source(self, source_id: int) -> Source:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM sources WHERE id = ?", (source_id,)).fetchone()
        if row is None:
            raise SourceNotFoundError(f"No source with id {source_id}")
        return _row_to_source(row)

    def get_source_by_domain(self, domain: str) -> Source | None:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM sources WHERE domain = ?", (domain,)).fetchone()
        return _row_to_source(row) if row else None

    def list_sources(self) -> list[Source]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT * FROM sources ORDER BY domain").fetchall()
        return [_row_to_source(r) for r in rows]

    def get_active_sources(self, now: datetime | None = None) -> list[Source]:
        """Enabled sources with a closed circuit, least recently successful first."""
        return self.get_sources_by_location(now=now)

    def get_sources_by_location(
        self,
        region: str | None = None,
        city: str | None = None,
        now: datetime | None = None,
    ) -> list[Source]:
        sql = (
            "SELECT * FROM sources WHERE enabled = 1 "
            "AND (circuit_open_until IS NULL OR circuit_open_until <= ?)"
        )
        params: list[Any] = [to_db(now or utc_now())]
        if region:
            sql += " AND region = ?"
            params.append(region)
        if city:
            sql += " AND city = ?"
            params.append(city)
        sql += " ORDER BY last_success ASC, id ASC"
        with self.db.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_source(r) for r in rows]

    # Health ---------------------------------------------------------------

    def record_success(self, source_id: int, collected: int = 0, now: datetime | None = None) -> None:
        """Clear the failure streak and close the circuit."""
        with self.db.connect() as conn:
            conn.execute(
                """
                UPDATE sources
                SET consecutive_failures = 0,
                    circuit_open_until = NULL,
                    last_success = ?,
                    total_collected = total_collected + ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (to_db(now or utc_now()), collected, to_db(utc_now()), source_id),
            )
            conn.commit()

    def record_failure(
        self,
        source_id: int,
        reason: str,
        threshold: int = 10,
        cooldown_hours: float = 24.0,
        now: datetime | None = None,
    ) -> bool:
        """Extend the failure streak; opens the circuit at ``threshold``.

        Returns True when this failure opened the circuit.
        """
        now = now or utc_now()
        with self.db.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                """
                UPDATE sources
                SET consecutive_failures = consecutive_failures + 1,
                    last_failure = ?,
                    last_failure_reason = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (to_db(now), reason[:500], to_db(now), source_id),
            )
            row = conn.execute(
                "SELECT domain, consecutive_failures FROM sources WHERE id = ?", (source_id,)
            ).fetchone()
            opened = row is not None and row["consecutive_failures"] >= threshold
            if opened:
                until = now + timedelta(hours=cooldown_hours)
                conn.execute(
                    "UPDATE sources SET circuit_open_until = ? WHERE id = ?",
                    (to_db(until), source_id),
                )
            conn.commit()

        if opened:
            log.warning(
                "circuit_opened",
                domain=row["domain"],
                failures=row["consecutive_failures"],
                cooldown_hours=cooldown_hours,
            )
        return opened

    def get_stats(self, now: datetime | None = None) -> dict[str, int]:
        now_db = to_db(now or utc_now())
        with self.db.connect() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(enabled = 1), 0) AS enabled,
                       COALESCE(SUM(enabled = 0), 0) AS disabled,
                       COALESCE(SUM(circuit_open_until IS NOT NULL AND circuit_open_until > ?), 0) AS circuit_open
                FROM sources
                """,
                (now_db,),
            ).fetchone()
        return {k: int(row[k]) for k in ("total", "enabled", "disabled", "circuit_open")}
