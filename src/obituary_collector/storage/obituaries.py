"""Persisted obituaries: insert-if-absent, death-date lookups, gap-filling updates."""
from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from typing import Any

from ..exceptions import PersistenceError
from ..extraction.names import normalize_name_for_match
from ..models.records import NormalizedRecord, ObituaryStatus, PersistedObituary
from .database import Database, to_db, utc_now

# Columns a merge may touch. Identity columns never change after insert.
UPDATABLE_COLUMNS = frozenset({
    "funeral_home",
    "location",
    "city_normalized",
    "date_of_birth",
    "age",
    "age_approximate",
    "image_url",
    "description",
})

_INSERT_COLUMNS = (
    "name", "name_normalized", "date_of_birth", "date_of_death", "age", "age_approximate",
    "funeral_home", "location", "city_normalized", "image_url", "description",
    "source_url", "source_domain", "source_type", "provenance_hash", "status",
    "created_at", "updated_at",
)


def _row_to_obituary(row: sqlite3.Row) -> PersistedObituary:
    return PersistedObituary(**dict(row))


class ObituaryStore:
    """The four operations the pipeline needs, plus read helpers.

    Every write commits before returning, so a cancelled run never leaves a
    half-applied merge behind.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def insert_if_absent(self, record: NormalizedRecord) -> int | None:
        """Insert ``record``; ``None`` when a unique key already holds it."""
        now = to_db(utc_now())
        values = {
            **{k: to_db(v) for k, v in record.model_dump().items()},
            "name_normalized": normalize_name_for_match(record.name),
            "status": ObituaryStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        sql = f"INSERT OR IGNORE INTO obituaries ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})"
        try:
            with self.db.connect() as conn:
                cur = conn.execute(sql, [values[c] for c in _INSERT_COLUMNS])
                conn.commit()
                inserted = cur.lastrowid if cur.rowcount == 1 else None
        except sqlite3.Error as e:
            raise PersistenceError("insert", str(e)) from e
        return inserted

    def find_by_death_date(self, date_of_death: date) -> list[PersistedObituary]:
        """Live rows sharing ``date_of_death``, oldest first."""
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM obituaries WHERE date_of_death = ? AND suppressed_at IS NULL ORDER BY id",
                (to_db(date_of_death),),
            ).fetchall()
        return [_row_to_obituary(r) for r in rows]

    def find_by_name_near_date(self, name_key: str, around: date, days: int) -> list[PersistedObituary]:
        """Live rows whose name key equals or overlaps ``name_key`` within ``days`` of ``around``."""
        if not name_key:
            return []
        start = to_db(around - timedelta(days=days))
        end = to_db(around + timedelta(days=days))
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM obituaries
                WHERE suppressed_at IS NULL
                  AND date_of_death BETWEEN ? AND ?
                  AND (name_normalized = ? OR instr(name_normalized, ?) > 0 OR instr(?, name_normalized) > 0)
                ORDER BY id
                """,
                (start, end, name_key, name_key, name_key),
            ).fetchall()
        return [_row_to_obituary(r) for r in rows]

    def update_fields(self, obituary_id: int, fields: dict[str, Any]) -> None:
        """Apply ``fields`` to one row in a single transaction."""
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Refusing to update columns: {sorted(unknown)}")
        if not fields:
            return
        assignments = ", ".join(f"{col} = ?" for col in fields)
        params = [to_db(v) for v in fields.values()]
        params += [to_db(utc_now()), obituary_id]
        try:
            with self.db.connect() as conn:
                conn.execute(f"UPDATE obituaries SET {assignments}, updated_at = ? WHERE id = ?", params)
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError("update", str(e), obituary_id) from e

    def count_suppressed_by_hash(self, provenance_hash: str) -> int:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM obituaries WHERE provenance_hash = ? AND suppressed_at IS NOT NULL",
                (provenance_hash,),
            ).fetchone()
        return int(row[0])

    # External collaborators ---------------------------------------------

    def mark_published(self, obituary_id: int, description: str | None = None) -> None:
        """Rewrite step finished: flip to published, optionally replacing the description."""
        now = to_db(utc_now())
        with self.db.connect() as conn:
            if description is None:
                conn.execute(
                    "UPDATE obituaries SET status = ?, updated_at = ? WHERE id = ?",
                    (ObituaryStatus.PUBLISHED.value, now, obituary_id),
                )
            else:
                conn.execute(
                    "UPDATE obituaries SET status = ?, description = ?, updated_at = ? WHERE id = ?",
                    (ObituaryStatus.PUBLISHED.value, description, now, obituary_id),
                )
            conn.commit()

    def suppress(self, obituary_id: int, reason: str = "") -> PersistedObituary | None:
        now = to_db(utc_now())
        with self.db.connect() as conn:
            conn.execute(
                "UPDATE obituaries SET suppressed_at = ?, suppressed_reason = ?, updated_at = ? "
                "WHERE id = ? AND suppressed_at IS NULL",
                (now, reason, now, obituary_id),
            )
            conn.commit()
        return self.get(obituary_id)

    # Reads ----------------------------------------------------------------

    def get(self, obituary_id: int) -> PersistedObituary | None:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM obituaries WHERE id = ?", (obituary_id,)).fetchone()
        return _row_to_obituary(row) if row else None

    def count(self, include_suppressed: bool = True) -> int:
        sql = "SELECT COUNT(*) FROM obituaries"
        if not include_suppressed:
            sql += " WHERE suppressed_at IS NULL"
        with self.db.connect() as conn:
            return int(conn.execute(sql).fetchone()[0])

    def all(self, limit: int | None = None) -> list[PersistedObituary]:
        sql = "SELECT * FROM obituaries ORDER BY id"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        with self.db.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_obituary(r) for r in rows]
