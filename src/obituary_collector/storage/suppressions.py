"""Do-not-republish list keyed by provenance hash."""
from __future__ import annotations

from datetime import date

from .database import Database, to_db, utc_now


class SuppressionList:
    def __init__(self, db: Database) -> None:
        self.db = db

    def is_blocked(self, provenance_hash: str) -> bool:
        if not provenance_hash:
            return False
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM suppressions WHERE provenance_hash = ?", (provenance_hash,)
            ).fetchone()
        return row is not None

    def block(
        self,
        provenance_hash: str,
        *,
        name: str = "",
        date_of_death: date | None = None,
        reason: str = "",
        obituary_id: int | None = None,
    ) -> None:
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO suppressions
                    (provenance_hash, name, date_of_death, reason, obituary_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (provenance_hash, name, to_db(date_of_death), reason, obituary_id, to_db(utc_now())),
            )
            conn.commit()

    def count(self) -> int:
        with self.db.connect() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM suppressions").fetchone()[0])
