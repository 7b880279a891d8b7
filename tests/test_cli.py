from __future__ import annotations

from datetime import date
from pathlib import Path

from typer.testing import CliRunner

from obituary_collector.cli import app
from obituary_collector.models.records import NormalizedRecord
from obituary_collector.storage import Database, ObituaryStore, SuppressionList


def _env(tmp_path: Path) -> dict[str, str]:
    return {"OBIT_DB_PATH": str(tmp_path / "cli.db")}


def test_seed_then_list_and_stats(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)

    result = runner.invoke(app, ["seed"], env=env, catch_exceptions=False)
    assert result.exit_code == 0
    assert "Seeded" in result.output

    result = runner.invoke(app, ["seed"], env=env, catch_exceptions=False)
    assert "Seeded 0 new source(s)" in result.output

    assert runner.invoke(app, ["sources"], env=env, catch_exceptions=False).exit_code == 0

    result = runner.invoke(app, ["stats"], env=env, catch_exceptions=False)
    assert result.exit_code == 0
    assert '"obituaries": 0' in result.output


def test_suppress_blocks_provenance_hash(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    db = Database(tmp_path / "cli.db")
    store = ObituaryStore(db)
    obit_id = store.insert_if_absent(
        NormalizedRecord(name="Jane Smith", date_of_death=date(2026, 1, 10), provenance_hash="abc123")
    )

    result = runner.invoke(app, ["suppress", str(obit_id), "--reason", "family request"], env=env, catch_exceptions=False)

    assert result.exit_code == 0
    assert store.get(obit_id).is_suppressed
    assert SuppressionList(db).is_blocked("abc123")


def test_suppress_unknown_id_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["suppress", "42"], env=_env(tmp_path))
    assert result.exit_code == 1


def test_test_source_unknown_domain_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["test-source", "nope.example"], env=_env(tmp_path))
    assert result.exit_code == 1
