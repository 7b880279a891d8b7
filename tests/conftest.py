from __future__ import annotations

from pathlib import Path

import pytest

from obituary_collector.config import CollectorSettings
from obituary_collector.storage import Database, ObituaryStore, SourceRegistry, SuppressionList


@pytest.fixture()
def db(tmp_path: Path) -> Database:
    return Database(tmp_path / "obits.db")


@pytest.fixture()
def store(db: Database) -> ObituaryStore:
    return ObituaryStore(db)


@pytest.fixture()
def registry(db: Database) -> SourceRegistry:
    return SourceRegistry(db)


@pytest.fixture()
def suppressions(db: Database) -> SuppressionList:
    return SuppressionList(db)


@pytest.fixture()
def settings(tmp_path: Path) -> CollectorSettings:
    return CollectorSettings(db_path=tmp_path / "obits.db")
