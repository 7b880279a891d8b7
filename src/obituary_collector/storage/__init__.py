"""SQLite-backed persistence for obituaries, sources and suppressions."""

from obituary_collector.storage.database import Database
from obituary_collector.storage.obituaries import ObituaryStore
from obituary_collector.storage.sources import SourceRegistry, load_seed_file
from obituary_collector.storage.suppressions import SuppressionList

__all__ = ["Database", "ObituaryStore", "SourceRegistry", "SuppressionList", "load_seed_file"]
