from core.config import Config
from store.ports import InsightStore
from store.sqlite import SQLiteInsightStore


def create_store(config: Config) -> SQLiteInsightStore:
    """Create the default SQLite-backed store from config."""
    return SQLiteInsightStore(config.store.db_path, timeout=config.store.busy_timeout_seconds)


__all__ = ["InsightStore", "SQLiteInsightStore", "create_store"]
