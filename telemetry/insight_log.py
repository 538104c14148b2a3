import logging
from collections.abc import Callable
from datetime import datetime, timezone

from core.types import AIInsight, InsightLogEntry
from store.ports import InsightStore
from telemetry.writer import BackgroundWriter

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InsightLogger:
    def __init__(
        self,
        store: InsightStore | None,
        writer: BackgroundWriter,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.writer = writer
        self.clock = clock

    def log(
        self,
        session_id: str | None,
        user_id: str,
        insight: AIInsight,
        model_used: str,
        processing_time_ms: float,
    ) -> InsightLogEntry:
        """Queue one append-only log row; never raises on store failure."""
        entry = InsightLogEntry(
            session_id=session_id,
            user_id=user_id,
            insight=insight,
            model_used=model_used,
            processing_time_ms=processing_time_ms,
            created_at=self.clock(),
        )
        if self.store is None:
            logger.debug("No store configured, insight from %s not persisted", model_used)
            return entry
        store = self.store
        self.writer.submit(f"append_insight({session_id})", lambda: store.append_insight(entry))
        return entry
