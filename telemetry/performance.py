import threading
from collections.abc import Callable
from datetime import datetime, timezone

from core.types import ModelPerformanceRecord
from store.ports import InsightStore
from telemetry.writer import BackgroundWriter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PerformanceTracker:
    """Running call statistics per model name.

    ``record`` is synchronous and holds a lock across the whole
    read-modify-write, so concurrent tasks or threads never lose an update.
    Each attempt is also forwarded to the store as one atomic upsert.
    """

    def __init__(
        self,
        store: InsightStore | None = None,
        writer: BackgroundWriter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.writer = writer
        self.clock = clock
        self._records: dict[str, ModelPerformanceRecord] = {}
        self._lock = threading.Lock()

    def record(self, model_name: str, success: bool, elapsed_ms: float) -> ModelPerformanceRecord:
        elapsed_ms = max(0.0, float(elapsed_ms))
        now = self.clock()
        with self._lock:
            old = self._records.get(model_name)
            old_count = old.request_count if old else 0
            old_avg = old.avg_response_time_ms if old else 0.0
            new_count = old_count + 1
            success_count = (old.success_count if old else 0) + (1 if success else 0)
            error_count = (old.error_count if old else 0) + (0 if success else 1)
            updated = ModelPerformanceRecord(
                model_name=model_name,
                request_count=new_count,
                success_count=success_count,
                error_count=error_count,
                avg_response_time_ms=(old_avg * old_count + elapsed_ms) / new_count,
                uptime_percentage=100.0 * success_count / new_count,
                last_used=now,
            )
            self._records[model_name] = updated

        if self.store is not None and self.writer is not None:
            store = self.store
            self.writer.submit(
                f"record_model_attempt({model_name})",
                lambda: store.record_model_attempt(model_name, success, elapsed_ms, now),
            )
        return updated

    def get(self, model_name: str) -> ModelPerformanceRecord | None:
        with self._lock:
            return self._records.get(model_name)

    def snapshot(self) -> dict[str, ModelPerformanceRecord]:
        with self._lock:
            return dict(self._records)
