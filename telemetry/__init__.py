from collections.abc import Callable
from datetime import datetime

from core.config import Config
from core.errors import PersistenceWriteError
from store.ports import InsightStore
from telemetry.insight_log import InsightLogger
from telemetry.performance import PerformanceTracker
from telemetry.writer import BackgroundWriter


def create_telemetry(
    config: Config,
    store: InsightStore | None,
    clock: Callable[[], datetime] | None = None,
    on_error: Callable[[PersistenceWriteError], None] | None = None,
) -> tuple[BackgroundWriter, PerformanceTracker, InsightLogger]:
    """Create the writer, tracker and logger sharing one background queue."""
    writer = BackgroundWriter(max_queue_size=config.telemetry.writer_queue_size, on_error=on_error)
    sink = store if config.telemetry.enabled else None
    kwargs = {"clock": clock} if clock else {}
    tracker = PerformanceTracker(store=sink, writer=writer, **kwargs)
    insight_logger = InsightLogger(store=sink, writer=writer, **kwargs)
    return writer, tracker, insight_logger
