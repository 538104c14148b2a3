import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from core.errors import PersistenceWriteError

logger = logging.getLogger(__name__)

WriteFactory = Callable[[], Coroutine[Any, Any, None]]


class BackgroundWriter:
    """Single consumer task that drains queued persistence writes.

    Callers enqueue without awaiting, so a slow or failing store never adds
    latency to a result. Failures go to ``on_error`` and the log.
    """

    def __init__(
        self,
        max_queue_size: int = 1000,
        on_error: Callable[[PersistenceWriteError], None] | None = None,
    ):
        self.max_queue_size = max_queue_size
        self.on_error = on_error
        self.failed_writes = 0
        self.dropped_writes = 0
        self._queue: asyncio.Queue[tuple[str, WriteFactory]] | None = None
        self._task: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def submit(self, operation: str, write: WriteFactory) -> bool:
        """Queue a write. Returns False when it had to be dropped."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.dropped_writes += 1
            logger.warning("No running event loop, dropping %s", operation)
            return False

        if self._queue is None or self._loop is not loop:
            # queue and task are bound to the loop that first uses them
            self._queue = asyncio.Queue(maxsize=self.max_queue_size)
            self._task = None
            self._loop = loop
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._run())

        try:
            self._queue.put_nowait((operation, write))
        except asyncio.QueueFull:
            self.dropped_writes += 1
            logger.warning("Write queue full, dropping %s", operation)
            return False
        return True

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            operation, write = await self._queue.get()
            try:
                await write()
            except Exception as e:
                self._report(PersistenceWriteError(operation, e))
            finally:
                self._queue.task_done()

    def _report(self, error: PersistenceWriteError) -> None:
        self.failed_writes += 1
        logger.warning("%s", error)
        if self.on_error:
            try:
                self.on_error(error)
            except Exception:
                logger.exception("on_error callback raised")

    async def flush(self) -> None:
        """Wait until every queued write has been attempted."""
        if self._queue is not None and self._task is not None and not self._task.done():
            await self._queue.join()

    async def aclose(self) -> None:
        await self.flush()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
