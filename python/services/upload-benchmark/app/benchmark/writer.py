"""
Benchmark log writer.

FileBenchmarkSink appends one line per result under a lock.
BenchmarkLogWriter puts results on a bounded queue drained by a single
consumer task, so uploads never wait on log file I/O.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Set, Union

from app.core.config import QueuePolicy
from app.core.errors import TelemetryError
from app.models.benchmark import BenchmarkResult

logger = logging.getLogger(__name__)

_STOP = object()


class BenchmarkSink(ABC):
    """Destination for benchmark results."""

    @abstractmethod
    def append(self, result: BenchmarkResult) -> bool:
        """Persist one result. Returns False on failure instead of raising."""


class FileBenchmarkSink(BenchmarkSink):
    """
    Append-only text log, one line per upload.

    The file is opened, written and closed for every result while holding
    the lock, so lines from concurrent callers never interleave.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, result: BenchmarkResult) -> bool:
        line = result.format_line() + "\n"
        try:
            self._write(line)
        except TelemetryError as e:
            logger.error(f"[BENCHMARK LOG] {e}")
            return False
        return True

    def _write(self, line: str):
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise TelemetryError(f"Failed to write benchmark log {self.path}: {e}") from e


class BenchmarkLogWriter:
    """
    Bounded work queue in front of a BenchmarkSink.

    Must be started from async context. submit() never blocks the caller:
    with DROP a full queue discards the result, with BLOCK the put is
    parked in a background task until the consumer frees a slot. At most
    max_queue_size puts are parked at once; past that BLOCK drops too.
    """

    def __init__(
        self,
        sink: BenchmarkSink,
        max_queue_size: int = 1000,
        policy: QueuePolicy = QueuePolicy.DROP,
    ):
        self.sink = sink
        self.max_queue_size = max_queue_size
        self.policy = policy

        self.written = 0
        self.failed = 0
        self.dropped = 0

        self._queue: Optional[asyncio.Queue] = None
        self._consumer_task: Optional[asyncio.Task] = None
        self._pending_puts: Set[asyncio.Task] = set()
        self._closing = False

    @property
    def running(self) -> bool:
        return self._consumer_task is not None and not self._consumer_task.done()

    @property
    def queue_size(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def start(self):
        """Create the queue and start the consumer task."""
        if self._consumer_task is not None:
            return

        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._closing = False
        self._consumer_task = asyncio.create_task(self._consume())
        logger.info(
            f"[BENCHMARK LOG] Writer started (queue={self.max_queue_size}, policy={self.policy.value})"
        )

    def submit(self, result: BenchmarkResult) -> bool:
        """
        Hand a result to the consumer without waiting for it to be written.

        Args:
            result: Completed upload telemetry

        Returns:
            True if the result was queued, False if it was dropped
        """
        if self._queue is None or self._closing:
            self.dropped += 1
            logger.warning(f"[BENCHMARK LOG] Writer not running, dropped result for {result.file_name}")
            return False

        try:
            self._queue.put_nowait(result)
            return True
        except asyncio.QueueFull:
            if self.policy == QueuePolicy.BLOCK and len(self._pending_puts) < self.max_queue_size:
                task = asyncio.create_task(self._queue.put(result))
                self._pending_puts.add(task)
                task.add_done_callback(self._pending_puts.discard)
                return True

            self.dropped += 1
            logger.warning(
                f"[BENCHMARK LOG] Queue full ({self.max_queue_size}, {len(self._pending_puts)} parked), "
                f"dropped result for {result.file_name}"
            )
            return False

    async def join(self):
        """Wait until every queued result has been handled."""
        if self._pending_puts:
            await asyncio.gather(*self._pending_puts)
        if self._queue is not None:
            await self._queue.join()

    async def close(self):
        """Drain queued results, then stop the consumer."""
        if self._consumer_task is None:
            return

        self._closing = True
        await self.join()
        await self._queue.put(_STOP)
        await self._consumer_task
        self._consumer_task = None

        logger.info(
            f"[BENCHMARK LOG] Writer stopped (written={self.written}, "
            f"failed={self.failed}, dropped={self.dropped})"
        )

    async def _consume(self):
        """Single consumer: append results one at a time in a worker thread."""
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    break

                if await asyncio.to_thread(self.sink.append, item):
                    self.written += 1
                else:
                    self.failed += 1
            except Exception as e:
                self.failed += 1
                logger.error(f"[BENCHMARK LOG] Unexpected sink error: {e}", exc_info=True)
            finally:
                self._queue.task_done()
