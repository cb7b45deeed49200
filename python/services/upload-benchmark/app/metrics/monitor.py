"""
Performance Monitor - samples memory and a CPU estimate while an upload runs.

Lifecycle is RUNNING -> STOPPED. The pipeline starts one monitor per request,
signals it to stop once the copy is done (or the request fails), and reads the
result only after the sampling task has exited.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import psutil

from app.core.config import CpuEstimateMode
from app.metrics.concurrency import ConcurrencyCounter
from app.metrics.memory import MemorySampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorResult:
    """Peak memory and time-averaged CPU estimate for one monitored window."""
    peak_memory_bytes: int
    average_cpu_percent: float
    sample_count: int


class PerformanceMonitor:
    """
    Background sampler for the lifetime of a single upload.

    Every tick samples memory (tracking the running peak) and adds one CPU
    estimate to a running sum. In CONCURRENCY mode the estimate is
    units / processors * 100, a rough proxy and not a CPU-time ratio.
    In PROCESS mode it is psutil's process CPU percent since the previous tick.
    """

    def __init__(
        self,
        memory_sampler: Optional[MemorySampler] = None,
        concurrency_counter: Optional[ConcurrencyCounter] = None,
        interval: float = 0.2,
        cpu_mode: CpuEstimateMode = CpuEstimateMode.CONCURRENCY,
        process: Optional[psutil.Process] = None,
    ):
        """
        Args:
            memory_sampler: Source of memory readings
            concurrency_counter: Source of thread/task counts
            interval: Seconds between ticks
            cpu_mode: CPU estimate strategy
            process: psutil handle used in PROCESS mode
        """
        self.memory_sampler = memory_sampler or MemorySampler()
        self.concurrency_counter = concurrency_counter or ConcurrencyCounter()
        self.interval = interval
        self.cpu_mode = cpu_mode
        self._process = process

        self.peak_memory = 0
        self._cpu_total = 0.0
        self._sample_count = 0

        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._result: Optional[MonitorResult] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Seed the peak with a first reading and start the tick task."""
        if self._task is not None or self._result is not None:
            raise RuntimeError("Performance monitor can only be started once")

        self.peak_memory = self.memory_sampler.sample()
        if self.cpu_mode == CpuEstimateMode.PROCESS:
            if self._process is None:
                self._process = psutil.Process()
            # First call only establishes the baseline and returns 0.0
            self._process.cpu_percent(interval=None)

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._sample_loop())
        logger.debug(f"[MONITOR] Started (interval={self.interval}s, cpu_mode={self.cpu_mode.value})")

    async def stop(self) -> MonitorResult:
        """
        Signal the sampler to stop and wait for it to exit.

        Safe to call more than once; later calls return the first result.

        Returns:
            MonitorResult with peak memory and average CPU estimate
        """
        if self._result is not None:
            return self._result

        if self._task is not None:
            self._stop_event.set()
            await self._task

        average_cpu = self._cpu_total / self._sample_count if self._sample_count else 0.0
        self._result = MonitorResult(
            peak_memory_bytes=self.peak_memory,
            average_cpu_percent=average_cpu,
            sample_count=self._sample_count,
        )
        logger.debug(
            f"[MONITOR] Stopped after {self._sample_count} samples "
            f"(peak={self.peak_memory} bytes, avg_cpu={average_cpu:.2f}%)"
        )
        return self._result

    async def _sample_loop(self):
        """Tick until the stop event is set."""
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                self._tick()
            except Exception as e:
                logger.error(f"[MONITOR] Sampling failed, skipping tick: {e}")

    def _tick(self):
        memory = self.memory_sampler.sample()
        if memory > self.peak_memory:
            self.peak_memory = memory

        self._cpu_total += self._cpu_estimate()
        self._sample_count += 1

    def _cpu_estimate(self) -> float:
        if self.cpu_mode == CpuEstimateMode.PROCESS:
            return self._process.cpu_percent(interval=None)

        units = self.concurrency_counter.sample()
        processors = self.concurrency_counter.available_processors()
        return units / processors * 100
