"""
Upload pipeline - stream one uploaded file to disk while measuring it.

Steps (any failure aborts the request):
    1. Record start time and memory, start the Performance Monitor
    2. Validate destination path                    -> 400
    3. Create missing parent directories            -> 500
    4. Read the multipart "file" field               -> 400
    5. Open the uploaded file for reading            -> 500
    6. Create/truncate the destination file          -> 500
    7. Copy all bytes (partial files are left as-is) -> 500
    8. Stop the monitor and build the BenchmarkResult
    9. Queue the benchmark log line without waiting
"""

import asyncio
import logging
import os
import time
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from fastapi import Request
from starlette.datastructures import FormData, UploadFile

from app.benchmark.writer import BenchmarkLogWriter
from app.core.config import CpuEstimateMode
from app.core.errors import ClientInputError, ResourceError
from app.metrics.concurrency import ConcurrencyCounter
from app.metrics.memory import MemorySampler
from app.metrics.monitor import PerformanceMonitor
from app.models.benchmark import BYTES_PER_MB, BenchmarkResult
from app.utils.streaming import DEFAULT_CHUNK_SIZE, copy_stream

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"
DIRECTORY_MODE = 0o755
PROGRESS_LOG_STEP_MB = 50


class UploadPipeline:
    """Orchestrates a single upload and its performance measurement."""

    def __init__(
        self,
        writer: BenchmarkLogWriter,
        memory_sampler: Optional[MemorySampler] = None,
        concurrency_counter: Optional[ConcurrencyCounter] = None,
        monitor_interval: float = 0.2,
        cpu_mode: CpuEstimateMode = CpuEstimateMode.CONCURRENCY,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.writer = writer
        self.memory_sampler = memory_sampler or MemorySampler()
        self.concurrency_counter = concurrency_counter or ConcurrencyCounter()
        self.monitor_interval = monitor_interval
        self.cpu_mode = cpu_mode
        self.chunk_size = chunk_size

    def new_monitor(self) -> PerformanceMonitor:
        return PerformanceMonitor(
            memory_sampler=self.memory_sampler,
            concurrency_counter=self.concurrency_counter,
            interval=self.monitor_interval,
            cpu_mode=self.cpu_mode,
        )

    async def run(self, dest: Optional[str], request: Request) -> BenchmarkResult:
        """
        Execute the upload.

        Args:
            dest: Destination path from the "dest" query parameter
            request: Request carrying the multipart body

        Returns:
            BenchmarkResult for the completed upload

        Raises:
            ClientInputError: Missing destination or upload field
            ResourceError: Filesystem failure before or during the copy
        """
        request_start = time.perf_counter()
        initial_memory = self.memory_sampler.sample()
        monitor = self.new_monitor()
        monitor.start()

        form: Optional[FormData] = None
        try:
            if not dest:
                raise ClientInputError("destination path is required")

            logger.info(f"[UPLOAD] Starting: dest={dest}")

            await self._ensure_directory(dest)
            form = await self._parse_form(request)
            upload = self._get_upload(form)
            await self._open_source(upload)
            destination = await self._create_destination(dest)

            copy_start = time.perf_counter()
            with destination:
                try:
                    written = await asyncio.to_thread(
                        copy_stream,
                        upload.file,
                        destination,
                        self.chunk_size,
                        self._progress_logger(dest),
                    )
                except OSError as e:
                    raise ResourceError(f"failed to save file: {e}") from e
            copy_duration = time.perf_counter() - copy_start
            total_duration = time.perf_counter() - request_start

            monitor_result = await monitor.stop()

        except ClientInputError as e:
            logger.warning(f"[UPLOAD] Rejected: dest={dest!r} :: {e.message}")
            raise
        except ResourceError as e:
            logger.error(f"[UPLOAD] Failed: dest={dest!r} :: {e.message}")
            raise
        finally:
            await monitor.stop()
            if form is not None:
                await form.close()

        result = BenchmarkResult(
            timestamp=datetime.now(timezone.utc),
            file_name=upload.filename or os.path.basename(dest),
            destination=dest,
            byte_count=written,
            copy_duration_seconds=copy_duration,
            total_duration_seconds=total_duration,
            memory_used_bytes=monitor_result.peak_memory_bytes - initial_memory,
            cpu_usage_percent=monitor_result.average_cpu_percent,
            concurrency_units=self.concurrency_counter.sample(),
        )

        self.writer.submit(result)

        logger.info(
            f"[UPLOAD] Completed: {dest} ({written / BYTES_PER_MB:.2f}MB in "
            f"{copy_duration:.3f}s, {result.transfer_rate_mb_per_second:.2f} MB/s, "
            f"total {total_duration:.3f}s)"
        )
        return result

    async def _ensure_directory(self, dest: str):
        directory = os.path.dirname(dest)
        if not directory:
            return
        try:
            await asyncio.to_thread(os.makedirs, directory, DIRECTORY_MODE, True)
        except (OSError, ValueError) as e:
            raise ResourceError(f"failed to create directory: {e}") from e

    async def _parse_form(self, request: Request) -> FormData:
        try:
            return await request.form()
        except Exception as e:
            detail = getattr(e, "detail", None) or str(e)
            raise ClientInputError(f"failed to get file: {detail}") from e

    def _get_upload(self, form: FormData) -> UploadFile:
        upload = form.get(UPLOAD_FIELD)
        if not isinstance(upload, UploadFile):
            raise ClientInputError(f"failed to get file: no file in form field '{UPLOAD_FIELD}'")
        return upload

    async def _open_source(self, upload: UploadFile):
        try:
            await upload.seek(0)
        except (OSError, ValueError) as e:
            raise ResourceError(f"failed to open file: {e}") from e

    async def _create_destination(self, dest: str) -> BinaryIO:
        try:
            return await asyncio.to_thread(open, dest, "wb")
        except (OSError, ValueError) as e:
            raise ResourceError(f"failed to create destination file: {e}") from e

    def _progress_logger(self, dest: str):
        last_log_mb = [0.0]

        def progress(written: int):
            current_mb = written / BYTES_PER_MB
            if current_mb - last_log_mb[0] >= PROGRESS_LOG_STEP_MB:
                logger.info(f"[UPLOAD] Progress: {current_mb:.2f}MB written ({dest})")
                last_log_mb[0] = current_mb

        return progress
