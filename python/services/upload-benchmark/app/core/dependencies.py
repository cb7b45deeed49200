"""
Shared dependencies for FastAPI endpoints.
"""

from typing import Annotated

from fastapi import Depends, Request

from app.benchmark.writer import BenchmarkLogWriter
from app.core.config import settings
from app.pipeline.upload import UploadPipeline


def get_benchmark_writer(request: Request) -> BenchmarkLogWriter:
    """
    Get the benchmark log writer created in the application lifespan.
    """
    return request.app.state.benchmark_writer


def get_upload_pipeline(
    writer: Annotated[BenchmarkLogWriter, Depends(get_benchmark_writer)],
) -> UploadPipeline:
    """Build a pipeline bound to the process-wide log writer."""
    return UploadPipeline(
        writer=writer,
        monitor_interval=settings.monitor_interval_seconds,
        cpu_mode=settings.CPU_ESTIMATE_MODE,
        chunk_size=settings.COPY_CHUNK_SIZE,
    )


# Dependency annotations
BenchmarkWriter = Annotated[BenchmarkLogWriter, Depends(get_benchmark_writer)]
Pipeline = Annotated[UploadPipeline, Depends(get_upload_pipeline)]
