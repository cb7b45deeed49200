"""
Health check endpoint.
"""

from fastapi import APIRouter

from shared_schemas.upload_service import BenchmarkLogStatus, HealthCheckResponse
from app.core.config import settings
from app.core.dependencies import BenchmarkWriter

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(writer: BenchmarkWriter):
    """
    Get service health status.

    Returns:
        HealthCheckResponse with benchmark log writer counters
    """
    status = "healthy" if writer.running else "degraded"

    return HealthCheckResponse(
        status=status,
        version=settings.APP_VERSION,
        benchmark_log=BenchmarkLogStatus(
            path=str(writer.sink.path) if hasattr(writer.sink, "path") else type(writer.sink).__name__,
            running=writer.running,
            queue_size=writer.queue_size,
            written=writer.written,
            failed=writer.failed,
            dropped=writer.dropped,
        ),
    )
