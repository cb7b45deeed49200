"""
Upload API endpoint.
Streams a multipart upload to a caller-chosen path and reports its telemetry.
"""

from typing import Optional

from fastapi import APIRouter, Query, Request

from shared_schemas.common import ErrorResponse
from shared_schemas.upload_service import UploadSuccessResponse
from app.core.dependencies import Pipeline

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadSuccessResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    request: Request,
    pipeline: Pipeline,
    dest: Optional[str] = Query(None, description="Destination path on the server filesystem"),
):
    """
    Upload a file (multipart field "file") to the path given in ?dest=.

    Missing directories are created and an existing file is overwritten.

    Example:
        curl -X POST "http://server:8080/upload?dest=/tmp/out.dat" \\
          -F "file=@local.dat"

    Returns:
        Size written, copy duration, transfer rate, memory delta and CPU estimate
    """
    result = await pipeline.run(dest, request)

    return UploadSuccessResponse(
        destination=result.destination,
        size=result.byte_count,
        duration_ms=result.duration_ms,
        transfer_rate=f"{result.transfer_rate_mb_per_second:.2f} MB/s",
        memory_used_mb=f"{result.memory_used_mb:.2f} MB",
        cpu_usage=f"{result.cpu_usage_percent:.2f}%",
    )
