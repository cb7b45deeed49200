"""
Upload Benchmark Service API schemas.
Type-safe contracts for the upload and health endpoints.
"""

from pydantic import BaseModel, Field


# ============================================================================
# Upload Endpoint
# ============================================================================

class UploadSuccessResponse(BaseModel):
    """Response from a completed upload. Formatted fields carry their unit."""
    status: str = "success"
    destination: str
    size: int = Field(description="Bytes actually written to the destination")
    duration_ms: int = Field(description="Wall-clock time of the byte copy only")
    transfer_rate: str = Field(description="e.g. '123.45 MB/s'")
    memory_used_mb: str = Field(description="Peak memory during copy minus memory at request start, e.g. '1.25 MB'")
    cpu_usage: str = Field(description="Time-averaged CPU estimate, e.g. '12.50%'")


# ============================================================================
# Health Endpoint
# ============================================================================

class BenchmarkLogStatus(BaseModel):
    """Benchmark log writer counters."""
    path: str
    running: bool
    queue_size: int
    written: int
    failed: int
    dropped: int


class HealthCheckResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    benchmark_log: BenchmarkLogStatus
