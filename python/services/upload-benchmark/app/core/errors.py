"""
Error taxonomy for the upload pipeline.

ClientInputError and ResourceError abort the request and are rendered as
{"error": message}. TelemetryError never leaves the benchmark log writer.
"""

from fastapi import status


class UploadError(Exception):
    """Base class for errors that end an upload request."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(UploadError):
    """Missing destination or missing/invalid upload field."""

    status_code = status.HTTP_400_BAD_REQUEST


class ResourceError(UploadError):
    """Directory creation, file open/create, or mid-copy I/O failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TelemetryError(Exception):
    """Benchmark log could not be opened or written."""
