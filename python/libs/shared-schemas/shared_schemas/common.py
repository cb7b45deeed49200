"""
Common schemas and utilities shared across all services.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Standard error response.

    Example:
        ErrorResponse(error="destination path is required")
    """
    error: str
