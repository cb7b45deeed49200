"""
Shared API schemas for upload-benchmark services.
Provides type-safe contracts for HTTP APIs.
"""

__version__ = "1.0.0"

# Export commonly used schemas
from shared_schemas.common import *  # noqa: F403, F401
from shared_schemas.upload_service import *  # noqa: F403, F401
