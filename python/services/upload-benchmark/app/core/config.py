"""
Configuration management for Upload Benchmark Service.
Loads environment variables using Pydantic Settings.
"""

from enum import Enum
from typing import List, Union

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueuePolicy(str, Enum):
    """Back-pressure policy when the benchmark log queue is full."""
    DROP = "drop"
    BLOCK = "block"


class CpuEstimateMode(str, Enum):
    """How the Performance Monitor estimates CPU usage."""
    CONCURRENCY = "concurrency"  # (threads + tasks) / processors * 100
    PROCESS = "process"          # psutil process CPU time


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Upload Benchmark Service"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # CORS Configuration (will be parsed by model_validator)
    CORS_ORIGINS: Union[str, List[str]] = ["*"]

    # Benchmark Log
    BENCHMARK_LOG_PATH: str = "benchmark.txt"
    BENCHMARK_QUEUE_MAX_SIZE: int = 1000
    BENCHMARK_QUEUE_POLICY: QueuePolicy = QueuePolicy.DROP

    # Performance Monitor
    MONITOR_INTERVAL_MS: int = 200
    CPU_ESTIMATE_MODE: CpuEstimateMode = CpuEstimateMode.CONCURRENCY

    # Streaming Copy
    COPY_CHUNK_SIZE: int = 256 * 1024             # 256KB read buffer
    MULTIPART_SPOOL_MAX_SIZE: int = 8 * 1024 * 1024  # Parts above this spill to a temp file

    @model_validator(mode="before")
    @classmethod
    def parse_env_values(cls, values):
        """Parse environment variables from strings to proper types."""

        # Parse CORS_ORIGINS from comma-separated string to list
        if isinstance(values.get("CORS_ORIGINS"), str):
            values["CORS_ORIGINS"] = [
                origin.strip() for origin in values["CORS_ORIGINS"].split(",") if origin.strip()
            ]

        return values

    @model_validator(mode="after")
    def check_positive_values(self):
        """Reject intervals and sizes that would stall the monitor or the copy."""
        for name in ("MONITOR_INTERVAL_MS", "COPY_CHUNK_SIZE", "BENCHMARK_QUEUE_MAX_SIZE"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        return self

    @property
    def monitor_interval_seconds(self) -> float:
        return self.MONITOR_INTERVAL_MS / 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
