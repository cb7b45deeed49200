"""
Benchmark result data model and benchmark log line format.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

BYTES_PER_MB = 1024 * 1024

# Rates are computed against at least this many seconds so a copy that
# finishes inside the clock resolution never divides by zero.
MIN_RATE_DURATION_SECONDS = 0.001

BENCHMARK_LINE_RE = re.compile(
    r"^\[(?P<timestamp>[^\]]+)\] "
    r"File: (?P<file_name>.*), "
    r"Size: (?P<byte_count>\d+) bytes, "
    r"Duration: (?P<duration>\S+), "
    r"Transfer Rate: (?P<transfer_rate>-?\d+\.\d+) MB/s, "
    r"Memory Used: (?P<memory_used>-?\d+\.\d+) MB, "
    r"CPU Usage: (?P<cpu_usage>-?\d+\.\d+)%, "
    r"Goroutines: (?P<concurrency_units>\d+)$"
)


@dataclass(frozen=True)
class BenchmarkResult:
    """Telemetry for one completed upload."""
    timestamp: datetime
    file_name: str
    destination: str
    byte_count: int
    copy_duration_seconds: float
    total_duration_seconds: float
    memory_used_bytes: int  # peak during copy minus memory at request start, may be negative
    cpu_usage_percent: float
    concurrency_units: int

    @property
    def duration_ms(self) -> int:
        return int(self.copy_duration_seconds * 1000)

    @property
    def transfer_rate_bytes_per_second(self) -> float:
        return self.byte_count / max(self.copy_duration_seconds, MIN_RATE_DURATION_SECONDS)

    @property
    def transfer_rate_mb_per_second(self) -> float:
        return self.transfer_rate_bytes_per_second / BYTES_PER_MB

    @property
    def memory_used_mb(self) -> float:
        return self.memory_used_bytes / BYTES_PER_MB

    def format_line(self) -> str:
        """Render the benchmark log line (without trailing newline)."""
        return (
            f"[{format_timestamp(self.timestamp)}] "
            f"File: {self.file_name}, "
            f"Size: {self.byte_count} bytes, "
            f"Duration: {format_duration(self.copy_duration_seconds)}, "
            f"Transfer Rate: {self.transfer_rate_mb_per_second:.2f} MB/s, "
            f"Memory Used: {self.memory_used_mb:.2f} MB, "
            f"CPU Usage: {self.cpu_usage_percent:.2f}%, "
            f"Goroutines: {self.concurrency_units}"
        )


def format_timestamp(timestamp: datetime) -> str:
    """RFC 3339 with seconds precision."""
    return timestamp.isoformat(timespec="seconds").replace("+00:00", "Z")


def format_duration(seconds: float) -> str:
    """
    Render a duration the way Go prints time.Duration.

    Examples:
        0 -> "0s", 0.00025 -> "250µs", 0.0125 -> "12.5ms", 75.5 -> "1m15.5s"
    """
    nanos = int(round(seconds * 1e9))
    if nanos == 0:
        return "0s"

    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_trim(nanos / 1e3, 3)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_trim(nanos / 1e6, 6)}ms"

    hours, rem = divmod(nanos, 3_600_000_000_000)
    minutes, rem = divmod(rem, 60_000_000_000)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return f"{text}{_trim(rem / 1e9, 9)}s"


def _trim(value: float, places: int) -> str:
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def parse_benchmark_line(line: str) -> Optional[dict]:
    """
    Parse one benchmark log line back into its fields.

    Args:
        line: A line from the benchmark log, with or without trailing newline

    Returns:
        Dict of typed fields, or None if the line is not a complete entry
    """
    match = BENCHMARK_LINE_RE.match(line.rstrip("\n"))
    if match is None:
        return None

    try:
        timestamp = datetime.fromisoformat(match["timestamp"].replace("Z", "+00:00"))
    except ValueError:
        return None

    return {
        "timestamp": timestamp,
        "file_name": match["file_name"],
        "byte_count": int(match["byte_count"]),
        "duration": match["duration"],
        "transfer_rate_mb_per_second": float(match["transfer_rate"]),
        "memory_used_mb": float(match["memory_used"]),
        "cpu_usage_percent": float(match["cpu_usage"]),
        "concurrency_units": int(match["concurrency_units"]),
    }
