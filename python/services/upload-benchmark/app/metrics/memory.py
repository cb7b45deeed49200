"""
Process memory sampling.
"""

import psutil


class MemorySampler:
    """Reads the resident set size of the current process."""

    def __init__(self, process: psutil.Process | None = None):
        self._process = process or psutil.Process()

    def sample(self) -> int:
        """
        Get current memory usage.

        Returns:
            Resident set size in bytes
        """
        return self._process.memory_info().rss
