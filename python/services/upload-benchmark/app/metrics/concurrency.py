"""
Concurrency-unit counting (threads plus asyncio tasks).
"""

import asyncio
import os
import threading


class ConcurrencyCounter:
    """Counts live threads and tasks of the running event loop."""

    def sample(self) -> int:
        try:
            tasks = len(asyncio.all_tasks())
        except RuntimeError:
            # No running loop in this thread
            tasks = 0
        return threading.active_count() + tasks

    @staticmethod
    def available_processors() -> int:
        return os.cpu_count() or 1
