"""
Hot path profiling for the reader and writer.

Enabled by setting ``JTREE_PROFILE`` in the environment; compiled down to
no-op context managers otherwise (and always under ``python -O``). Each
profiled section reports how much JSON text it consumed (bytes) or
produced (characters), so throughput can be read off the stats.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

PROFILE_HOT_PATHS = __debug__ and "JTREE_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings and JSON text volume of one profiled section."""

    section: str
    call_count: int = 0
    total_time_ns: int = 0
    text_processed: int = 0

    def record_call(self, duration_ns: int, size: int = 0) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.text_processed += size

    @property
    def mean_time_ns(self) -> float:
        return self.total_time_ns / self.call_count if self.call_count else 0.0

    @property
    def throughput(self) -> float:
        if not self.total_time_ns:
            return 0.0
        return self.text_processed * 1e9 / self.total_time_ns


if PROFILE_HOT_PATHS:
    _hot_path_stats: dict[str, HotPathStats] = {}

    class ProfileContext:
        """
        Times one run of a section.

        Callers report the size of the text they handled with ``count``
        before the block exits.
        """

        def __init__(self, section: str) -> None:
            self.section = section
            self.size = 0
            self.start_time = 0

        def count(self, size: int) -> None:
            self.size += size

        def __enter__(self) -> ProfileContext:
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            stats = _hot_path_stats.setdefault(
                self.section, HotPathStats(self.section)
            )
            stats.record_call(duration, self.size)

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        """Snapshot of the stats collected so far, keyed by section."""
        return _hot_path_stats.copy()

    def clear_hot_path_stats() -> None:
        _hot_path_stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, section: str) -> None:
            pass

        def count(self, size: int) -> None:
            pass

        def __enter__(self) -> ProfileContext:
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass


__all__ = [
    "PROFILE_HOT_PATHS",
    "HotPathStats",
    "ProfileContext",
    "clear_hot_path_stats",
    "get_hot_path_stats",
]
