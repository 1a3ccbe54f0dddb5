"""
Hot path profiling for the deserializer.

Each profiled section records its wall time, the bytes the cursor advanced
over while it ran, and whether it ended in an error. Zero-cost unless
JZCORE_PROFILE is set and Python runs without -O.
"""

import os
import time
from dataclasses import dataclass
from typing import Any
from typing import Protocol

PROFILE_HOT_PATHS = __debug__ and "JZCORE_PROFILE" in os.environ


class Cursor(Protocol):
    """Anything with a read offset into the buffer being parsed."""

    index: int


@dataclass
class HotPathStats:
    """Per-section totals collected while profiling is on."""

    function_name: str
    call_count: int = 0
    error_count: int = 0
    total_time_ns: int = 0
    bytes_consumed: int = 0

    def record_call(
        self, duration_ns: int, consumed: int = 0, failed: bool = False
    ) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.bytes_consumed += consumed
        if failed:
            self.error_count += 1

    @property
    def ns_per_byte(self) -> float:
        """Mean time per consumed byte, 0.0 before any bytes were seen."""
        if not self.bytes_consumed:
            return 0.0
        return self.total_time_ns / self.bytes_consumed


if PROFILE_HOT_PATHS:
    _hot_path_stats: dict[str, HotPathStats] = {}

    class ProfileContext:
        """
        Times a section and measures how far the cursor moved during it.

        Sections without a cursor record time and failures only.
        """

        def __init__(self, func_name: str, cursor: Cursor | None = None):
            self.func_name = func_name
            self.cursor = cursor
            self.start_index = 0
            self.start_time = 0

        def __enter__(self) -> "ProfileContext":
            if self.cursor is not None:
                self.start_index = self.cursor.index
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            consumed = 0
            if self.cursor is not None:
                consumed = self.cursor.index - self.start_index
            stats = _hot_path_stats.get(self.func_name)
            if stats is None:
                stats = _hot_path_stats[self.func_name] = HotPathStats(
                    self.func_name
                )
            stats.record_call(duration, consumed, exc_type is not None)

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        """Returns a snapshot of the collected statistics."""
        return _hot_path_stats.copy()

    def clear_hot_path_stats() -> None:
        _hot_path_stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(
            self, func_name: str, cursor: Cursor | None = None
        ) -> None:
            pass

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass
