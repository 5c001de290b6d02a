"""
Performance instrumentation for the simulation worker.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Any, Iterator, List, Optional, Deque

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceRecord:
    """Timing of one operation and the population size it produced."""
    step_time_ms: float
    bacteria_count: int
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to its camelCase wire representation."""
        return {
            "stepTimeMs": self.step_time_ms,
            "bacteriaCount": self.bacteria_count,
            "timestamp": self.timestamp,
        }


class PerformanceHistory:
    """Bounded ring buffer of performance records (oldest evicted first)."""

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("Performance history capacity must be positive")
        self.capacity = capacity
        self._records: Deque[PerformanceRecord] = deque(maxlen=capacity)

    def record(self, step_time_ms: float, bacteria_count: int) -> PerformanceRecord:
        """Append a record, evicting the oldest one when full."""
        entry = PerformanceRecord(step_time_ms=step_time_ms, bacteria_count=bacteria_count)
        self._records.append(entry)
        return entry

    def snapshot(self) -> List[Dict[str, Any]]:
        """Records as wire dictionaries, oldest first."""
        return [entry.to_dict() for entry in self._records]

    def summary(self) -> Dict[str, Any]:
        """Summary statistics over the buffered records."""
        if not self._records:
            return {"count": 0}

        step_times = [entry.step_time_ms for entry in self._records]
        return {
            "count": len(step_times),
            "step_time_ms": {
                "avg": sum(step_times) / len(step_times),
                "min": min(step_times),
                "max": max(step_times),
            },
            "last_bacteria_count": self._records[-1].bacteria_count,
        }

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PerformanceRecord]:
        return iter(self._records)


class Stopwatch:
    """Elapsed wall-clock time in milliseconds, filled in by ``timed``."""

    def __init__(self):
        self.elapsed_ms: float = 0.0


@contextmanager
def timed() -> Iterator[Stopwatch]:
    """Context manager measuring the enclosed block in milliseconds."""
    stopwatch = Stopwatch()
    start_time = time.perf_counter()
    try:
        yield stopwatch
    finally:
        stopwatch.elapsed_ms = (time.perf_counter() - start_time) * 1000


def process_memory_mb() -> Optional[float]:
    """Resident memory of the current process in MB, if it can be read."""
    try:
        return psutil.Process().memory_info().rss / 1024 / 1024
    except psutil.Error as e:
        logger.warning(f"Could not read process memory: {e}")
        return None
