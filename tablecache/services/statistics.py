"""Hit/miss/put/eviction counters."""

import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class CacheStatistics:
    """Immutable snapshot of cache counters."""
    hits: int = 0
    misses: int = 0
    puts: int = 0
    evictions: int = 0

    @property
    def request_count(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hits over requests, 0.0 when nothing was requested."""
        total = self.request_count
        return self.hits / total if total else 0.0

    @property
    def miss_rate(self) -> float:
        total = self.request_count
        return self.misses / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["request_count"] = self.request_count
        data["hit_rate"] = round(self.hit_rate, 4)
        data["miss_rate"] = round(self.miss_rate, 4)
        return data

    def __str__(self) -> str:
        return (f"CacheStatistics(hits={self.hits}, misses={self.misses}, "
                f"hit_rate={self.hit_rate * 100:.2f}%, puts={self.puts}, "
                f"evictions={self.evictions})")


class StatisticsRecorder:
    """Thread-safe counters behind a snapshot accessor.

    Evictions count rows removed by evict, evict_all, evict_by_pattern and
    clear (one per row). Rows removed because they expired are not evictions.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._puts = 0
        self._evictions = 0

    def record_hits(self, count: int = 1) -> None:
        if count:
            with self._lock:
                self._hits += count

    def record_misses(self, count: int = 1) -> None:
        if count:
            with self._lock:
                self._misses += count

    def record_puts(self, count: int = 1) -> None:
        if count:
            with self._lock:
                self._puts += count

    def record_evictions(self, count: int = 1) -> None:
        if count:
            with self._lock:
                self._evictions += count

    def snapshot(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                hits=self._hits,
                misses=self._misses,
                puts=self._puts,
                evictions=self._evictions,
            )

    def reset(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._puts = 0
            self._evictions = 0
