"""
Lightweight in-memory metrics for a scrape run.

Counters and timings without external dependencies like Prometheus.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field


# Counter names used across the crawler
LIST_PAGES_CRAWLED = "list_pages_crawled"
LIST_PAGES_FAILED = "list_pages_failed"
DETAIL_PAGES_SCRAPED = "detail_pages_scraped"
DETAIL_PAGES_FAILED = "detail_pages_failed"
CHALLENGES_DETECTED = "challenges_detected"
CHALLENGES_CLEARED = "challenges_cleared"

# Timing names
DETAIL_FETCH_MS = "detail_fetch_ms"


@dataclass
class TimingStats:
    """Statistics for timing measurements."""

    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count > 0 else 0.0

    def record(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.min_ms = min(self.min_ms, duration_ms)
        self.max_ms = max(self.max_ms, duration_ms)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_ms": round(self.total_ms, 2),
            "avg_ms": round(self.avg_ms, 2),
            "min_ms": round(self.min_ms, 2) if self.count > 0 else 0.0,
            "max_ms": round(self.max_ms, 2),
        }


@dataclass
class Metrics:
    """
    In-memory metrics collector shared by the whole run.

    Example:
        >>> metrics = Metrics.get()
        >>> metrics.increment(DETAIL_PAGES_SCRAPED)
        >>> metrics.observe(DETAIL_FETCH_MS, 812.5)
    """

    _counters: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    _timings: dict[str, TimingStats] = field(
        default_factory=lambda: defaultdict(TimingStats)
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)

    # Singleton instance
    _instance: "Metrics | None" = field(default=None, repr=False, init=False)

    @classmethod
    def get(cls) -> "Metrics":
        """Get the global metrics instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset all metrics (useful for testing)."""
        if cls._instance is not None:
            with cls._instance._lock:
                cls._instance._counters.clear()
                cls._instance._timings.clear()

    def increment(self, name: str, value: int = 1) -> int:
        with self._lock:
            self._counters[name] += value
            return self._counters[name]

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def observe(self, name: str, duration_ms: float) -> None:
        with self._lock:
            self._timings[name].record(duration_ms)

    def get_timing(self, name: str) -> TimingStats | None:
        """Get a copy of the timing statistics for a metric."""
        with self._lock:
            if name not in self._timings:
                return None
            stats = self._timings[name]
            return TimingStats(
                count=stats.count,
                total_ms=stats.total_ms,
                min_ms=stats.min_ms,
                max_ms=stats.max_ms,
            )

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {
                    name: stats.to_dict()
                    for name, stats in self._timings.items()
                },
            }

    def summary(self) -> str:
        """Human-readable crawl summary, then any other recorded metrics."""
        snap = self.snapshot()
        counters = dict(snap["counters"])
        timings = dict(snap["timings"])

        lines = [
            "=== Crawl Metrics ===",
            f"List pages:   {counters.pop(LIST_PAGES_CRAWLED, 0):,} crawled, "
            f"{counters.pop(LIST_PAGES_FAILED, 0):,} failed",
            f"Profiles:     {counters.pop(DETAIL_PAGES_SCRAPED, 0):,} scraped, "
            f"{counters.pop(DETAIL_PAGES_FAILED, 0):,} failed",
            f"Challenges:   {counters.pop(CHALLENGES_DETECTED, 0):,} detected, "
            f"{counters.pop(CHALLENGES_CLEARED, 0):,} cleared",
        ]

        fetch = timings.pop(DETAIL_FETCH_MS, None)
        if fetch is not None:
            lines.append(
                f"Profile time: avg={fetch['avg_ms'] / 1000:.2f}s, "
                f"min={fetch['min_ms'] / 1000:.2f}s, max={fetch['max_ms'] / 1000:.2f}s"
            )

        for name, value in sorted(counters.items()):
            lines.append(f"{name}: {value:,}")
        for name, stats in sorted(timings.items()):
            lines.append(f"{name}: {stats['count']} calls, avg={stats['avg_ms']:.1f}ms")

        return "\n".join(lines)
