"""
Metrics Collection Module
Tracks relay throughput and per-stage failures since startup
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Deque, Optional


@dataclass
class RelayMetrics:
    """
    Operational counters for the poll loop.

    Failures are keyed by pipeline stage: "listing", "translate", "notify"
    and "mark". Processing times are kept per message in a bounded deque so
    percentiles stay cheap to compute.
    """

    cycles_completed: int = 0
    messages_seen: int = 0
    messages_relayed: int = 0
    failures: Counter = field(default_factory=Counter)
    processing_time_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=1000))
    start_time: datetime = field(default_factory=datetime.now)
    last_cycle: Optional[datetime] = None

    def record_cycle(self, messages_found: int):
        """Record a finished poll cycle and how many matches it listed"""
        self.cycles_completed += 1
        self.messages_seen += messages_found
        self.last_cycle = datetime.now()

    def record_relayed(self, time_ms: float):
        self.messages_relayed += 1
        self.processing_time_ms.append(time_ms)

    def record_failure(self, stage: str):
        self.failures[stage] += 1

    def get_summary(self) -> Dict:
        """
        Get a summary of all metrics.

        Returns:
            Dictionary suitable for logging
        """
        stats = {}
        if self.processing_time_ms:
            sorted_times = sorted(self.processing_time_ms)
            n = len(sorted_times)
            stats = {
                "avg_ms": sum(sorted_times) / n,
                "min_ms": sorted_times[0],
                "max_ms": sorted_times[-1],
                "p50_ms": sorted_times[n // 2],
                "p95_ms": sorted_times[int(n * 0.95)] if n > 1 else sorted_times[0],
            }

        return {
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "cycles_completed": self.cycles_completed,
            "messages_seen": self.messages_seen,
            "messages_relayed": self.messages_relayed,
            "failures": dict(self.failures),
            "processing_time_stats": stats,
        }
