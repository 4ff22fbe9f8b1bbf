"""Metrics service for tracking recommendation traffic.

Singleton service counting recommendation calls per source and their latency.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters for recommendation calls.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._request_count = 0
        self._source_counts: Dict[str, int] = {}
        self._total_latency_ms = 0.0
        self._min_latency_ms = float("inf")
        self._max_latency_ms = 0.0

    def record_recommendation(self, source: str, latency_ms: float) -> None:
        """Record one recommendation call.

        Args:
            source: Stage that answered (collaborative, popular, cache, degraded)
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._request_count += 1
            self._source_counts[source] = self._source_counts.get(source, 0) + 1
            self._total_latency_ms += latency_ms
            self._min_latency_ms = min(self._min_latency_ms, latency_ms)
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with:
            - recommendation_count: Total number of recommendation calls
            - by_source: Calls per answering stage
            - average_latency_ms / min_latency_ms / max_latency_ms
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._request_count
                if self._request_count > 0
                else 0.0
            )
            return {
                "recommendation_count": self._request_count,
                "by_source": dict(self._source_counts),
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._request_count else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
