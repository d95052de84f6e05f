"""
In-process request metrics.

Tracks:
- Latency percentiles (p50, p95, p99) per endpoint
- Request and error counts per endpoint
- Product cache hit rate
"""

import statistics
import threading
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Dict, Optional


class MetricsCollector:
    """
    In-memory metrics collector exposed at /metrics.

    Latencies are kept in a sliding window per endpoint; counters are
    cumulative since start (or the last reset).
    """

    # Below this many samples a percentile is not reported
    MIN_SAMPLES = 10

    def __init__(self, window_size: int = 1000):
        self.window_size = window_size
        self._lock = threading.Lock()

        self.latencies: Dict[str, deque] = defaultdict(lambda: deque(maxlen=window_size))
        self.cache_hits = 0
        self.cache_misses = 0
        self.request_counts: Dict[str, int] = defaultdict(int)
        self.error_counts: Dict[str, int] = defaultdict(int)

        self.start_time = datetime.now(timezone.utc)
        self.last_reset = self.start_time

    def record_latency(self, endpoint: str, latency_ms: float):
        with self._lock:
            self.latencies[endpoint].append(latency_ms)
            self.request_counts[endpoint] += 1

    def record_cache_hit(self):
        with self._lock:
            self.cache_hits += 1

    def record_cache_miss(self):
        with self._lock:
            self.cache_misses += 1

    def record_error(self, endpoint: str):
        with self._lock:
            self.error_counts[endpoint] += 1

    def get_percentile(self, endpoint: str, percentile: float) -> Optional[float]:
        """
        Latency percentile (0-100) for an endpoint in ms, or None with too few samples.
        """
        samples = self.latencies.get(endpoint)
        if not samples or len(samples) < self.MIN_SAMPLES:
            return None
        values = sorted(samples)
        index = min(int(len(values) * (percentile / 100.0)), len(values) - 1)
        return values[index]

    def get_cache_hit_rate(self) -> float:
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return (self.cache_hits / total) * 100.0

    def get_error_rate(self, endpoint: str) -> float:
        total_requests = self.request_counts.get(endpoint, 0)
        if total_requests == 0:
            return 0.0
        return (self.error_counts.get(endpoint, 0) / total_requests) * 100.0

    def get_summary(self) -> Dict:
        """Summary of all metrics, keyed by endpoint."""
        uptime_seconds = (datetime.now(timezone.utc) - self.start_time).total_seconds()
        summary = {
            "uptime_seconds": round(uptime_seconds, 2),
            "cache": {
                "hit_rate_pct": round(self.get_cache_hit_rate(), 2),
                "total_hits": self.cache_hits,
                "total_misses": self.cache_misses,
            },
            "endpoints": {},
        }

        with self._lock:
            endpoints = list(self.request_counts.keys())

        for endpoint in endpoints:
            endpoint_metrics = {
                "total_requests": self.request_counts[endpoint],
                "total_errors": self.error_counts.get(endpoint, 0),
                "error_rate_pct": round(self.get_error_rate(endpoint), 2),
            }
            for pct in (50, 95, 99):
                value = self.get_percentile(endpoint, pct)
                if value is not None:
                    endpoint_metrics[f"latency_p{pct}_ms"] = round(value, 2)
            if self.latencies[endpoint]:
                endpoint_metrics["latency_avg_ms"] = round(statistics.mean(self.latencies[endpoint]), 2)
            summary["endpoints"][endpoint] = endpoint_metrics

        return summary

    def reset(self):
        """Reset all metrics (used by tests)."""
        with self._lock:
            self.latencies.clear()
            self.cache_hits = 0
            self.cache_misses = 0
            self.request_counts.clear()
            self.error_counts.clear()
            self.last_reset = datetime.now(timezone.utc)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def record_request_metrics(endpoint: str, latency_ms: float, is_error: bool = False):
    """Record one request's latency and, if it failed, an error."""
    metrics_collector.record_latency(endpoint, latency_ms)
    if is_error:
        metrics_collector.record_error(endpoint)
