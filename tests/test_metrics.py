"""Tests for the in-process metrics collector."""

from storefront.utils.metrics import MetricsCollector


def test_percentiles_need_enough_samples():
    m = MetricsCollector()
    for value in range(5):
        m.record_latency("GET /x", float(value))
    assert m.get_percentile("GET /x", 50) is None
    assert m.get_percentile("GET /unknown", 50) is None


def test_percentiles():
    m = MetricsCollector()
    for value in range(1, 101):
        m.record_latency("GET /x", float(value))
    assert m.get_percentile("GET /x", 50) == 51.0
    assert m.get_percentile("GET /x", 99) == 100.0


def test_sliding_window():
    m = MetricsCollector(window_size=10)
    for value in range(100):
        m.record_latency("GET /x", float(value))
    assert len(m.latencies["GET /x"]) == 10
    assert m.request_counts["GET /x"] == 100


def test_error_and_cache_rates():
    m = MetricsCollector()
    for _ in range(4):
        m.record_latency("GET /x", 1.0)
    m.record_error("GET /x")
    m.record_cache_hit()
    m.record_cache_hit()
    m.record_cache_hit()
    m.record_cache_miss()
    assert m.get_error_rate("GET /x") == 25.0
    assert m.get_error_rate("GET /never") == 0.0
    assert m.get_cache_hit_rate() == 75.0


def test_summary_and_reset():
    m = MetricsCollector()
    for value in range(20):
        m.record_latency("GET /x", float(value))
    summary = m.get_summary()
    endpoint = summary["endpoints"]["GET /x"]
    assert endpoint["total_requests"] == 20
    assert endpoint["latency_avg_ms"] == 9.5
    assert "latency_p95_ms" in endpoint
    assert summary["cache"]["hit_rate_pct"] == 0.0

    m.reset()
    assert m.get_summary()["endpoints"] == {}
