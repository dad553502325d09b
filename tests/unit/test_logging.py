"""Unit tests for trace ids and the metrics collector."""

from lichess_scraper.lichess_logging import (
    MetricsCollector,
    add_trace_id,
    clear_trace_id,
    get_trace_id,
    set_trace_id,
)


def test_trace_id_set_and_cleared():
    set_trace_id("abc12345")
    assert get_trace_id() == "abc12345"
    assert add_trace_id(None, "info", {"event": "x"})["trace_id"] == "abc12345"

    clear_trace_id()
    generated = get_trace_id()
    assert generated != "abc12345"
    assert len(generated) == 8
    clear_trace_id()


def test_metrics_counters_and_gauges():
    collector = MetricsCollector()
    collector.increment("http.attempts")
    collector.increment("http.attempts", value=2)
    collector.increment("http.retries", tags={"kind": "network"})
    collector.gauge("pipeline.duration_seconds", 1.5)

    snapshot = collector.get_metrics()
    assert snapshot["counters"] == {"http.attempts": 3, "http.retries,kind=network": 1}
    assert snapshot["gauges"] == {"pipeline.duration_seconds": 1.5}

    collector.reset()
    assert collector.get_metrics() == {"counters": {}, "gauges": {}}
