"""
Tests for request logging middleware, the metrics collector and JSON logs.
"""
import json
import logging

from fastapi.testclient import TestClient

from core.logging_config import JSONFormatter, clear_request_id, set_request_id
from core.middleware import LoggingMiddleware, MetricsCollector


def test_request_id_header(test_app):
    """Test every response carries a request id."""
    test_app.add_middleware(LoggingMiddleware)
    client = TestClient(test_app)

    response = client.get("/api/v1/heatmap/legend")
    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 8


def test_collector_counts_chart_renders():
    collector = MetricsCollector()
    collector.record_chart_render("heatmap")
    collector.record_chart_render("heatmap")
    collector.record_chart_render("growth")

    summary = collector.get_summary()
    assert summary["charts_heatmap_total"] == 2
    assert summary["charts_growth_total"] == 1
    assert 'charts_rendered_total{kind="growth"} 1' in collector.get_prometheus_format()


def test_json_formatter_includes_extra_and_request_id():
    record = logging.LogRecord(
        name="services.heatmap.grid_builder", level=logging.INFO, pathname=__file__, lineno=1,
        msg="Heatmap grid built", args=(), exc_info=None,
    )
    record.year = 2024

    set_request_id("abc12345")
    try:
        payload = json.loads(JSONFormatter().format(record))
    finally:
        clear_request_id()

    assert payload["message"] == "Heatmap grid built"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "abc12345"
    assert payload["extra"]["year"] == 2024
