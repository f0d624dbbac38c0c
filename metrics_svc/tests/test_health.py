"""
Tests for health, readiness, and metrics endpoints.

These tests verify the observability endpoints work correctly:
- /health: Liveness probe
- /ready: Readiness probe with the metric registry check
- /metrics: Prometheus-format metrics
- /: Root endpoint with API info
"""
import api.routers.health as health_module
from core.exceptions import RegistryConfigError


# =============================================================================
# ROOT ENDPOINT TESTS
# =============================================================================

def test_root_endpoint(client):
    """Test the root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Family Metrics Service API"
    assert data["version"] == "1.0.0"
    # Verify links to other endpoints
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


# =============================================================================
# HEALTH ENDPOINT TESTS (LIVENESS)
# =============================================================================

def test_health_endpoint(client):
    """Test the /health liveness endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


# =============================================================================
# READINESS ENDPOINT TESTS
# =============================================================================

def test_ready_endpoint(client):
    """Test the /ready readiness endpoint with a valid registry."""
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert "timestamp" in data

    registry = data["dependencies"][0]
    assert registry["name"] == "metric_registry"
    assert registry["status"] == "ok"
    assert registry["message"] == "4 metrics loaded"


def test_ready_endpoint_registry_unavailable(client, monkeypatch):
    """Test /ready returns 503 when the registry fails to load."""
    def _broken():
        raise RegistryConfigError("Metric registry failed to load: bad yaml")

    monkeypatch.setattr(health_module, "load_registry", _broken)

    response = client.get("/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["dependencies"][0]["status"] == "unavailable"


# =============================================================================
# METRICS ENDPOINT TESTS
# =============================================================================

def test_metrics_endpoint(client):
    """Test the /metrics Prometheus endpoint."""
    response = client.get("/metrics")
    assert response.status_code == 200
    # Check content type is Prometheus text format
    assert "text/plain" in response.headers.get("content-type", "")
    content = response.text
    assert "http_requests_total" in content
    assert "http_request_duration_ms" in content
    assert 'charts_rendered_total{kind="heatmap"}' in content


def test_metrics_json_endpoint(client):
    """Test the /metrics/json endpoint."""
    response = client.get("/metrics/json")
    assert response.status_code == 200
    data = response.json()
    assert "http_requests_total" in data
    assert "http_requests_2xx_total" in data
    assert "http_requests_4xx_total" in data
    assert "http_requests_5xx_total" in data
    assert "http_request_duration_ms_p50" in data
    assert "http_request_duration_ms_p95" in data
    assert "charts_heatmap_total" in data
    assert "charts_growth_total" in data
