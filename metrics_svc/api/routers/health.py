"""
Health, readiness, and metrics endpoints for operational visibility.

This module provides:
- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (does the metric registry load?)
- /metrics: Prometheus-compatible metrics for scraping

Design Choices:
- No authentication required (internal/infrastructure use)
- Lightweight dependency checks (non-blocking)
- Machine-readable JSON responses
- Prometheus text format for metrics
"""
import logging
import time
from typing import Any, Dict, List

from fastapi import APIRouter, Response
from pydantic import BaseModel

from core.datetime_utils import utc_timestamp
from core.exceptions import RegistryConfigError
from core.metric_registry import load_registry
from core.middleware import get_metrics_collector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy" or "unhealthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok" or "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready" or "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float
    charts_heatmap_total: int
    charts_growth_total: int


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Check if the application is running. Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    """
    Liveness probe - is the application process alive?

    Always returns 200 if the app is running. Does NOT check the
    registry (that's what /ready is for).
    """
    return HealthResponse(
        status="healthy",
        version=SERVICE_VERSION,
        timestamp=utc_timestamp(),
    )


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

async def _check_metric_registry() -> DependencyStatus:
    """
    Check that metrics.yaml loads and validates.

    The registry is cached after the first load, so this is cheap.
    """
    start = time.perf_counter()
    try:
        metric_count = load_registry()
        latency_ms = (time.perf_counter() - start) * 1000
        return DependencyStatus(
            name="metric_registry",
            status="ok",
            latency_ms=round(latency_ms, 2),
            message=f"{metric_count} metrics loaded"
        )
    except RegistryConfigError as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.error("Metric registry check failed", extra={"error": e.detail})
        return DependencyStatus(
            name="metric_registry",
            status="unavailable",
            latency_ms=round(latency_ms, 2),
            message=e.detail
        )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Check if the application is ready to serve requests. "
                "Verifies the metric registry loads. Returns 503 if not ready."
)
async def readiness_check(response: Response) -> ReadyResponse:
    """
    Readiness probe - can the application handle requests?

    Returns:
    - 200 with status="ready" if the registry is available
    - 503 with status="not_ready" otherwise
    """
    dependencies = [await _check_metric_registry()]

    if any(d.status == "unavailable" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    else:
        status = "ready"

    return ReadyResponse(
        status=status,
        dependencies=dependencies,
        timestamp=utc_timestamp(),
    )


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Export metrics in Prometheus text format. "
                "Includes HTTP request counts, latency percentiles, and rendered chart counts."
)
async def get_metrics() -> Response:
    """
    Export metrics in Prometheus text format.

    Metrics exposed:
    - http_requests_total: Total request count
    - http_requests_by_status{status="2xx|4xx|5xx"}: Requests by status category
    - http_request_duration_ms{quantile="0.5|0.95|0.99"}: Latency percentiles
    - charts_rendered_total{kind="heatmap|growth"}: HTML charts rendered
    """
    collector = get_metrics_collector()
    prometheus_text = collector.get_prometheus_format()

    return Response(
        content=prometheus_text,
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
    description="Export metrics in JSON format for custom dashboards or API consumers."
)
async def get_metrics_json() -> MetricsResponse:
    """Export metrics in JSON format."""
    collector = get_metrics_collector()
    return MetricsResponse(**collector.get_summary())


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@router.get(
    "/",
    summary="API root",
    description="Root endpoint with basic API information."
)
async def root() -> Dict[str, Any]:
    """
    Root endpoint - basic API information.

    Returns service name, version, and links to documentation.
    """
    return {
        "service": "Family Metrics Service API",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
