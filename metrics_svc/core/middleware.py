"""
FastAPI middleware for observability.

This module provides:
- Request/Response logging with request_id propagation
- Request timing for latency tracking
- In-memory metrics collection, including rendered chart counts

Design Choices:
- Starlette BaseHTTPMiddleware, no external metrics backend
- In-memory metrics with fixed-size buffers (no unbounded growth)
- Request ID in response headers for debugging

Middleware Stack Order (in main.py):
    1. LoggingMiddleware (outermost - captures everything)
    2. CORS Middleware
    3. Application routes
"""

import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging_config import set_request_id, clear_request_id

logger = logging.getLogger(__name__)

CHART_KINDS = ("heatmap", "growth")


# =============================================================================
# IN-MEMORY METRICS COLLECTOR
# =============================================================================
# Fixed-size deques keep memory bounded.
# Metrics are exposed via /metrics endpoint for Prometheus scraping.

@dataclass
class RequestMetrics:
    """Container for a single request's metrics."""
    timestamp: datetime
    method: str
    path: str
    status_code: int
    duration_ms: float
    request_id: str


@dataclass
class MetricsCollector:
    """
    In-memory metrics collector with fixed-size buffer.

    Stores recent requests for latency percentile calculation and counts
    HTML charts rendered per kind.
    """
    max_history: int = 1000

    # Request history for percentile calculations
    _requests: Deque[RequestMetrics] = field(default_factory=lambda: deque(maxlen=1000))

    total_requests: int = 0
    total_2xx: int = 0
    total_4xx: int = 0
    total_5xx: int = 0

    charts_rendered: Dict[str, int] = field(default_factory=lambda: {kind: 0 for kind in CHART_KINDS})

    def record_request(self, metrics: RequestMetrics) -> None:
        """Record a completed request's metrics."""
        self._requests.append(metrics)
        self.total_requests += 1

        if 200 <= metrics.status_code < 300:
            self.total_2xx += 1
        elif 400 <= metrics.status_code < 500:
            self.total_4xx += 1
        elif 500 <= metrics.status_code < 600:
            self.total_5xx += 1

    def record_chart_render(self, kind: str) -> None:
        """Record one rendered HTML chart of the given kind."""
        self.charts_rendered[kind] = self.charts_rendered.get(kind, 0) + 1

    def get_latency_percentiles(self) -> Dict[str, float]:
        """
        Calculate latency percentiles from recent requests.

        Returns p50, p95, p99 latencies in milliseconds.
        Returns 0 if no data available.
        """
        if not self._requests:
            return {"p50": 0, "p95": 0, "p99": 0}

        durations = sorted(r.duration_ms for r in self._requests)
        n = len(durations)

        def percentile(p: float) -> float:
            """Get the value at percentile p (0-100)."""
            idx = int(n * p / 100)
            return durations[min(idx, n - 1)]

        return {
            "p50": round(percentile(50), 2),
            "p95": round(percentile(95), 2),
            "p99": round(percentile(99), 2),
        }

    def get_summary(self) -> Dict:
        """Get metrics summary for the JSON metrics endpoint."""
        latencies = self.get_latency_percentiles()

        return {
            "http_requests_total": self.total_requests,
            "http_requests_2xx_total": self.total_2xx,
            "http_requests_4xx_total": self.total_4xx,
            "http_requests_5xx_total": self.total_5xx,
            "http_request_duration_ms_p50": latencies["p50"],
            "http_request_duration_ms_p95": latencies["p95"],
            "http_request_duration_ms_p99": latencies["p99"],
            "charts_heatmap_total": self.charts_rendered.get("heatmap", 0),
            "charts_growth_total": self.charts_rendered.get("growth", 0),
        }

    def get_prometheus_format(self) -> str:
        """
        Export metrics in Prometheus text format.

        This format can be scraped directly by Prometheus/Grafana Agent.
        """
        summary = self.get_summary()
        lines = [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            f'http_requests_total {summary["http_requests_total"]}',
            "",
            "# HELP http_requests_by_status HTTP requests by status category",
            "# TYPE http_requests_by_status counter",
            f'http_requests_by_status{{status="2xx"}} {summary["http_requests_2xx_total"]}',
            f'http_requests_by_status{{status="4xx"}} {summary["http_requests_4xx_total"]}',
            f'http_requests_by_status{{status="5xx"}} {summary["http_requests_5xx_total"]}',
            "",
            "# HELP http_request_duration_ms Request duration in milliseconds",
            "# TYPE http_request_duration_ms gauge",
            f'http_request_duration_ms{{quantile="0.5"}} {summary["http_request_duration_ms_p50"]}',
            f'http_request_duration_ms{{quantile="0.95"}} {summary["http_request_duration_ms_p95"]}',
            f'http_request_duration_ms{{quantile="0.99"}} {summary["http_request_duration_ms_p99"]}',
            "",
            "# HELP charts_rendered_total HTML charts rendered",
            "# TYPE charts_rendered_total counter",
        ]
        lines.extend(
            f'charts_rendered_total{{kind="{kind}"}} {count}'
            for kind, count in sorted(self.charts_rendered.items())
        )
        return "\n".join(lines) + "\n"


# Global metrics collector instance, shared across all requests
metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return metrics_collector


# =============================================================================
# LOGGING MIDDLEWARE
# =============================================================================

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/Response logging middleware with request_id propagation.

    Features:
    - Generates unique request_id for each request
    - Logs request start and completion with structured JSON
    - Records latency metrics
    - Adds X-Request-ID header to responses for debugging
    """

    # Paths to exclude from detailed logging (reduce noise)
    EXCLUDED_PATHS = {"/health", "/ready", "/metrics", "/metrics/json", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with logging and metrics collection."""
        request_id = str(uuid.uuid4())[:8]
        set_request_id(request_id)

        method = request.method
        path = request.url.path
        start_time = time.perf_counter()

        if path not in self.EXCLUDED_PATHS:
            logger.info(
                "Request started",
                extra={
                    "method": method,
                    "path": path,
                    "query": str(request.query_params) if request.query_params else None,
                }
            )

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    "Request failed with exception",
                    extra={"method": method, "path": path, "error": str(e)}
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            status_code = response.status_code

            metrics_collector.record_request(RequestMetrics(
                timestamp=datetime.now(timezone.utc),
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
                request_id=request_id,
            ))

            if path not in self.EXCLUDED_PATHS:
                log_level = logging.WARNING if status_code >= 400 else logging.INFO
                logger.log(
                    log_level,
                    "Request completed",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                )
        finally:
            clear_request_id()

        response.headers["X-Request-ID"] = request_id
        return response
