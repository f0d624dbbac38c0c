"""
FastAPI application entry point for the Family Metrics Service API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging for Grafana/Loki
- Request ID Propagation: UUID-based request tracking across logs
- Dependency Injection: Transform services injected via Depends()
- Exception Handling: Consistent error responses via setup_exception_handlers()
- CORS Middleware: Allows cross-origin requests from chart frontends
- Lifespan Management: Logging setup and metric registry loading
- Metrics Collection: In-memory metrics for Prometheus scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack (order matters!)                          │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics endpoints  │
    │    ├── heatmap.py    - Illness calendar grids               │
    │    ├── growth.py     - Growth points, series, velocity      │
    │    └── meta.py       - Metric definitions & themes          │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── CalendarGridBuilder     - Week grid projection       │
    │    ├── GrowthSeriesAggregator  - Series & axis domains      │
    │    └── GraphService            - Plotly HTML rendering      │
    ├─────────────────────────────────────────────────────────────┤
    │  Core (core/)                                               │
    │    └── metric_registry  ← metrics.yaml                      │
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD, settings
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.metric_registry import load_registry
from core.middleware import LoggingMiddleware
from api.routers import health_router, heatmap_router, growth_router, meta_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.

    Startup:
        - Configures structured JSON logging
        - Loads and validates the metric registry (fails fast on bad config)

    Shutdown:
        - Logs shutdown message
    """
    # =========================================================================
    # STARTUP
    # =========================================================================

    # Configure structured logging FIRST (before any other logging)
    setup_logging(level=settings.log_level, json_format=settings.log_format.lower() != "text")

    logger = logging.getLogger(__name__)
    logger.info("Starting Family Metrics Service API...")

    metric_count = load_registry()
    logger.info(
        "Metric registry loaded",
        extra={"metrics": metric_count, "default_theme": settings.metrics_svc_default_theme}
    )

    yield  # Application runs here

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    logger.info("Family Metrics Service API shutting down...")


# Create FastAPI app with lifespan context
app = FastAPI(
    title="Family Metrics Service API",
    description="Chart transforms for family health tracking: illness calendar heatmaps, "
                "growth series with per-child overlays, and color scales.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
# MetricsServiceError and its subclasses are converted to JSON error responses.
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Middleware is executed in REVERSE order of registration.
# Last registered = first to handle request, last to handle response.

# 1. CORS Middleware (innermost - closest to routes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging Middleware (outermost - captures all requests)
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(heatmap_router)
app.include_router(growth_router)
app.include_router(meta_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
