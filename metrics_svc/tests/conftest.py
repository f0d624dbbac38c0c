"""
Shared pytest fixtures for transform and API tests.

Key patterns:

1. Fixed reference date: Heatmap windows depend on "today", so tests pass
   an explicit date instead of reading the clock
2. DI Override: Use app.dependency_overrides to inject test services
3. Point factory: Growth points are built with keyword defaults so each
   test only spells out what it checks

Fixture Hierarchy:
    services → test_app → client
"""
from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core import dependencies as deps
from core.exceptions import setup_exception_handlers
from services.graph import GraphService
from services.growth import GrowthPoint, GrowthSeriesAggregator, MetricReading
from services.heatmap import CalendarGridBuilder


@pytest.fixture
def reference_today():
    """A fixed 'today' well after the 2024 test year."""
    return date(2025, 6, 1)


@pytest.fixture
def grid_builder():
    """Create a CalendarGridBuilder instance."""
    return CalendarGridBuilder()


@pytest.fixture
def growth_aggregator():
    """Create a GrowthSeriesAggregator with the default padding."""
    return GrowthSeriesAggregator(padding_ratio=0.1)


@pytest.fixture
def graph_service():
    """Create a GraphService instance."""
    return GraphService()


@pytest.fixture
def make_point():
    """
    Factory for GrowthPoints.

    Usage:
        make_point(1, child_id=1, age_months=6, weight=16.0, weight_pct=50)
    """
    def _make(
        visit_id,
        child_id=1,
        age_months=0,
        visit_date=date(2024, 1, 1),
        child_name=None,
        weight=None,
        height=None,
        head=None,
        bmi=None,
        weight_pct=None,
        height_pct=None,
        head_pct=None,
        bmi_pct=None,
    ):
        return GrowthPoint(
            visit_id=visit_id,
            child_id=child_id,
            age_months=age_months,
            visit_date=visit_date,
            child_name=child_name if child_name is not None else f"Child {child_id}",
            weight=MetricReading(weight, weight_pct),
            height=MetricReading(height, height_pct),
            head_circumference=MetricReading(head, head_pct),
            bmi=MetricReading(bmi, bmi_pct),
        )
    return _make


@pytest.fixture
def test_app(grid_builder, growth_aggregator, graph_service):
    """
    Create a FastAPI test app with dependency overrides.

    This fixture creates a full FastAPI app and overrides the DI dependencies
    to use test instances. This approach:
    - Uses the real routers (testing actual endpoint code)
    - Injects test services via dependency_overrides
    - Registers exception handlers for proper error response testing
    """
    from api.routers import health_router, heatmap_router, growth_router, meta_router

    app = FastAPI(title="Family Metrics Service API Test")

    # Register exception handlers (same as production)
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_grid_builder] = lambda: grid_builder
    app.dependency_overrides[deps.get_growth_aggregator] = lambda: growth_aggregator
    app.dependency_overrides[deps.get_graph_service] = lambda: graph_service

    # Include the real routers (not test copies)
    app.include_router(health_router)
    app.include_router(heatmap_router)
    app.include_router(growth_router)
    app.include_router(meta_router)

    yield app

    # Cleanup: Clear dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)
