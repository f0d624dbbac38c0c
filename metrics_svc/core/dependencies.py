"""
FastAPI Dependency Injection configuration for the Family Metrics Service.

Every transform service is stateless, so each dependency simply constructs
(or returns a shared) instance configured from settings. Routers never
instantiate services themselves, which keeps them replaceable in tests.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (grid builder, series aggregator, graph service)
         ↓
    Core (metric registry, color scale, settings)

Usage in Routers:
    from core.dependencies import get_grid_builder

    @router.post("/grid")
    async def build_grid(
        request: HeatmapGridRequest,
        builder: CalendarGridBuilder = Depends(get_grid_builder)
    ):
        ...

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_graph_service] = lambda: fake_graph_service
"""
import logging

from core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_grid_builder() -> "CalendarGridBuilder":
    """
    Get a CalendarGridBuilder instance.

    Returns:
        CalendarGridBuilder: Builder for year-aligned heatmap grids.
    """
    from services.heatmap import CalendarGridBuilder

    return CalendarGridBuilder()


def get_growth_aggregator() -> "GrowthSeriesAggregator":
    """
    Get a GrowthSeriesAggregator configured with the axis padding ratio.

    Returns:
        GrowthSeriesAggregator: Aggregator for growth chart series.
    """
    from services.growth import GrowthSeriesAggregator

    return GrowthSeriesAggregator(padding_ratio=settings.metrics_svc_axis_padding_ratio)


def get_graph_service() -> "GraphService":
    """
    Get a GraphService instance.

    GraphService is stateless and only renders transform output.

    Returns:
        GraphService: Service for rendering charts to HTML.
    """
    from services.graph import GraphService

    return GraphService()


# =============================================================================
# DEPENDENCY OVERRIDE HELPERS (FOR TESTING)
# =============================================================================

class DependencyOverrides:
    """
    Context manager for temporarily overriding dependencies in tests.

    Usage:
        with DependencyOverrides(app) as overrides:
            overrides.set(get_graph_service, lambda: fake_service)
            # Run tests with overridden dependency
        # Dependencies restored after context exits
    """

    def __init__(self, app):
        self.app = app
        self._original_overrides = {}

    def __enter__(self):
        self._original_overrides = self.app.dependency_overrides.copy()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.app.dependency_overrides = self._original_overrides

    def set(self, dependency, override):
        """Set a dependency override."""
        self.app.dependency_overrides[dependency] = override

    def clear(self):
        """Clear all overrides."""
        self.app.dependency_overrides = self._original_overrides.copy()
