"""
Service layer for the chart transforms.

Subpackages:
- services.heatmap: calendar grid construction and illness aggregation
- services.growth: growth point derivation, series aggregation, velocity
- services.graph: Plotly rendering of transform output

The color scale lives in services.color_scale and is shared by the heatmap
grid, its legend and the rendered chart.
"""
from services.heatmap import CalendarGridBuilder
from services.growth import GrowthSeriesAggregator

__all__ = [
    "CalendarGridBuilder",
    "GrowthSeriesAggregator",
]
