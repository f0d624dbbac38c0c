"""
Graph package for family metrics visualization.

This package contains:
- GraphService: Public orchestration layer for rendering charts to HTML
- PlotlyBuilder: Plotly-specific figure construction

Usage:
    from services.graph import GraphService

    service = GraphService()
    html = service.generate_heatmap_html(grid, single_child=False)
"""

from services.graph.graph_service import GraphService
from services.graph.plotly_builder import PlotlyBuilder

__all__ = [
    'GraphService',
    'PlotlyBuilder',
]
