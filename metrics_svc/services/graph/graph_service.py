"""
Service layer for rendering family metrics charts as standalone HTML.

Features:
- Illness heatmap: GitHub-style calendar grid, theme-aware
- Growth chart: single-child gaps or multi-child overlays on dual Y axes
- Legend strip generated from the same color function as the cells

This module orchestrates transform output and Plotly figure construction.
Grid layout and coloring are delegated to the heatmap package, series
grouping and axis domains to the growth package, and figure construction
to PlotlyBuilder.
"""

import logging
from typing import Optional

import plotly.io as pio

from services.graph.plotly_builder import THEME_LAYOUT, PlotlyBuilder
from services.growth import SeriesOutput
from services.heatmap import SEVERITY_MAX, HeatmapGrid

logger = logging.getLogger(__name__)

DIV_ID = "metrics-graph"


# =============================================================================
# GRAPH SERVICE
# =============================================================================

class GraphService:
    """
    Service for generating interactive HTML charts from transform output.

    The service only renders: every color, domain and grouping decision has
    already been made by the transforms that produced its input.
    """

    def __init__(self, plotly_builder: Optional[PlotlyBuilder] = None):
        """
        Initialize GraphService.

        Args:
            plotly_builder: Optional builder for Plotly figure construction.
                           If not provided, a default instance is created.
        """
        self._builder = plotly_builder or PlotlyBuilder()

    def generate_heatmap_html(
        self,
        grid: HeatmapGrid,
        single_child: bool,
        title: str = "Illness Days",
        severity_max: float = SEVERITY_MAX,
    ) -> str:
        """
        Generate complete HTML with the illness heatmap for one year.

        severity_max is the ceiling shown in single-child tooltips.
        """
        fig = self._builder.create_figure()
        self._builder.add_heatmap_cells(fig, grid, single_child, severity_max=severity_max)
        self._builder.apply_heatmap_layout(fig, grid, title)

        logger.debug("Heatmap chart rendered",
                     extra={'year': grid.year, 'cells': len(grid.populated_cells)})

        html_content = pio.to_html(
            fig,
            include_plotlyjs='cdn',
            config=self._builder.get_mobile_config(filename=f"illness_{grid.year}"),
            div_id=DIV_ID,
        )
        return self._builder.inject_page_css(html_content, THEME_LAYOUT[grid.theme]['paper'])

    def generate_growth_html(self, output: SeriesOutput, title: str = "Growth") -> str:
        """Generate complete HTML with the growth chart for one metric selection."""
        if output.is_empty():
            return self._generate_empty_graph(title, "Record a wellness visit to see growth trends")

        fig = self._builder.create_figure()
        self._builder.add_growth_traces(fig, output)
        self._builder.apply_growth_layout(fig, output, title)

        logger.debug(
            "Growth chart rendered",
            extra={'metric': output.metric.value, 'multi_child': output.multi_child,
                   'traces': len(fig.data)}
        )

        html_content = pio.to_html(
            fig,
            include_plotlyjs='cdn',
            config=self._builder.get_mobile_config(filename="growth"),
            div_id=DIV_ID,
        )
        return self._builder.inject_page_css(html_content)

    def _generate_empty_graph(self, title: str, message: str) -> str:
        """Generate styled placeholder chart when there is nothing to plot."""
        fig = self._builder.create_figure()
        self._builder.apply_empty_layout(fig, title, message)

        html = pio.to_html(
            fig,
            include_plotlyjs='cdn',
            config=self._builder.get_mobile_config()
        )
        return self._builder.inject_page_css(html)
