"""
Plotly figure builder for family metrics visualization.

Responsibilities:
- Heatmap figure: one square marker per in-range calendar cell
- Growth figure: single-child or multi-child traces on dual Y axes
- Layout configuration, legend strip and empty-state placeholder

This module encapsulates all Plotly-specific figure construction logic,
allowing GraphService to focus on orchestration. It never recomputes
colors, domains or grouping: those come from the transform output.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import plotly.graph_objects as go

from core.datetime_utils import format_age_label
from core.metric_registry import format_metric_value
from services.color_scale import Theme
from services.growth import GrowthMetric, SeriesMode, SeriesOutput
from services.heatmap import DAY_LABELS, SEVERITY_MAX, HeatmapGrid, describe_cell

logger = logging.getLogger(__name__)

MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

# Paper/plot/font colors per theme.
THEME_LAYOUT = {
    Theme.LIGHT: {'paper': '#FAFAFA', 'plot': '#FFFFFF', 'font': '#424242', 'muted': '#9E9E9E'},
    Theme.DARK: {'paper': '#0D1117', 'plot': '#0D1117', 'font': '#C9D1D9', 'muted': '#8B949E'},
}

AXIS_REFS = {'left': 'y', 'right': 'y2'}


class PlotlyBuilder:
    """
    Builder for constructing Plotly figures for family health charts.

    Usage:
        builder = PlotlyBuilder()
        fig = builder.create_figure()
        builder.add_heatmap_cells(fig, grid, single_child=False)
        builder.apply_heatmap_layout(fig, grid, title)
    """

    def create_figure(self) -> go.Figure:
        """Create a new empty Plotly figure."""
        return go.Figure()

    # =========================================================================
    # HEATMAP
    # =========================================================================

    def add_heatmap_cells(
        self,
        fig: go.Figure,
        grid: HeatmapGrid,
        single_child: bool,
        severity_max: float = SEVERITY_MAX,
    ) -> None:
        """
        Add one square marker per in-range cell.

        Padding cells are not drawn, which leaves the partial first and last
        weeks visibly open.
        """
        cells = grid.populated_cells
        fig.add_trace(go.Scatter(
            x=[cell.week for cell in cells],
            y=[cell.day_of_week for cell in cells],
            mode='markers',
            marker=dict(
                symbol='square',
                size=13,
                color=[cell.color.to_css() for cell in cells],
                line=dict(width=1, color='rgba(27,31,35,0.06)'),
            ),
            text=[describe_cell(cell, single_child, severity_max=severity_max) for cell in cells],
            hovertemplate="%{text}<extra></extra>",
            showlegend=False,
        ))

    def apply_heatmap_layout(self, fig: go.Figure, grid: HeatmapGrid, title: str) -> None:
        """
        Calendar layout: Sunday on the top row, month names above their first week.
        """
        colors = THEME_LAYOUT[grid.theme]
        tickvals, ticktext = self._month_ticks(grid)

        fig.update_layout(
            title=dict(
                text=f"<b>{title}</b><br><sup style='color:{colors['muted']}'>{grid.year}</sup>",
                font=dict(size=18, color=colors['font']),
                x=0.5, xanchor='center',
            ),
            xaxis=dict(
                tickvals=tickvals,
                ticktext=ticktext,
                side='top',
                showgrid=False,
                zeroline=False,
                range=[-0.75, len(grid.weeks) - 0.25],
                fixedrange=True,
            ),
            yaxis=dict(
                tickvals=list(range(len(DAY_LABELS))),
                ticktext=list(DAY_LABELS),
                autorange='reversed',  # Sunday (0) at the top
                showgrid=False,
                zeroline=False,
                scaleanchor='x',
                fixedrange=True,
            ),
            height=260,
            margin=dict(l=50, r=20, t=90, b=50),
            paper_bgcolor=colors['paper'],
            plot_bgcolor=colors['plot'],
            font=dict(color=colors['font']),
            hoverlabel=dict(font_size=12),
        )
        self.add_legend_strip(fig, grid)

    def add_legend_strip(self, fig: go.Figure, grid: HeatmapGrid) -> None:
        """Add the "Less ... More" strip built from the grid's legend swatches."""
        colors = THEME_LAYOUT[grid.theme]
        swatches = "".join(
            f"<span style='color:{swatch.to_css()}'>&#9632;</span>" for swatch in grid.legend
        )
        fig.add_annotation(
            text=f"Less {swatches} More",
            xref='paper', yref='paper',
            x=1.0, y=-0.15,
            xanchor='right', yanchor='top',
            showarrow=False,
            font=dict(size=12, color=colors['muted']),
        )

    @staticmethod
    def _month_ticks(grid: HeatmapGrid) -> Tuple[List[int], List[str]]:
        """Label each month at the first week holding one of its days."""
        tickvals: List[int] = []
        ticktext: List[str] = []
        seen_months = set()
        for week in grid.weeks:
            for cell in week:
                if cell.is_padding or cell.date.month in seen_months:
                    continue
                seen_months.add(cell.date.month)
                tickvals.append(cell.week)
                ticktext.append(MONTH_ABBR[cell.date.month - 1])
        return tickvals, ticktext

    # =========================================================================
    # GROWTH
    # =========================================================================

    def add_growth_traces(self, fig: go.Figure, output: SeriesOutput) -> None:
        """Add traces for every visible metric in the output's display mode."""
        if output.multi_child:
            self._add_multi_child_traces(fig, output)
        else:
            self._add_single_child_traces(fig, output)

    def _add_single_child_traces(self, fig: go.Figure, output: SeriesOutput) -> None:
        # Gaps stay gaps: a missing measurement breaks the line.
        measured = [p for p in output.points if p.has_measurements]
        percentile = output.mode == SeriesMode.PERCENTILE

        for metric in output.visible_metrics:
            definition = metric.definition
            values = [p.get(metric, output.mode) for p in measured]
            fig.add_trace(go.Scatter(
                x=[p.age_months for p in measured],
                y=values,
                yaxis=AXIS_REFS[definition.axis],
                name=definition.display_name,
                mode='lines+markers',
                line=dict(width=3, color=definition.color),
                marker=dict(size=9, color=definition.color, line=dict(width=1.5, color='white')),
                connectgaps=output.connect_gaps,
                text=[self._hover_text(p.age_months, v, metric, percentile) for v, p in zip(values, measured)],
                hovertemplate="%{text}<extra></extra>",
            ))

    def _add_multi_child_traces(self, fig: go.Figure, output: SeriesOutput) -> None:
        # Lines connect across ages where a child has no measurement.
        percentile = output.mode == SeriesMode.PERCENTILE
        ages = [row.age_months for row in output.rows]

        for metric in output.visible_metrics:
            definition = metric.definition
            for child in output.children:
                values = [row.get(metric, child.id) for row in output.rows]
                fig.add_trace(go.Scatter(
                    x=ages,
                    y=values,
                    yaxis=AXIS_REFS[definition.axis],
                    name=f"{child.name} {definition.display_name}",
                    legendgroup=str(child.id),
                    mode='lines+markers',
                    line=dict(width=2.5, color=child.color, dash=definition.dash),
                    marker=dict(size=7, color=child.color),
                    connectgaps=output.connect_gaps,
                    text=[
                        f"{child.name}<br>{self._hover_text(age, v, metric, percentile)}"
                        for age, v in zip(ages, values)
                    ],
                    hovertemplate="%{text}<extra></extra>",
                ))

    @staticmethod
    def _hover_text(age_months: int, value: Optional[float], metric: GrowthMetric, percentile: bool) -> str:
        formatted = format_metric_value(value, metric.value, percentile=percentile)
        suffix = " percentile" if percentile and value is not None else ""
        return f"<b>{metric.definition.display_name}</b><br>Age {format_age_label(age_months)}<br>{formatted}{suffix}"

    def apply_growth_layout(self, fig: go.Figure, output: SeriesOutput, title: str) -> None:
        """
        Apply layout with dual Y axes set to the computed domains.
        """
        colors = THEME_LAYOUT[Theme.LIGHT]
        ages = sorted({p.age_months for p in output.points})
        left_title, right_title = self._axis_titles(output)

        fig.update_layout(
            title=dict(
                text=f"<b>{title}</b>",
                font=dict(size=18),
                x=0.5, xanchor='center',
            ),
            xaxis=dict(
                title=dict(text="Age", font=dict(size=11, color=colors['muted'])),
                tickvals=ages,
                ticktext=[format_age_label(age) for age in ages],
                showgrid=True,
                gridcolor='rgba(0,0,0,0.06)',
            ),
            yaxis=dict(
                title=dict(text=left_title, font=dict(size=11, color=colors['muted'])),
                side='left',
                range=output.left.as_list(),
                showgrid=True,
                gridcolor='rgba(0,0,0,0.06)',
            ),
            yaxis2=dict(
                title=dict(text=right_title, font=dict(size=11, color=colors['muted'])),
                side='right',
                overlaying='y',
                range=output.right.as_list(),
                showgrid=False,
            ),
            hovermode='closest',
            legend=dict(
                orientation='h',
                x=0.5, xanchor='center',
                y=-0.15, yanchor='top',
                font=dict(size=11, color=colors['font']),
            ),
            height=600,
            margin=dict(l=60, r=60, t=80, b=120),
            template='plotly_white',
            paper_bgcolor=colors['paper'],
            plot_bgcolor=colors['plot'],
        )

    @staticmethod
    def _axis_titles(output: SeriesOutput) -> Tuple[str, str]:
        if output.mode == SeriesMode.PERCENTILE:
            return "Percentile", "Percentile"
        titles = []
        for axis in ('left', 'right'):
            names = [
                f"{m.definition.display_name} ({m.definition.unit})" if m.definition.unit
                else m.definition.display_name
                for m in output.visible_metrics if m.axis == axis
            ]
            titles.append(" / ".join(names))
        return titles[0], titles[1]

    # =========================================================================
    # SHARED
    # =========================================================================

    def apply_empty_layout(self, fig: go.Figure, title: str, message: str) -> None:
        """Apply layout for an empty chart (nothing to plot)."""
        fig.update_layout(
            title=dict(
                text=f"<b>{title}</b>",
                font=dict(size=20),
                x=0.5, xanchor='center'
            ),
            xaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
            yaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
            height=450,
            template='plotly_white',
            paper_bgcolor='#FAFAFA',
            plot_bgcolor='#FFFFFF',
            annotations=[
                dict(text='<b>No measurements yet</b>', xref='paper', yref='paper',
                     x=0.5, y=0.55, showarrow=False, font=dict(size=18, color='#424242')),
                dict(text=message, xref='paper', yref='paper', x=0.5, y=0.42,
                     showarrow=False, font=dict(size=14, color='#757575')),
            ]
        )

    def get_mobile_config(self, filename: str = 'family_metrics') -> Dict[str, Any]:
        """Mobile-optimized Plotly config."""
        return {
            'displayModeBar': True,
            'displaylogo': False,
            'modeBarButtonsToRemove': ['lasso2d', 'select2d', 'autoScale2d'],
            'responsive': True,
            'doubleClick': 'reset',
            'toImageButtonOptions': {
                'format': 'png',
                'filename': filename,
                'height': 800,
                'width': 1200,
                'scale': 2
            },
        }

    def inject_page_css(self, html_content: str, background: str = '#FAFAFA') -> str:
        """Inject responsive page CSS around the chart div."""
        style = f"""
        <style>
            * {{ box-sizing: border-box; }}
            body {{
                margin: 0;
                padding: 8px;
                background: {background};
                font-family: -apple-system, system-ui, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
                -webkit-font-smoothing: antialiased;
            }}
            #metrics-graph {{
                width: 100% !important;
                max-width: 100%;
                border-radius: 10px;
            }}
            .js-plotly-plot {{ width: 100% !important; }}
            @media (max-width: 768px) {{
                body {{ padding: 4px; }}
                .modebar {{ display: none !important; }}
                .legend .legendtext {{ font-size: 10px !important; }}
            }}
        </style>
        """
        return html_content.replace('<body>', f'<body>{style}')

