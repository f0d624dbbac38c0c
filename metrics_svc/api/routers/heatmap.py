"""
Heatmap router - illness calendar grid endpoints.

Builds GitHub-style year grids from per-day illness counts, aggregates
illness spans into those counts, and renders the grid as an HTML chart.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from core.config import DEFAULT_SEVERITY, DEFAULT_THEME, MAX_YEAR, MIN_YEAR, SEVERITY_MAX
from core.datetime_utils import utc_today
from core.dependencies import get_graph_service, get_grid_builder
from core.exceptions import InvalidYearError
from core.middleware import get_metrics_collector
from schemas.heatmap import (
    GridCellResponse,
    HeatmapDataResponse,
    HeatmapDayResponse,
    HeatmapGridRequest,
    HeatmapGridResponse,
    IllnessDaysRequest,
    LegendResponse,
)
from services.color_scale import Theme, legend_colors
from services.graph import GraphService
from services.heatmap import (
    DAY_LABELS,
    CalendarGridBuilder,
    HeatmapGrid,
    IllnessSpan,
    aggregate_illness_days,
    describe_cell,
    heatmap_days_from_records,
    resolve_max_for_color,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/heatmap",
    tags=["Heatmap"],
)


# =============================================================================
# HELPERS
# =============================================================================

def _validate_year(year: int) -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidYearError(year=year, min_year=MIN_YEAR, max_year=MAX_YEAR)


def _build_colored_grid(request: HeatmapGridRequest, builder: CalendarGridBuilder) -> HeatmapGrid:
    """Shared by the JSON and HTML endpoints."""
    _validate_year(request.year)

    days = heatmap_days_from_records(day.model_dump() for day in request.days)
    # Days outside the rendering window are padding and never set the scale.
    window_start, window_end = builder.rendering_window(request.year, request.today or utc_today())
    in_window = [day.count for day in days if window_start <= day.date <= window_end]
    max_for_color = resolve_max_for_color(
        single_child=request.single_child,
        total_children=request.total_children,
        max_count=max(in_window, default=0),
        severity_max=SEVERITY_MAX,
    )
    return builder.build_heatmap(
        request.year,
        days,
        max_for_color=max_for_color,
        theme=request.theme or Theme(DEFAULT_THEME),
        today=request.today,
    )


def _grid_to_response(grid: HeatmapGrid, single_child: bool) -> HeatmapGridResponse:
    """Convert an internal HeatmapGrid to the API response model."""
    weeks = [
        [
            GridCellResponse(
                week=cell.week,
                day_of_week=cell.day_of_week,
                date=cell.date.isoformat() if cell.date else None,
                count=cell.count,
                contributors=list(cell.contributors),
                color=cell.color.to_css() if cell.color else None,
                label=describe_cell(cell, single_child, severity_max=SEVERITY_MAX),
            )
            for cell in week
        ]
        for week in grid.weeks
    ]
    return HeatmapGridResponse(
        year=grid.year,
        theme=grid.theme,
        max_for_color=grid.max_for_color,
        day_labels=list(DAY_LABELS),
        weeks=weeks,
        legend=[swatch.to_css() for swatch in grid.legend],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/grid",
    response_model=HeatmapGridResponse,
    summary="Build heatmap grid",
    description="Project sparse per-day illness counts onto a year of 7-day weeks (Sunday first) "
                "and color every in-range cell. Days outside Jan 1 to min(Dec 31, today) are padding."
)
async def build_heatmap_grid(
    request: HeatmapGridRequest,
    builder: CalendarGridBuilder = Depends(get_grid_builder),
) -> HeatmapGridResponse:
    """
    Build a colored heatmap grid.

    Request Body:
    - **year**: Calendar year (within the configured range)
    - **days**: Sparse list of {date, count, children}; malformed dates are skipped
    - **single_child**: Counts are severities scaled against the severity ceiling
    - **total_children**: Family size used as the color ceiling for head counts
    - **theme**: light or dark

    Raises:
    - 400: Year outside the configured range
    """
    grid = _build_colored_grid(request, builder)
    logger.info(
        "Heatmap grid built",
        extra={"year": grid.year, "weeks": len(grid.weeks), "max_for_color": grid.max_for_color}
    )
    return _grid_to_response(grid, request.single_child)


@router.post(
    "/illness-days",
    response_model=HeatmapDataResponse,
    summary="Aggregate illness spans",
    description="Turn illness spans into per-day counts: distinct children sick per day, "
                "or the highest severity per day when child_id is given."
)
async def aggregate_illnesses(request: IllnessDaysRequest) -> HeatmapDataResponse:
    """
    Aggregate illness spans into heatmap days for one year.

    Raises:
    - 400: Year outside the configured range
    """
    _validate_year(request.year)

    spans = [
        IllnessSpan(
            child_id=span.child_id,
            start_date=span.start_date,
            end_date=span.end_date,
            severity=span.severity,
        )
        for span in request.illnesses
    ]
    data = aggregate_illness_days(
        spans,
        request.year,
        today=request.today,
        child_id=request.child_id,
        default_severity=DEFAULT_SEVERITY,
    )
    return HeatmapDataResponse(
        year=data.year,
        days=[
            HeatmapDayResponse(date=day.date.isoformat(), count=day.count, children=list(day.contributors))
            for day in data.days
        ],
        total_days=data.total_days,
        max_count=data.max_count,
    )


@router.get(
    "/legend",
    response_model=LegendResponse,
    summary="Legend swatches",
    description="The five legend colors (0%, 25%, 50%, 75%, 100% of max) for a color ceiling and theme."
)
async def get_legend(
    max_count: float = Query(1, alias="max", description="Count rendered at full intensity"),
    theme: Optional[Theme] = Query(None, description="light or dark"),
) -> LegendResponse:
    """Get legend swatches generated with the same mapping as the cells."""
    theme = theme or Theme(DEFAULT_THEME)
    return LegendResponse(
        max_for_color=max_count,
        theme=theme,
        colors=[swatch.to_css() for swatch in legend_colors(max_count, theme)],
    )


@router.post(
    "/chart",
    response_class=HTMLResponse,
    summary="Render heatmap chart",
    description="Render the heatmap grid as a standalone interactive HTML page (Plotly)."
)
async def render_heatmap_chart(
    request: HeatmapGridRequest,
    builder: CalendarGridBuilder = Depends(get_grid_builder),
    graph_service: GraphService = Depends(get_graph_service),
) -> HTMLResponse:
    """
    Render the heatmap as HTML.

    Same request body as /grid, plus an optional title.

    Raises:
    - 400: Year outside the configured range
    """
    grid = _build_colored_grid(request, builder)
    html = graph_service.generate_heatmap_html(
        grid,
        single_child=request.single_child,
        title=request.title or "Illness Days",
        severity_max=SEVERITY_MAX,
    )
    get_metrics_collector().record_chart_render("heatmap")
    return HTMLResponse(content=html, status_code=200)
