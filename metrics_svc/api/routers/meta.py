"""
Meta router - growth metric definitions and heatmap theme endpoints.

This router exposes the metric registry (metrics.yaml) so chart clients can
read display names, units, axes, colors and theme palettes instead of
hardcoding them.

No authentication required for read-only metadata access.
"""
import logging
from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from core.exceptions import UnknownMetricError
from core.metric_registry import (
    MetricDefinition,
    get_child_palette,
    get_default_visible_metrics,
    get_metric,
    list_metrics,
    list_theme_palettes,
)
from services.color_scale import RGB, legend_colors, Theme

logger = logging.getLogger(__name__)

THEME_NAMES = {theme.value for theme in Theme}

router = APIRouter(
    prefix="/api/v1/meta",
    tags=["Metadata"],
)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class MetricDefinitionResponse(BaseModel):
    """Single metric definition for API response."""
    canonical_name: str
    display_name: str
    column_prefix: str
    color: str
    unit: str
    axis: str  # left or right
    precision: int
    dash: str
    description: str
    aliases: List[str]


class MetricsListResponse(BaseModel):
    """Response containing all metric definitions."""
    metrics: List[MetricDefinitionResponse]
    default_visible: List[str]
    child_palette: List[str]


class ThemePaletteResponse(BaseModel):
    """Heatmap gradient for one theme, with its default legend."""
    name: str
    empty: str
    faint: str
    bright: str
    legend: List[str]


class ThemesResponse(BaseModel):
    themes: Dict[str, ThemePaletteResponse]


def _metric_to_response(metric: MetricDefinition) -> MetricDefinitionResponse:
    """Convert internal MetricDefinition to API response model."""
    return MetricDefinitionResponse(
        canonical_name=metric.canonical_name,
        display_name=metric.display_name,
        column_prefix=metric.column_prefix,
        color=metric.color,
        unit=metric.unit,
        axis=metric.axis,
        precision=metric.precision,
        dash=metric.dash,
        description=metric.description,
        aliases=list(metric.aliases),
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/metrics",
    response_model=MetricsListResponse,
    summary="List all metric definitions",
    description="Get all growth metric definitions from the central registry (metrics.yaml), "
                "plus the default visible metrics and the child color palette."
)
async def list_metric_definitions() -> MetricsListResponse:
    """
    Get all metric definitions.

    Returns:
    - metrics: List of all metric definitions with full metadata
    - default_visible: Metric canonical names shown by default
    - child_palette: Line colors assigned to children in id order
    """
    return MetricsListResponse(
        metrics=[_metric_to_response(m) for m in list_metrics().values()],
        default_visible=list(get_default_visible_metrics()),
        child_palette=list(get_child_palette()),
    )


@router.get(
    "/metrics/{metric_name}",
    response_model=MetricDefinitionResponse,
    summary="Get single metric definition",
    description="Get the definition for a metric by canonical name or alias."
)
async def get_metric_definition(metric_name: str) -> MetricDefinitionResponse:
    """
    Get a single metric's definition.

    Path Parameters:
    - **metric_name**: Canonical metric name or alias (case-insensitive)

    Examples:
    - GET /api/v1/meta/metrics/weight
    - GET /api/v1/meta/metrics/ofc (alias for "head_circumference")

    Raises:
    - 404: Unknown metric
    """
    try:
        metric = get_metric(metric_name)
    except KeyError:
        raise UnknownMetricError(metric_name)

    return _metric_to_response(metric)


@router.get(
    "/themes",
    response_model=ThemesResponse,
    summary="List heatmap themes",
    description="Heatmap gradient endpoints per display theme, with the legend for a ceiling of 4."
)
async def list_themes() -> ThemesResponse:
    """Get all heatmap theme palettes."""
    themes = {}
    for name, palette in list_theme_palettes().items():
        legend = legend_colors(4, Theme(name)) if name in THEME_NAMES else []
        themes[name] = ThemePaletteResponse(
            name=name,
            empty=RGB.from_hex(palette.empty).to_css(),
            faint=RGB.from_hex(palette.faint).to_css(),
            bright=RGB.from_hex(palette.bright).to_css(),
            legend=[swatch.to_css() for swatch in legend],
        )
    return ThemesResponse(themes=themes)
