"""
Heatmap package: calendar grid construction and illness-day aggregation.

Usage:
    from services.heatmap import CalendarGridBuilder, resolve_max_for_color

    builder = CalendarGridBuilder()
    grid = builder.build_heatmap(2024, days, max_for_color=resolve_max_for_color(False, 3))
"""

from services.heatmap.grid_builder import (
    CalendarGridBuilder,
    GridCell,
    HeatmapDay,
    HeatmapGrid,
    Week,
    DAY_LABELS,
    SEVERITY_MAX,
    build_grid,
    describe_cell,
    heatmap_days_from_records,
    resolve_max_for_color,
)
from services.heatmap.illness_aggregation import (
    HeatmapData,
    IllnessSpan,
    aggregate_illness_days,
)

__all__ = [
    'CalendarGridBuilder',
    'GridCell',
    'HeatmapDay',
    'HeatmapGrid',
    'Week',
    'DAY_LABELS',
    'SEVERITY_MAX',
    'build_grid',
    'describe_cell',
    'heatmap_days_from_records',
    'resolve_max_for_color',
    'HeatmapData',
    'IllnessSpan',
    'aggregate_illness_days',
]
