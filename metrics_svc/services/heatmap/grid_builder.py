"""
Calendar grid builder for the illness heatmap.

Projects a sparse list of per-day aggregates onto a fixed 7-row week grid:
- Every week is exactly 7 cells, index 0 = Sunday ... 6 = Saturday
- Week 0 starts on the Sunday on or before Jan 1
- The last week ends on the Saturday on or after the rendering window end
- Days outside [Jan 1, min(Dec 31, today)] are padding cells

Placement of a day in the grid depends only on its date. Whether the cell
carries data depends only on whether the day is inside the window, so grid
rows and columns never need to be inferred from the data.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.datetime_utils import (
    day_of_week,
    parse_date_safe,
    saturday_on_or_after,
    sunday_on_or_before,
    utc_today,
)
from core.metric_registry import round_half_up
from services.color_scale import RGB, Theme, color_for, legend_colors

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
DAY_LABELS = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')
SEVERITY_MAX = 10


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class HeatmapDay:
    """One calendar day's aggregate: children sick, or single-child severity."""
    date: date
    count: float
    contributors: Tuple[int, ...] = ()


@dataclass(frozen=True)
class GridCell:
    """
    One (week, day_of_week) grid position.

    Padding cells have no date, a zero count and no color.
    """
    week: int
    day_of_week: int
    date: Optional[date] = None
    count: float = 0
    contributors: Tuple[int, ...] = ()
    color: Optional[RGB] = None

    @property
    def is_padding(self) -> bool:
        return self.date is None


Week = List[GridCell]


@dataclass
class HeatmapGrid:
    """A colored grid plus the scale used to color it."""
    year: int
    weeks: List[Week]
    max_for_color: float
    theme: Theme
    legend: List[RGB] = field(default_factory=list)

    @property
    def cells(self) -> List[GridCell]:
        return [cell for week in self.weeks for cell in week]

    @property
    def populated_cells(self) -> List[GridCell]:
        return [cell for cell in self.cells if not cell.is_padding]

    @property
    def observed_max(self) -> float:
        """Largest count among in-range cells (padding never counts)."""
        return max((cell.count for cell in self.populated_cells), default=0)


# =============================================================================
# INPUT NORMALIZATION
# =============================================================================

def heatmap_days_from_records(records: Iterable[Mapping[str, Any]]) -> List[HeatmapDay]:
    """
    Convert wire records ({"date", "count", "children"}) into HeatmapDays.

    Records with a missing or malformed date are dropped (their day renders
    as an empty cell); negative or missing counts become 0.
    """
    days: List[HeatmapDay] = []
    for record in records:
        day = parse_date_safe(record.get('date'), source='heatmap_day')
        if day is None:
            continue
        count = record.get('count') or 0
        count = max(0.0, float(count))
        contributors = tuple(record.get('children') or ()) if count > 0 else ()
        days.append(HeatmapDay(date=day, count=count, contributors=contributors))
    return days


# =============================================================================
# GRID BUILDER
# =============================================================================

class CalendarGridBuilder:
    """
    Builds year-aligned week grids from sparse per-day aggregates.

    Stateless; a single instance can serve any number of concurrent calls.
    """

    def rendering_window(self, year: int, today: date) -> Tuple[date, date]:
        """
        The [start, end] range of days that carry data.

        End is today for the current year and Dec 31 for past years. For a
        future year the end precedes the start, so the window is empty.
        """
        start = date(year, 1, 1)
        end = min(date(year, 12, 31), today)
        return start, end

    def build_grid(
        self,
        year: int,
        days: Iterable[HeatmapDay],
        today: Optional[date] = None,
    ) -> List[Week]:
        """
        Build the uncolored week grid for a year.

        Args:
            year: Calendar year to render
            days: Sparse per-day aggregates; days absent from the list are zero
            today: Reference date for the window end (defaults to UTC today)

        Returns:
            Ascending list of weeks, each a 7-cell list indexed Sunday..Saturday
        """
        today = today or utc_today()
        window_start, window_end = self.rendering_window(year, today)

        # An empty window (future year) still gets the full year's shape.
        shape_end = window_end if window_end >= window_start else date(year, 12, 31)
        first_sunday = sunday_on_or_before(window_start)
        last_saturday = saturday_on_or_after(shape_end)

        day_map = self._index_days(days)
        total_days = (last_saturday - first_sunday).days + 1

        weeks: List[Week] = []
        for offset in range(total_days):
            current = first_sunday + timedelta(days=offset)
            week_index = offset // DAYS_PER_WEEK
            weekday = day_of_week(current)
            if week_index == len(weeks):
                weeks.append([GridCell(week=week_index, day_of_week=i) for i in range(DAYS_PER_WEEK)])

            if not (window_start <= current <= window_end):
                continue

            day_data = day_map.get(current)
            count = day_data.count if day_data else 0
            weeks[week_index][weekday] = GridCell(
                week=week_index,
                day_of_week=weekday,
                date=current,
                count=count,
                contributors=day_data.contributors if day_data and count > 0 else (),
            )

        logger.debug(
            "Heatmap grid built",
            extra={'year': year, 'weeks': len(weeks), 'window_end': window_end.isoformat()}
        )
        return weeks

    def build_heatmap(
        self,
        year: int,
        days: Iterable[HeatmapDay],
        max_for_color: float,
        theme: Theme = Theme.LIGHT,
        today: Optional[date] = None,
    ) -> HeatmapGrid:
        """
        Build the week grid and color every in-range cell.

        Args:
            max_for_color: Count rendered at full intensity (see resolve_max_for_color)
            theme: Display theme selecting the gradient
        """
        theme = Theme(theme)
        weeks = self.build_grid(year, days, today=today)
        colored = [
            [
                cell if cell.is_padding
                else replace(cell, color=color_for(cell.count, max_for_color, theme))
                for cell in week
            ]
            for week in weeks
        ]
        return HeatmapGrid(
            year=year,
            weeks=colored,
            max_for_color=max_for_color,
            theme=theme,
            legend=legend_colors(max_for_color, theme),
        )

    def _index_days(self, days: Iterable[HeatmapDay]) -> Dict[date, HeatmapDay]:
        """Map each date to its aggregate; a repeated date keeps the last record."""
        day_map: Dict[date, HeatmapDay] = {}
        for day in days:
            if day.date in day_map:
                logger.debug("Duplicate heatmap day replaced", extra={'date': day.date.isoformat()})
            day_map[day.date] = day
        return day_map


# =============================================================================
# SCALE AND LABELS
# =============================================================================

def resolve_max_for_color(
    single_child: bool,
    total_children: Optional[int] = None,
    max_count: float = 0,
    severity_max: float = SEVERITY_MAX,
) -> float:
    """
    Count that maps to the most saturated color.

    A single child is always scaled against the fixed severity ceiling. All
    children are scaled against the family size, or the observed maximum when
    the family size is unknown, and never against 0.
    """
    if single_child:
        return severity_max
    return (total_children or max_count) or 1


def describe_cell(cell: GridCell, single_child: bool, severity_max: float = SEVERITY_MAX) -> Optional[str]:
    """Tooltip text for a cell; padding cells have none."""
    if cell.is_padding:
        return None
    rounded = round_half_up(cell.count)
    if single_child:
        return f"{cell.date.isoformat()}: Severity {rounded}/{severity_max:g}"
    noun = 'child' if rounded == 1 else 'children'
    return f"{cell.date.isoformat()}: {rounded} {noun} sick"


def build_grid(year: int, days: Iterable[HeatmapDay], today: Optional[date] = None) -> List[Week]:
    """Module-level shortcut for CalendarGridBuilder().build_grid."""
    return CalendarGridBuilder().build_grid(year, days, today=today)
