"""
Illness-span aggregation into per-day heatmap data.

Turns illness records (child, start date, optional end date, optional
severity) into the sparse HeatmapDay list the grid builder consumes:
- All children: count = number of distinct children sick that day
- One child: count = highest severity among that child's covering illnesses

Only days with at least one covering illness are emitted.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Set

from core.datetime_utils import utc_today
from services.heatmap.grid_builder import HeatmapDay

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = 5


@dataclass(frozen=True)
class IllnessSpan:
    """An illness episode; an open-ended span has no end date."""
    child_id: int
    start_date: date
    end_date: Optional[date] = None
    severity: Optional[float] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day and (self.end_date is None or day <= self.end_date)


@dataclass
class HeatmapData:
    """Aggregated days for one year plus summary figures."""
    year: int
    days: List[HeatmapDay] = field(default_factory=list)

    @property
    def total_days(self) -> int:
        return len(self.days)

    @property
    def max_count(self) -> float:
        return max((day.count for day in self.days), default=0)


def aggregate_illness_days(
    illnesses: Iterable[IllnessSpan],
    year: int,
    today: Optional[date] = None,
    child_id: Optional[int] = None,
    default_severity: float = DEFAULT_SEVERITY,
) -> HeatmapData:
    """
    Aggregate illness spans into per-day counts for [Jan 1, min(Dec 31, today)].

    Args:
        illnesses: Illness spans for any number of children
        year: Calendar year to aggregate
        today: Reference date bounding the window (defaults to UTC today)
        child_id: When set, aggregate that child's severity instead of a head count
        default_severity: Severity used for illnesses recorded without one
    """
    today = today or utc_today()
    window_start = date(year, 1, 1)
    window_end = min(date(year, 12, 31), today)

    spans = [
        span for span in illnesses
        if (child_id is None or span.child_id == child_id)
        and span.start_date <= window_end
        and (span.end_date is None or span.end_date >= window_start)
    ]

    severity_by_day: Dict[date, float] = {}
    children_by_day: Dict[date, Set[int]] = defaultdict(set)

    for span in spans:
        if span.end_date is not None and span.end_date < span.start_date:
            logger.warning(
                "Illness ends before it starts; skipping",
                extra={'child_id': span.child_id, 'start_date': span.start_date.isoformat(),
                       'end_date': span.end_date.isoformat()}
            )
            continue

        first = max(span.start_date, window_start)
        last = min(span.end_date or window_end, window_end)
        severity = span.severity if span.severity is not None else default_severity

        current = first
        while current <= last:
            children_by_day[current].add(span.child_id)
            severity_by_day[current] = max(severity_by_day.get(current, 0), severity)
            current += timedelta(days=1)

    days: List[HeatmapDay] = []
    for day in sorted(children_by_day):
        children = tuple(sorted(children_by_day[day]))
        count = severity_by_day[day] if child_id is not None else len(children)
        days.append(HeatmapDay(date=day, count=count, contributors=children))

    logger.debug(
        "Illness days aggregated",
        extra={'year': year, 'child_id': child_id, 'spans': len(spans), 'days': len(days)}
    )
    return HeatmapData(year=year, days=days)
