"""
Growth series aggregation for single- and multi-child growth charts.

Responsible for:
- Filtering points to one child (optional)
- Deduplicating by visit id (first record wins)
- Sorting on the age axis
- Collapsing same-age collisions per child (latest visit wins)
- Building the wide age-indexed table for multi-child overlays
- Computing independent left/right axis domains

Gap policy differs by mode: a single child's line is broken at missing
values, while multi-child lines connect across them so a family chart does
not fall apart into isolated points when children are measured at different
ages.

This service is visualization-agnostic and holds no state between calls.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.datetime_utils import parse_date_safe
from core.metric_registry import MetricDefinition, get_child_palette, get_metric, parse_decimal

logger = logging.getLogger(__name__)

DEFAULT_PADDING_RATIO = 0.1
PERCENTILE_DOMAIN = (0.0, 100.0)
EMPTY_DOMAIN = (0.0, 100.0)


# =============================================================================
# ENUMS
# =============================================================================

class GrowthMetric(str, Enum):
    """Growth metric kinds; values match canonical names in metrics.yaml."""
    WEIGHT = "weight"
    HEIGHT = "height"
    HEAD_CIRCUMFERENCE = "head_circumference"
    BMI = "bmi"

    @property
    def definition(self) -> MetricDefinition:
        return get_metric(self.value)

    @property
    def axis(self) -> str:
        return self.definition.axis


class SeriesMode(str, Enum):
    """Which half of a metric's (value, percentile) pair is plotted."""
    VALUE = "value"
    PERCENTILE = "percentile"


# =============================================================================
# NORMALIZED DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class MetricReading:
    """A measured value and its percentile; either may be missing."""
    value: Optional[float] = None
    percentile: Optional[float] = None

    def get(self, mode: SeriesMode) -> Optional[float]:
        return self.value if mode == SeriesMode.VALUE else self.percentile

    @property
    def is_empty(self) -> bool:
        return self.value is None and self.percentile is None


@dataclass(frozen=True)
class GrowthPoint:
    """
    One visit's growth snapshot for one child.

    Birth measurements are represented as points without a visit id.
    """
    visit_id: Optional[int]
    child_id: int
    age_months: int
    visit_date: date
    child_name: str = ""
    weight: MetricReading = field(default_factory=MetricReading)
    height: MetricReading = field(default_factory=MetricReading)
    head_circumference: MetricReading = field(default_factory=MetricReading)
    bmi: MetricReading = field(default_factory=MetricReading)
    age_days: Optional[int] = None
    gender: Optional[str] = None

    def reading(self, metric: GrowthMetric) -> MetricReading:
        return getattr(self, GrowthMetric(metric).value)

    def get(self, metric: GrowthMetric, mode: SeriesMode = SeriesMode.VALUE) -> Optional[float]:
        return self.reading(metric).get(SeriesMode(mode))

    @property
    def has_measurements(self) -> bool:
        return any(not self.reading(metric).is_empty for metric in GrowthMetric)

    @property
    def dedup_key(self) -> Tuple[Any, ...]:
        """Visit id when present; birth points key on child and date."""
        if self.visit_id is not None:
            return ('visit', self.visit_id)
        return ('birth', self.child_id, self.visit_date, self.age_months)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Optional["GrowthPoint"]:
        """
        Build a point from a flat wire record (weight_value, bmi_percentile, ...).

        Returns None when the visit date is missing or malformed.
        """
        visit_date = parse_date_safe(record.get('visit_date'), visit_id=record.get('visit_id'))
        if visit_date is None:
            return None

        readings = {
            metric.value: MetricReading(
                value=parse_decimal(record.get(f"{metric.value}_value")),
                percentile=parse_decimal(record.get(f"{metric.value}_percentile")),
            )
            for metric in GrowthMetric
        }
        return cls(
            visit_id=record.get('visit_id'),
            child_id=record['child_id'],
            age_months=max(0, int(record.get('age_months') or 0)),
            visit_date=visit_date,
            child_name=record.get('child_name') or "",
            age_days=record.get('age_days'),
            gender=record.get('gender'),
            **readings,
        )

    def to_record(self) -> Dict[str, Any]:
        """Flat wire representation, the inverse of from_record."""
        record: Dict[str, Any] = {
            'visit_id': self.visit_id,
            'child_id': self.child_id,
            'child_name': self.child_name,
            'age_months': self.age_months,
            'age_days': self.age_days,
            'visit_date': self.visit_date.isoformat(),
            'gender': self.gender,
        }
        for metric in GrowthMetric:
            reading = self.reading(metric)
            record[f"{metric.value}_value"] = reading.value
            record[f"{metric.value}_percentile"] = reading.percentile
        return record


@dataclass(frozen=True)
class SeriesPoint:
    """One plotted (age, y) pair of a single-child series; y may be a gap."""
    age_months: int
    value: Optional[float]
    visit_date: date
    visit_id: Optional[int]


@dataclass(frozen=True)
class ChildSeries:
    """A child's identity and line color in a multi-child chart."""
    id: int
    name: str
    color: str


@dataclass
class AgeRow:
    """
    One age on the x axis with a cell per (metric, child).

    Cells are keyed by the typed pair; string column names exist only in
    the serialized form produced by to_record.
    """
    age_months: int
    values: Dict[Tuple[GrowthMetric, int], Optional[float]] = field(default_factory=dict)

    def get(self, metric: GrowthMetric, child_id: int) -> Optional[float]:
        return self.values.get((GrowthMetric(metric), child_id))

    def to_record(self) -> Dict[str, Optional[float]]:
        record: Dict[str, Any] = {'age_months': self.age_months}
        for (metric, child_id), value in self.values.items():
            record[metric.definition.column_key(child_id)] = value
        return record


@dataclass(frozen=True)
class AxisDomain:
    """Padded [min, max] range for a chart axis."""
    min: float
    max: float

    def as_list(self) -> List[float]:
        return [self.min, self.max]


@dataclass
class SeriesOutput:
    """
    Complete chart-ready output for one metric selection.

    `points` and `values` serve the single-child shape; `rows` and
    `children` serve the multi-child shape. `multi_child` says which one
    a renderer should use.
    """
    metric: GrowthMetric
    mode: SeriesMode
    child_filter: Optional[int]
    multi_child: bool
    visible_metrics: Tuple[GrowthMetric, ...]
    points: List[GrowthPoint]
    values: List[SeriesPoint]
    rows: List[AgeRow]
    children: List[ChildSeries]
    left: AxisDomain
    right: AxisDomain

    @property
    def connect_gaps(self) -> bool:
        return self.multi_child

    def is_empty(self) -> bool:
        return not self.values and not self.rows


# =============================================================================
# AXIS DOMAINS
# =============================================================================

def compute_axis_domain(
    values: Sequence[float],
    floor_at_zero: bool = False,
    padding_ratio: float = DEFAULT_PADDING_RATIO,
) -> AxisDomain:
    """
    Padded domain for a set of plotted values.

    The padding is a fraction of the range, or of the maximum when every
    value is equal. No values gives the default [0, 100].
    """
    if not values:
        return AxisDomain(*EMPTY_DOMAIN)

    low, high = min(values), max(values)
    pad = (high - low) * padding_ratio if high > low else high * padding_ratio
    lower = low - pad
    if floor_at_zero:
        lower = max(0.0, lower)
    return AxisDomain(lower, high + pad)


# =============================================================================
# SERIES AGGREGATOR
# =============================================================================

class GrowthSeriesAggregator:
    """
    Builds growth chart series from flat per-visit growth points.

    Output is independent of input order and re-running the aggregator on
    its own `points` output yields the same result.
    """

    def __init__(self, padding_ratio: float = DEFAULT_PADDING_RATIO):
        self._padding_ratio = padding_ratio

    def build_series(
        self,
        points: Iterable[GrowthPoint],
        metric: GrowthMetric,
        mode: SeriesMode = SeriesMode.VALUE,
        child_filter: Optional[int] = None,
        visible_metrics: Optional[Iterable[GrowthMetric]] = None,
    ) -> SeriesOutput:
        """
        Build the series for one metric selection.

        Args:
            points: Growth points for any number of children
            metric: Metric whose values form the single-child series
            mode: Plot values or percentiles
            child_filter: Restrict to one child (single-child display)
            visible_metrics: Metrics toggled on, used for axis domains
                             (defaults to the selected metric)

        Returns:
            SeriesOutput with both shapes and the axis domains
        """
        metric = GrowthMetric(metric)
        mode = SeriesMode(mode)
        visible = self._normalize_visible(metric, visible_metrics)

        selected = [p for p in points if child_filter is None or p.child_id == child_filter]
        unique = self._deduplicate_by_visit(selected)
        ordered = sorted(unique, key=self._age_sort_key)
        measured = [p for p in ordered if p.has_measurements]

        children = self._collect_children(measured)
        multi_child = child_filter is None and len(children) > 1

        values = [
            SeriesPoint(
                age_months=p.age_months,
                value=p.get(metric, mode),
                visit_date=p.visit_date,
                visit_id=p.visit_id,
            )
            for p in measured
        ]
        rows = self._build_age_rows(self._latest_per_child_age(measured), children, mode)

        if mode == SeriesMode.PERCENTILE:
            left = AxisDomain(*PERCENTILE_DOMAIN)
            right = AxisDomain(*PERCENTILE_DOMAIN)
        else:
            left = compute_axis_domain(
                self._axis_values('left', visible, measured, rows, children, multi_child),
                floor_at_zero=True,
                padding_ratio=self._padding_ratio,
            )
            right = compute_axis_domain(
                self._axis_values('right', visible, measured, rows, children, multi_child),
                padding_ratio=self._padding_ratio,
            )

        logger.debug(
            "Growth series built",
            extra={
                'metric': metric.value, 'mode': mode.value, 'child_filter': child_filter,
                'input_points': len(selected), 'unique_points': len(unique),
                'rows': len(rows), 'children': len(children),
            }
        )

        return SeriesOutput(
            metric=metric,
            mode=mode,
            child_filter=child_filter,
            multi_child=multi_child,
            visible_metrics=visible,
            points=ordered,
            values=values,
            rows=rows,
            children=children,
            left=left,
            right=right,
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    @staticmethod
    def _normalize_visible(
        metric: GrowthMetric,
        visible_metrics: Optional[Iterable[GrowthMetric]],
    ) -> Tuple[GrowthMetric, ...]:
        if visible_metrics is None:
            return (metric,)
        requested = {GrowthMetric(m) for m in visible_metrics}
        # Enum order keeps the output independent of request order.
        return tuple(m for m in GrowthMetric if m in requested)

    @staticmethod
    def _deduplicate_by_visit(points: Iterable[GrowthPoint]) -> List[GrowthPoint]:
        """Keep the first point seen for each visit."""
        seen = set()
        unique: List[GrowthPoint] = []
        for point in points:
            key = point.dedup_key
            if key in seen:
                logger.debug("Duplicate growth point dropped", extra={'key': repr(key)})
                continue
            seen.add(key)
            unique.append(point)
        return unique

    @staticmethod
    def _age_sort_key(point: GrowthPoint) -> Tuple[Any, ...]:
        # Ties on age fall back to date, child and visit so the order is total.
        return (
            point.age_months,
            point.visit_date,
            point.child_id,
            point.visit_id is not None,
            point.visit_id or 0,
        )

    @staticmethod
    def _latest_per_child_age(points: Iterable[GrowthPoint]) -> List[GrowthPoint]:
        """For each (child, age) keep only the most recent visit."""
        latest: Dict[Tuple[int, int], GrowthPoint] = {}
        for point in points:
            key = (point.child_id, point.age_months)
            existing = latest.get(key)
            if existing is None or _recency_key(point) > _recency_key(existing):
                latest[key] = point
        return list(latest.values())

    @staticmethod
    def _collect_children(points: Iterable[GrowthPoint]) -> List[ChildSeries]:
        """Children present in the points, ordered by id, with palette colors."""
        names: Dict[int, str] = {}
        for point in points:
            if not names.get(point.child_id):
                names[point.child_id] = point.child_name
        palette = get_child_palette()
        return [
            ChildSeries(id=child_id, name=names[child_id] or f"Child {child_id}",
                        color=palette[index % len(palette)])
            for index, child_id in enumerate(sorted(names))
        ]

    @staticmethod
    def _build_age_rows(
        points: Iterable[GrowthPoint],
        children: Sequence[ChildSeries],
        mode: SeriesMode,
    ) -> List[AgeRow]:
        """Group by age; every row has a (possibly null) cell per metric and child."""
        by_age: Dict[int, Dict[int, GrowthPoint]] = {}
        for point in points:
            by_age.setdefault(point.age_months, {})[point.child_id] = point

        rows: List[AgeRow] = []
        for age in sorted(by_age):
            at_age = by_age[age]
            values: Dict[Tuple[GrowthMetric, int], Optional[float]] = {}
            for child in children:
                child_point = at_age.get(child.id)
                for metric in GrowthMetric:
                    values[(metric, child.id)] = child_point.get(metric, mode) if child_point else None
            rows.append(AgeRow(age_months=age, values=values))
        return rows

    @staticmethod
    def _axis_values(
        axis: str,
        visible: Sequence[GrowthMetric],
        points: Sequence[GrowthPoint],
        rows: Sequence[AgeRow],
        children: Sequence[ChildSeries],
        multi_child: bool,
    ) -> List[float]:
        """All non-null values of the visible metrics plotted on an axis."""
        metrics = [m for m in visible if m.axis == axis]
        collected: List[Optional[float]] = []
        for metric in metrics:
            if multi_child:
                collected.extend(row.get(metric, child.id) for row in rows for child in children)
            else:
                collected.extend(p.get(metric, SeriesMode.VALUE) for p in points)
        return [v for v in collected if v is not None]


def _recency_key(point: GrowthPoint) -> Tuple[Any, ...]:
    return (point.visit_date, point.visit_id is not None, point.visit_id or 0)


def build_series(
    points: Iterable[GrowthPoint],
    metric: GrowthMetric,
    mode: SeriesMode = SeriesMode.VALUE,
    child_filter: Optional[int] = None,
    visible_metrics: Optional[Iterable[GrowthMetric]] = None,
) -> SeriesOutput:
    """Module-level shortcut for GrowthSeriesAggregator().build_series."""
    return GrowthSeriesAggregator().build_series(
        points, metric, mode=mode, child_filter=child_filter, visible_metrics=visible_metrics,
    )
