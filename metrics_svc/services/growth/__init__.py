"""
Growth package: point derivation, series aggregation and velocity.

Usage:
    from services.growth import GrowthSeriesAggregator, GrowthMetric, SeriesMode

    output = GrowthSeriesAggregator().build_series(points, GrowthMetric.WEIGHT)
"""

from services.growth.series_aggregator import (
    AgeRow,
    AxisDomain,
    ChildSeries,
    GrowthMetric,
    GrowthPoint,
    GrowthSeriesAggregator,
    MetricReading,
    SeriesMode,
    SeriesOutput,
    SeriesPoint,
    build_series,
    compute_axis_domain,
)
from services.growth.point_builder import (
    ChildProfile,
    VisitMeasurement,
    build_growth_points,
    resolve_bmi,
)
from services.growth.velocity import VelocityPoint, calculate_weight_velocity

__all__ = [
    'AgeRow',
    'AxisDomain',
    'ChildSeries',
    'GrowthMetric',
    'GrowthPoint',
    'GrowthSeriesAggregator',
    'MetricReading',
    'SeriesMode',
    'SeriesOutput',
    'SeriesPoint',
    'build_series',
    'compute_axis_domain',
    'ChildProfile',
    'VisitMeasurement',
    'build_growth_points',
    'resolve_bmi',
    'VelocityPoint',
    'calculate_weight_velocity',
]
