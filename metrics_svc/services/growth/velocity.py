"""
Weight velocity: rate of weight change between consecutive visits.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from core.metric_registry import round_half_up
from services.growth.series_aggregator import GrowthMetric, GrowthPoint

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class VelocityPoint:
    """Weight change per 30 days, ending at visit_date."""
    child_id: int
    visit_date: date
    velocity: float
    days: int


def calculate_weight_velocity(points: Iterable[GrowthPoint]) -> List[VelocityPoint]:
    """
    Velocity between each pair of consecutive weight-bearing points per child.

    Points are ordered by visit date within each child. The interval is at
    least one day so same-day measurements do not divide by zero. A child
    with fewer than two weights contributes nothing.

    Returns:
        Velocities ordered by child id, then visit date
    """
    by_child: Dict[int, List[GrowthPoint]] = {}
    for point in points:
        if point.get(GrowthMetric.WEIGHT) is not None:
            by_child.setdefault(point.child_id, []).append(point)

    velocities: List[VelocityPoint] = []
    for child_id in sorted(by_child):
        weighed = sorted(by_child[child_id], key=lambda p: p.visit_date)
        for prev, curr in zip(weighed, weighed[1:]):
            days = max(1, (curr.visit_date - prev.visit_date).days)
            change = curr.get(GrowthMetric.WEIGHT) - prev.get(GrowthMetric.WEIGHT)
            velocities.append(VelocityPoint(
                child_id=child_id,
                visit_date=curr.visit_date,
                velocity=round_half_up(change / days * DAYS_PER_MONTH, 1),
                days=days,
            ))

    logger.debug("Weight velocity calculated",
                 extra={'children': len(by_child), 'velocities': len(velocities)})
    return velocities
