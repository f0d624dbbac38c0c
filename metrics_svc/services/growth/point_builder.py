"""
Growth point construction from raw visit measurements.

Joins wellness visits with child profiles and produces the flat GrowthPoint
list the series aggregator consumes:
- Age in whole calendar months (and days) at the visit
- Stored BMI validated, recomputed from weight and height when implausible
- One birth point (age 0, no visit id) per child with birth measurements
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from core.datetime_utils import age_in_days, age_in_months
from services.growth.series_aggregator import GrowthPoint, MetricReading

logger = logging.getLogger(__name__)

WELLNESS_VISIT = "wellness"

# Plausible pediatric ranges; anything outside is treated as bad input.
BMI_MIN = 5.0
BMI_MAX = 50.0
HEIGHT_MIN_IN = 10.0
HEIGHT_MAX_IN = 100.0
BMI_IMPERIAL_FACTOR = 703


@dataclass(frozen=True)
class ChildProfile:
    """The subset of a child's record needed for growth charts."""
    id: int
    name: str
    date_of_birth: date
    gender: Optional[str] = None
    birth_weight: Optional[float] = None
    birth_height: Optional[float] = None


@dataclass(frozen=True)
class VisitMeasurement:
    """Measurements recorded at one visit."""
    id: int
    child_id: int
    visit_date: date
    visit_type: str = WELLNESS_VISIT
    weight_value: Optional[float] = None
    weight_percentile: Optional[float] = None
    height_value: Optional[float] = None
    height_percentile: Optional[float] = None
    head_circumference_value: Optional[float] = None
    head_circumference_percentile: Optional[float] = None
    bmi_value: Optional[float] = None
    bmi_percentile: Optional[float] = None

    @property
    def has_growth_values(self) -> bool:
        return any(
            v is not None for v in (
                self.weight_value, self.height_value,
                self.head_circumference_value, self.bmi_value,
            )
        )


def _is_plausible_bmi(value: Optional[float]) -> bool:
    return value is not None and BMI_MIN <= value <= BMI_MAX


def resolve_bmi(
    stored_bmi: Optional[float],
    weight_lbs: Optional[float],
    height_in: Optional[float],
) -> Optional[float]:
    """
    Stored BMI if plausible, else BMI computed from imperial weight/height.

    Returns None when neither the stored nor the computed value falls in
    the plausible range.
    """
    if _is_plausible_bmi(stored_bmi):
        return stored_bmi

    if weight_lbs is None or height_in is None:
        return None
    if not (HEIGHT_MIN_IN <= height_in <= HEIGHT_MAX_IN):
        return None

    computed = weight_lbs / (height_in * height_in) * BMI_IMPERIAL_FACTOR
    return computed if _is_plausible_bmi(computed) else None


def build_growth_points(
    visits: Iterable[VisitMeasurement],
    children: Iterable[ChildProfile],
    child_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[GrowthPoint]:
    """
    Build growth points from wellness visits and child profiles.

    Args:
        visits: Visits of any type; only wellness visits with at least one
                growth value are used
        children: Profiles for every child whose visits may appear
        child_id: Restrict to one child
        start_date: Earliest visit date to include
        end_date: Latest visit date to include

    Returns:
        Points sorted by child id, then age; birth points first per child
    """
    profiles: Dict[int, ChildProfile] = {child.id: child for child in children}

    selected: List[VisitMeasurement] = []
    for visit in visits:
        if visit.visit_type != WELLNESS_VISIT or not visit.has_growth_values:
            continue
        if child_id is not None and visit.child_id != child_id:
            continue
        if start_date and visit.visit_date < start_date:
            continue
        if end_date and visit.visit_date > end_date:
            continue
        if visit.child_id not in profiles:
            logger.warning("Visit for unknown child skipped",
                           extra={'visit_id': visit.id, 'child_id': visit.child_id})
            continue
        selected.append(visit)

    points: List[GrowthPoint] = []

    # Birth points only for children that have visits in the selection.
    for cid in sorted({visit.child_id for visit in selected}):
        birth = _birth_point(profiles[cid])
        if birth is not None:
            points.append(birth)

    for visit in selected:
        points.append(_visit_point(visit, profiles[visit.child_id]))

    points.sort(key=lambda p: (p.child_id, p.age_months, p.visit_id is not None, p.visit_date))

    logger.debug(
        "Growth points built",
        extra={'visits': len(selected), 'points': len(points), 'child_id': child_id}
    )
    return points


def _birth_point(child: ChildProfile) -> Optional[GrowthPoint]:
    if child.birth_weight is None and child.birth_height is None:
        return None
    return GrowthPoint(
        visit_id=None,
        child_id=child.id,
        child_name=child.name,
        age_months=0,
        age_days=0,
        visit_date=child.date_of_birth,
        gender=child.gender,
        weight=MetricReading(value=child.birth_weight),
        height=MetricReading(value=child.birth_height),
    )


def _visit_point(visit: VisitMeasurement, child: ChildProfile) -> GrowthPoint:
    bmi = resolve_bmi(visit.bmi_value, visit.weight_value, visit.height_value)
    if visit.bmi_value is not None and bmi != visit.bmi_value:
        logger.warning("Stored BMI replaced",
                     extra={'visit_id': visit.id, 'stored': visit.bmi_value, 'resolved': bmi})

    return GrowthPoint(
        visit_id=visit.id,
        child_id=child.id,
        child_name=child.name,
        age_months=age_in_months(child.date_of_birth, visit.visit_date),
        age_days=age_in_days(child.date_of_birth, visit.visit_date),
        visit_date=visit.visit_date,
        gender=child.gender,
        weight=MetricReading(visit.weight_value, visit.weight_percentile),
        height=MetricReading(visit.height_value, visit.height_percentile),
        head_circumference=MetricReading(
            visit.head_circumference_value, visit.head_circumference_percentile
        ),
        bmi=MetricReading(bmi, visit.bmi_percentile),
    )
