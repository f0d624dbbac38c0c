"""
Pydantic schemas for growth chart API operations.

Measurement fields accept numbers or numeric strings; values that cannot be
parsed become null instead of rejecting the request.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.metric_registry import parse_decimal
from services.growth import GrowthMetric, SeriesMode

MEASUREMENT_FIELDS = (
    'weight_value', 'weight_percentile',
    'height_value', 'height_percentile',
    'head_circumference_value', 'head_circumference_percentile',
    'bmi_value', 'bmi_percentile',
)


class _LenientMeasurements(BaseModel):
    """Mixin parsing the eight measurement fields leniently."""
    weight_value: Optional[float] = None
    weight_percentile: Optional[float] = None
    height_value: Optional[float] = None
    height_percentile: Optional[float] = None
    head_circumference_value: Optional[float] = None
    head_circumference_percentile: Optional[float] = None
    bmi_value: Optional[float] = None
    bmi_percentile: Optional[float] = None

    @field_validator(*MEASUREMENT_FIELDS, mode='before')
    @classmethod
    def _parse_measurement(cls, value: Any) -> Optional[float]:
        return parse_decimal(value)


class GrowthPointModel(_LenientMeasurements):
    """Schema for one growth point (one visit, or birth when visit_id is null)."""
    visit_id: Optional[int] = Field(None, description="Null for birth measurements")
    child_id: int
    child_name: str = ""
    age_months: int = Field(..., ge=0, examples=[6])
    age_days: Optional[int] = Field(None, ge=0)
    visit_date: date
    gender: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "visit_id": 12,
                "child_id": 1,
                "child_name": "Ella",
                "age_months": 6,
                "visit_date": "2024-08-02",
                "weight_value": 16.4,
                "weight_percentile": 55.0,
                "height_value": 26.1,
                "height_percentile": 60.0
            }
        }


class SeriesRequest(BaseModel):
    """Schema for building a growth series."""
    points: List[GrowthPointModel] = Field(default_factory=list)
    metric: GrowthMetric = Field(GrowthMetric.WEIGHT, description="Metric of the single-child series")
    mode: SeriesMode = Field(SeriesMode.VALUE, description="Plot values or percentiles")
    child_id: Optional[int] = Field(None, description="Restrict to one child")
    visible_metrics: Optional[List[GrowthMetric]] = Field(
        None, description="Metrics toggled on; drives the axis domains (defaults to metric)"
    )


class GrowthChartRequest(SeriesRequest):
    """Schema for rendering a growth chart."""
    title: Optional[str] = Field(None, max_length=200)


class SeriesValueResponse(BaseModel):
    """One plotted (age, value) pair; value may be a gap."""
    age_months: int
    value: Optional[float]
    visit_date: date
    visit_id: Optional[int]


class ChildSeriesResponse(BaseModel):
    """A child's identity and line color."""
    id: int
    name: str
    color: str


class SeriesResponse(BaseModel):
    """Chart-ready growth series for one metric selection."""
    metric: GrowthMetric
    mode: SeriesMode
    child_id: Optional[int]
    multi_child: bool
    connect_gaps: bool
    visible_metrics: List[GrowthMetric]
    points: List[GrowthPointModel]
    values: List[SeriesValueResponse]
    rows: List[Dict[str, Any]] = Field(
        ..., description="Age-indexed rows with one <prefix>_<child_id> column per metric and child"
    )
    children: List[ChildSeriesResponse]
    left_domain: List[float] = Field(..., description="[min, max] of the left axis")
    right_domain: List[float] = Field(..., description="[min, max] of the right axis")


class ChildProfileIn(BaseModel):
    """A child's profile as needed to derive growth points."""
    id: int
    name: str
    date_of_birth: date
    gender: Optional[str] = None
    birth_weight: Optional[float] = None
    birth_height: Optional[float] = None

    @field_validator('birth_weight', 'birth_height', mode='before')
    @classmethod
    def _parse_birth_measurement(cls, value: Any) -> Optional[float]:
        return parse_decimal(value)


class VisitIn(_LenientMeasurements):
    """A visit and the measurements recorded at it."""
    id: int
    child_id: int
    visit_date: date
    visit_type: str = "wellness"


class GrowthPointsRequest(BaseModel):
    """Schema for deriving growth points from visits."""
    visits: List[VisitIn] = Field(default_factory=list)
    children: List[ChildProfileIn] = Field(default_factory=list)
    child_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class GrowthPointsResponse(BaseModel):
    """Derived growth points, sorted by child then age."""
    points: List[GrowthPointModel]
    count: int


class VelocityRequest(BaseModel):
    """Schema for computing weight velocity."""
    points: List[GrowthPointModel] = Field(default_factory=list)


class VelocityPointResponse(BaseModel):
    """Weight change per 30 days ending at visit_date."""
    child_id: int
    visit_date: date
    velocity: float = Field(..., description="lbs per 30 days")
    days: int


class VelocityResponse(BaseModel):
    velocities: List[VelocityPointResponse]
