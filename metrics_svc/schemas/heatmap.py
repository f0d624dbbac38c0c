"""
Pydantic schemas for illness heatmap API operations.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from services.color_scale import Theme


class HeatmapDayIn(BaseModel):
    """One day's aggregate as supplied by the caller.

    The date is kept as a string so a malformed entry is dropped rather than
    failing the whole request.
    """
    date: Optional[str] = Field(None, description="ISO calendar date", examples=["2024-03-14"])
    count: float = Field(0, description="Children sick, or single-child severity", examples=[2])
    children: List[int] = Field(default_factory=list, description="Ids of contributing children")


class HeatmapGridRequest(BaseModel):
    """Schema for building a colored heatmap grid."""
    year: int = Field(..., description="Calendar year to render", examples=[2024])
    days: List[HeatmapDayIn] = Field(default_factory=list, description="Sparse per-day aggregates")
    today: Optional[date] = Field(None, description="Reference date bounding the current year (defaults to today, UTC)")
    single_child: bool = Field(False, description="Counts are one child's severity rather than a head count")
    total_children: Optional[int] = Field(None, ge=0, description="Family size used as the color ceiling")
    theme: Optional[Theme] = Field(None, description="Display theme (defaults to the configured theme)")
    title: Optional[str] = Field(None, max_length=200, description="Chart title (HTML rendering only)")

    class Config:
        json_schema_extra = {
            "example": {
                "year": 2024,
                "days": [
                    {"date": "2024-01-05", "count": 2, "children": [1, 2]},
                    {"date": "2024-01-06", "count": 1, "children": [2]}
                ],
                "single_child": False,
                "total_children": 3,
                "theme": "light"
            }
        }


class GridCellResponse(BaseModel):
    """One grid position; padding cells have no date, color or label."""
    week: int
    day_of_week: int = Field(..., description="0 = Sunday ... 6 = Saturday")
    date: Optional[str] = None
    count: float = 0
    contributors: List[int] = Field(default_factory=list)
    color: Optional[str] = Field(None, description="CSS color, e.g. rgb(37, 99, 235)")
    label: Optional[str] = Field(None, description="Tooltip text")


class HeatmapGridResponse(BaseModel):
    """Schema for a colored heatmap grid."""
    year: int
    theme: Theme
    max_for_color: float = Field(..., description="Count rendered at full intensity")
    day_labels: List[str]
    weeks: List[List[GridCellResponse]] = Field(..., description="Weeks of exactly 7 cells, Sunday first")
    legend: List[str] = Field(..., description="Five swatches at 0%, 25%, 50%, 75% and 100%")


class LegendResponse(BaseModel):
    """Legend swatches for a color ceiling and theme."""
    max_for_color: float
    theme: Theme
    colors: List[str]


class IllnessSpanIn(BaseModel):
    """An illness episode; a missing end date means it is ongoing."""
    child_id: int
    start_date: date
    end_date: Optional[date] = None
    severity: Optional[float] = Field(None, ge=0, description="Severity on a 0-10 scale")


class IllnessDaysRequest(BaseModel):
    """Schema for aggregating illness spans into heatmap days."""
    year: int = Field(..., examples=[2024])
    illnesses: List[IllnessSpanIn] = Field(default_factory=list)
    child_id: Optional[int] = Field(None, description="Aggregate one child's severity instead of a head count")
    today: Optional[date] = None


class HeatmapDayResponse(BaseModel):
    """One aggregated day."""
    date: str
    count: float
    children: List[int]


class HeatmapDataResponse(BaseModel):
    """Aggregated illness days for one year."""
    year: int
    days: List[HeatmapDayResponse]
    total_days: int
    max_count: float
