"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.heatmap import (
    HeatmapDayIn,
    HeatmapGridRequest,
    GridCellResponse,
    HeatmapGridResponse,
    LegendResponse,
    IllnessSpanIn,
    IllnessDaysRequest,
    HeatmapDayResponse,
    HeatmapDataResponse,
)
from schemas.growth import (
    GrowthPointModel,
    SeriesRequest,
    GrowthChartRequest,
    SeriesValueResponse,
    ChildSeriesResponse,
    SeriesResponse,
    ChildProfileIn,
    VisitIn,
    GrowthPointsRequest,
    GrowthPointsResponse,
    VelocityRequest,
    VelocityPointResponse,
    VelocityResponse,
)

__all__ = [
    # Heatmap schemas
    "HeatmapDayIn",
    "HeatmapGridRequest",
    "GridCellResponse",
    "HeatmapGridResponse",
    "LegendResponse",
    "IllnessSpanIn",
    "IllnessDaysRequest",
    "HeatmapDayResponse",
    "HeatmapDataResponse",
    # Growth schemas
    "GrowthPointModel",
    "SeriesRequest",
    "GrowthChartRequest",
    "SeriesValueResponse",
    "ChildSeriesResponse",
    "SeriesResponse",
    "ChildProfileIn",
    "VisitIn",
    "GrowthPointsRequest",
    "GrowthPointsResponse",
    "VelocityRequest",
    "VelocityPointResponse",
    "VelocityResponse",
]
