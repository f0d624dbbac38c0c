"""
Growth router - growth point, series, velocity and chart endpoints.

Callers post flat growth points (one per visit, plus birth points) and get
back chart-ready series: a single-child line with gaps, or an age-indexed
table for overlaying several children, together with padded axis domains.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from core.dependencies import get_graph_service, get_growth_aggregator
from core.exceptions import InvalidRequestError
from core.middleware import get_metrics_collector
from schemas.growth import (
    ChildSeriesResponse,
    GrowthChartRequest,
    GrowthPointModel,
    GrowthPointsRequest,
    GrowthPointsResponse,
    SeriesRequest,
    SeriesResponse,
    SeriesValueResponse,
    VelocityPointResponse,
    VelocityRequest,
    VelocityResponse,
)
from services.graph import GraphService
from services.growth import (
    ChildProfile,
    GrowthPoint,
    GrowthSeriesAggregator,
    SeriesOutput,
    VisitMeasurement,
    build_growth_points,
    calculate_weight_velocity,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/growth",
    tags=["Growth"],
)


# =============================================================================
# HELPERS
# =============================================================================

def _to_domain_points(models: List[GrowthPointModel]) -> List[GrowthPoint]:
    """Convert request models to GrowthPoints, skipping any that fail to parse."""
    points = []
    for model in models:
        point = GrowthPoint.from_record(model.model_dump())
        if point is not None:
            points.append(point)
    return points


def _point_to_model(point: GrowthPoint) -> GrowthPointModel:
    return GrowthPointModel(**point.to_record())


def _build_series(request: SeriesRequest, aggregator: GrowthSeriesAggregator) -> SeriesOutput:
    return aggregator.build_series(
        _to_domain_points(request.points),
        request.metric,
        mode=request.mode,
        child_filter=request.child_id,
        visible_metrics=request.visible_metrics,
    )


def _series_to_response(output: SeriesOutput) -> SeriesResponse:
    """Convert an internal SeriesOutput to the API response model."""
    return SeriesResponse(
        metric=output.metric,
        mode=output.mode,
        child_id=output.child_filter,
        multi_child=output.multi_child,
        connect_gaps=output.connect_gaps,
        visible_metrics=list(output.visible_metrics),
        points=[_point_to_model(p) for p in output.points],
        values=[
            SeriesValueResponse(
                age_months=v.age_months,
                value=v.value,
                visit_date=v.visit_date,
                visit_id=v.visit_id,
            )
            for v in output.values
        ],
        rows=[row.to_record() for row in output.rows],
        children=[ChildSeriesResponse(id=c.id, name=c.name, color=c.color) for c in output.children],
        left_domain=output.left.as_list(),
        right_domain=output.right.as_list(),
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/points",
    response_model=GrowthPointsResponse,
    summary="Derive growth points",
    description="Build growth points from wellness visits and child profiles: calendar-month ages, "
                "validated BMI, and a birth point per child with birth measurements."
)
async def derive_growth_points(request: GrowthPointsRequest) -> GrowthPointsResponse:
    """
    Derive growth points.

    Only wellness visits with at least one of weight, height, head
    circumference or BMI are used. Output is sorted by child, then age.
    """
    visits = [VisitMeasurement(**visit.model_dump()) for visit in request.visits]
    children = [ChildProfile(**child.model_dump()) for child in request.children]

    points = build_growth_points(
        visits,
        children,
        child_id=request.child_id,
        start_date=request.start_date,
        end_date=request.end_date,
    )
    return GrowthPointsResponse(points=[_point_to_model(p) for p in points], count=len(points))


@router.post(
    "/series",
    response_model=SeriesResponse,
    summary="Build growth series",
    description="Deduplicate and age-sort growth points, build the single-child series and the "
                "multi-child age table, and compute padded left/right axis domains."
)
async def build_growth_series(
    request: SeriesRequest,
    aggregator: GrowthSeriesAggregator = Depends(get_growth_aggregator),
) -> SeriesResponse:
    """
    Build a growth series.

    Request Body:
    - **points**: Growth points for any number of children
    - **metric**: weight, height, head_circumference or bmi
    - **mode**: value or percentile
    - **child_id**: Restrict to one child
    - **visible_metrics**: Metrics toggled on (drives axis domains)
    """
    output = _build_series(request, aggregator)
    logger.info(
        "Growth series built",
        extra={"metric": output.metric.value, "mode": output.mode.value,
               "points": len(output.points), "multi_child": output.multi_child}
    )
    return _series_to_response(output)


@router.post(
    "/velocity",
    response_model=VelocityResponse,
    summary="Weight velocity",
    description="Weight change per 30 days between consecutive weighed visits of each child."
)
async def weight_velocity(request: VelocityRequest) -> VelocityResponse:
    """Compute weight velocity per child."""
    velocities = calculate_weight_velocity(_to_domain_points(request.points))
    return VelocityResponse(
        velocities=[
            VelocityPointResponse(
                child_id=v.child_id,
                visit_date=v.visit_date,
                velocity=v.velocity,
                days=v.days,
            )
            for v in velocities
        ]
    )


@router.post(
    "/chart",
    response_class=HTMLResponse,
    summary="Render growth chart",
    description="Render the growth series as a standalone interactive HTML page (Plotly)."
)
async def render_growth_chart(
    request: GrowthChartRequest,
    aggregator: GrowthSeriesAggregator = Depends(get_growth_aggregator),
    graph_service: GraphService = Depends(get_graph_service),
) -> HTMLResponse:
    """
    Render a growth chart as HTML.

    Raises:
    - 400: child_id names a child with no points in the request
    """
    if request.child_id is not None and all(p.child_id != request.child_id for p in request.points):
        raise InvalidRequestError(
            f"No growth points for child {request.child_id}",
            child_id=request.child_id,
        )

    output = _build_series(request, aggregator)
    html = graph_service.generate_growth_html(output, title=request.title or "Growth")
    get_metrics_collector().record_chart_render("growth")
    return HTMLResponse(content=html, status_code=200)
