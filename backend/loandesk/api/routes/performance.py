"""Performance Comparison API - month-to-date comparison against the previous month."""
from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from loandesk.api.deps import get_aggregation_provider
from loandesk.schemas.performance import (
    AgentComparisonOut,
    ErrorOut,
    SegmentComparisonOut,
    TrendsSummaryOut,
)
from loandesk.services import performance_service
from loandesk.services.aggregation import AggregationProvider
from loandesk.services.periods import ResolvedPeriods, resolve_periods

router = APIRouter(prefix="/performance", tags=["performance"])

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorOut}}


def _failure(endpoint: str, periods: ResolvedPeriods, message: str) -> JSONResponse:
    logger.exception(
        message,
        extra={
            "endpoint": endpoint,
            "current_month": str(periods.current_month),
            "previous_month": str(periods.previous_month),
            "compare_day": periods.day_cutoff,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message},
    )


@router.get("/monthly-comparison", response_model=List[AgentComparisonOut], responses=ERROR_RESPONSES)
def monthly_comparison(
    compare_date: Optional[str] = Query(default=None, alias="compareDate", description="Anchor date YYYY-MM-DD"),
    segments: Optional[str] = Query(default=None, description="Comma-separated segment codes"),
    team_ids: Optional[str] = Query(default=None, alias="teamIds", description="Comma-separated team ids"),
    provider: AggregationProvider = Depends(get_aggregation_provider),
) -> Union[List[AgentComparisonOut], JSONResponse]:
    """Per-agent counts and disbursed amounts, current month vs previous month."""
    periods = resolve_periods(compare_date)
    filters = performance_service.build_filters(segments, team_ids)
    try:
        results = performance_service.monthly_comparison(provider, periods, filters)
    except Exception:  # pylint: disable=broad-exception-caught
        return _failure("monthly-comparison", periods, "Failed to fetch monthly comparison data")
    return [AgentComparisonOut(**r.to_dict()) for r in results]


@router.get("/segment-comparison", response_model=List[SegmentComparisonOut], responses=ERROR_RESPONSES)
def segment_comparison(
    compare_date: Optional[str] = Query(default=None, alias="compareDate", description="Anchor date YYYY-MM-DD"),
    provider: AggregationProvider = Depends(get_aggregation_provider),
) -> Union[List[SegmentComparisonOut], JSONResponse]:
    periods = resolve_periods(compare_date)
    try:
        results = performance_service.segment_comparison(provider, periods)
    except Exception:  # pylint: disable=broad-exception-caught
        return _failure("segment-comparison", periods, "Failed to fetch segment comparison data")
    return [SegmentComparisonOut(**r.to_dict()) for r in results]


@router.get("/trends-summary", response_model=TrendsSummaryOut, responses=ERROR_RESPONSES)
def trends_summary(
    compare_date: Optional[str] = Query(default=None, alias="compareDate", description="Anchor date YYYY-MM-DD"),
    provider: AggregationProvider = Depends(get_aggregation_provider),
) -> Union[TrendsSummaryOut, JSONResponse]:
    """Overall totals across all segments."""
    periods = resolve_periods(compare_date)
    try:
        summary = performance_service.trends_summary(provider, periods)
    except Exception:  # pylint: disable=broad-exception-caught
        return _failure("trends-summary", periods, "Failed to fetch trends summary data")
    return TrendsSummaryOut(
        **summary.to_dict(),
        current_month=str(periods.current_month),
        previous_month=str(periods.previous_month),
        compare_day=periods.day_cutoff,
    )
