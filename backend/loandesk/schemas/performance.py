from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class ComparisonMetrics(BaseModel):
    """Both periods' raw metrics plus the derived deltas."""
    current_month_count: int
    current_month_amount: float
    previous_month_count: int
    previous_month_amount: float
    count_change: int
    amount_change: float
    count_change_percent: float  # 100 / -100 when the previous month is zero
    amount_change_percent: float


class AgentComparisonOut(ComparisonMetrics):
    agent_id: Optional[UUID] = None
    agent_name: str
    team_id: Optional[UUID] = None
    team_name: str
    segment: str


class SegmentComparisonOut(ComparisonMetrics):
    segment: str


class TrendsSummaryOut(ComparisonMetrics):
    current_month: str  # YYYY-MM
    previous_month: str
    compare_day: int


class ErrorOut(BaseModel):
    error: str
