"""
Period-over-period delta calculation shared by every performance report.

Rows come from the aggregation provider, one per grouping key per period.
``compute_deltas`` pairs the current and previous rows of each key and derives
absolute and percentage changes for the count and amount metrics. The agent,
segment and overall-trend reports all go through this one routine.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

# Percent change reported when the previous value is zero and the current is
# not: +100 for growth from nothing, -100 for a drop below zero.
ZERO_BASELINE_PERCENT = 100.0

TOTAL_KEY = "total"


class Period(str, enum.Enum):
    current = "current"
    previous = "previous"


class ComparableRow(Protocol):
    period: Period
    count: int
    amount: float

    @property
    def grouping_key(self) -> Hashable: ...

    def labels(self) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class AgentComparisonRow:
    period: Period
    agent_id: Optional[UUID]
    agent_name: str
    team_id: Optional[UUID]
    team_name: str
    segment: str
    count: int
    amount: float

    @property
    def grouping_key(self) -> Hashable:
        # Identifiers only; two agents sharing a name stay separate
        return (self.agent_id, self.team_id, self.segment)

    def labels(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "segment": self.segment,
        }


@dataclass(frozen=True)
class SegmentComparisonRow:
    period: Period
    segment: str
    count: int
    amount: float

    @property
    def grouping_key(self) -> Hashable:
        return self.segment

    def labels(self) -> Dict[str, Any]:
        return {"segment": self.segment}


@dataclass(frozen=True)
class TotalComparisonRow:
    period: Period
    count: int
    amount: float

    @property
    def grouping_key(self) -> Hashable:
        return TOTAL_KEY

    def labels(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class ComparisonResult:
    current_month_count: int
    current_month_amount: float
    previous_month_count: int
    previous_month_amount: float
    count_change: int
    amount_change: float
    count_change_percent: float
    amount_change_percent: float
    labels: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.labels,
            "current_month_count": self.current_month_count,
            "current_month_amount": self.current_month_amount,
            "previous_month_count": self.previous_month_count,
            "previous_month_amount": self.previous_month_amount,
            "count_change": self.count_change,
            "amount_change": self.amount_change,
            "count_change_percent": self.count_change_percent,
            "amount_change_percent": self.amount_change_percent,
        }


def percent_change(current: float, previous: float) -> float:
    """Percentage change from ``previous`` to ``current``, full precision."""
    if previous == 0:
        if current == 0:
            return 0.0
        return ZERO_BASELINE_PERCENT if current > 0 else -ZERO_BASELINE_PERCENT
    return (current - previous) / abs(previous) * 100


def compute_deltas(rows: Iterable[ComparableRow]) -> List[ComparisonResult]:
    """
    Pair current/previous rows by grouping key and compute the deltas.

    A key with only one period present still yields a result; the missing
    period counts as zero. Output follows the first appearance of each key.
    """
    grouped: Dict[Hashable, Dict[Period, ComparableRow]] = {}
    for row in rows:
        # Later duplicates for the same key/period are ignored
        grouped.setdefault(row.grouping_key, {}).setdefault(Period(row.period), row)

    results: List[ComparisonResult] = []
    for by_period in grouped.values():
        current = by_period.get(Period.current)
        previous = by_period.get(Period.previous)
        label_source = current if current is not None else previous

        current_count = current.count if current is not None else 0
        current_amount = current.amount if current is not None else 0.0
        previous_count = previous.count if previous is not None else 0
        previous_amount = previous.amount if previous is not None else 0.0

        results.append(ComparisonResult(
            current_month_count=current_count,
            current_month_amount=current_amount,
            previous_month_count=previous_count,
            previous_month_amount=previous_amount,
            count_change=current_count - previous_count,
            amount_change=current_amount - previous_amount,
            count_change_percent=percent_change(current_count, previous_count),
            amount_change_percent=percent_change(current_amount, previous_amount),
            labels=dict(label_source.labels()),
        ))
    return results


def collapse_totals(rows: Sequence[ComparableRow]) -> List[TotalComparisonRow]:
    """Sum all groups into one overall row per period (both periods always present)."""
    totals = []
    for period in (Period.current, Period.previous):
        in_period = [row for row in rows if Period(row.period) == period]
        totals.append(TotalComparisonRow(
            period=period,
            count=sum(row.count for row in in_period),
            amount=sum((row.amount for row in in_period), 0.0),
        ))
    return totals
