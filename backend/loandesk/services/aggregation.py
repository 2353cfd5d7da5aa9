from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, List, Optional, Protocol, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from loandesk.core.config import NO_TEAM_LABEL, UNASSIGNED_AGENT_LABEL, UNKNOWN_SEGMENT_LABEL
from loandesk.models import BankApplication, Lead, Profile, SegmentType, Team, TeamMember
from loandesk.services.comparison import AgentComparisonRow, Period, SegmentComparisonRow
from loandesk.services.periods import ResolvedPeriods


@dataclass(frozen=True)
class ComparisonFilters:
    """Optional restrictions; None means no restriction on that dimension."""
    segments: Optional[FrozenSet[str]] = None
    team_ids: Optional[FrozenSet[UUID]] = None


NO_FILTERS = ComparisonFilters()


class AggregationProvider(Protocol):
    def fetch_agent_aggregates(
        self, periods: ResolvedPeriods, filters: ComparisonFilters = NO_FILTERS
    ) -> List[AgentComparisonRow]: ...

    def fetch_segment_aggregates(
        self, periods: ResolvedPeriods, filters: ComparisonFilters = NO_FILTERS
    ) -> List[SegmentComparisonRow]: ...


def _agent_name(first_name: str | None, last_name: str | None, email: str | None) -> str:
    name = " ".join(p for p in [first_name, last_name] if p)
    return name or email or UNASSIGNED_AGENT_LABEL


def _segment_label(segment: SegmentType | str | None) -> str:
    if segment is None:
        return UNKNOWN_SEGMENT_LABEL
    return segment.value if isinstance(segment, SegmentType) else str(segment)


class SqlAggregationProvider:
    """
    Aggregates disbursed bank applications per period.

    Activity counted for a month is every application disbursed between the
    1st and the cutoff day of that month. ``count`` is the number of such
    applications and ``amount`` the sum of their approved amounts.
    """

    def __init__(self, db: Session):
        self.db = db

    def _period_windows(self, periods: ResolvedPeriods) -> List[Tuple[Period, date, date]]:
        return [
            (Period.current, *periods.current_range),
            (Period.previous, *periods.previous_range),
        ]

    def _apply_filters(self, query: Query, filters: ComparisonFilters) -> Query:
        if filters.segments:
            query = query.filter(Lead.segment.in_([SegmentType(s) for s in sorted(filters.segments)]))
        if filters.team_ids:
            query = query.filter(TeamMember.team_id.in_(sorted(filters.team_ids, key=str)))
        return query

    def _base_query(self, *columns) -> Query:
        return (
            self.db.query(
                *columns,
                func.count(BankApplication.id).label("count"),
                func.coalesce(func.sum(BankApplication.approved_amount), 0).label("amount"),
            )
            .select_from(BankApplication)
            .join(Lead, BankApplication.lead_id == Lead.id)
            .outerjoin(Profile, Lead.lead_owner == Profile.id)
            .outerjoin(TeamMember, TeamMember.user_id == Profile.id)
            .outerjoin(Team, TeamMember.team_id == Team.id)
        )

    def fetch_agent_aggregates(
        self, periods: ResolvedPeriods, filters: ComparisonFilters = NO_FILTERS
    ) -> List[AgentComparisonRow]:
        group_columns = (
            Lead.lead_owner,
            Profile.first_name,
            Profile.last_name,
            Profile.email,
            TeamMember.team_id,
            Team.name,
            Lead.segment,
        )
        rows: List[AgentComparisonRow] = []
        for period, start, end in self._period_windows(periods):
            query = self._base_query(*group_columns).filter(
                BankApplication.disburse_date >= start,
                BankApplication.disburse_date <= end,
            )
            query = self._apply_filters(query, filters).group_by(*group_columns)

            for owner_id, first_name, last_name, email, team_id, team_name, segment, count, amount in query.all():
                rows.append(AgentComparisonRow(
                    period=period,
                    agent_id=owner_id,
                    agent_name=_agent_name(first_name, last_name, email) if owner_id else UNASSIGNED_AGENT_LABEL,
                    team_id=team_id,
                    team_name=team_name or NO_TEAM_LABEL,
                    segment=_segment_label(segment),
                    count=int(count),
                    amount=float(amount),
                ))
        return rows

    def fetch_segment_aggregates(
        self, periods: ResolvedPeriods, filters: ComparisonFilters = NO_FILTERS
    ) -> List[SegmentComparisonRow]:
        rows: List[SegmentComparisonRow] = []
        for period, start, end in self._period_windows(periods):
            query = self._base_query(Lead.segment).filter(
                BankApplication.disburse_date >= start,
                BankApplication.disburse_date <= end,
            )
            query = self._apply_filters(query, filters).group_by(Lead.segment)

            for segment, count, amount in query.all():
                rows.append(SegmentComparisonRow(
                    period=period,
                    segment=_segment_label(segment),
                    count=int(count),
                    amount=float(amount),
                ))
        return rows
