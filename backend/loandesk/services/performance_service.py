from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional
from uuid import UUID

from loandesk.models import SegmentType
from loandesk.services.aggregation import AggregationProvider, ComparisonFilters, NO_FILTERS
from loandesk.services.comparison import ComparisonResult, collapse_totals, compute_deltas
from loandesk.services.periods import ResolvedPeriods

logger = logging.getLogger(__name__)


def parse_csv_param(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_segments(raw: Optional[str]) -> Optional[FrozenSet[str]]:
    """Comma-separated segment codes; unknown codes are dropped, nothing left means no filter."""
    valid = {s.value for s in SegmentType}
    codes = frozenset(code.upper() for code in parse_csv_param(raw) if code.upper() in valid)
    return codes or None


def parse_team_ids(raw: Optional[str]) -> Optional[FrozenSet[UUID]]:
    """Comma-separated team UUIDs; malformed ids are dropped, nothing left means no filter."""
    ids = set()
    for part in parse_csv_param(raw):
        try:
            ids.add(UUID(part))
        except ValueError:
            logger.debug("Ignoring malformed team id", extra={"team_id": part})
    return frozenset(ids) or None


def build_filters(segments: Optional[str], team_ids: Optional[str]) -> ComparisonFilters:
    return ComparisonFilters(segments=parse_segments(segments), team_ids=parse_team_ids(team_ids))


def monthly_comparison(
    provider: AggregationProvider,
    periods: ResolvedPeriods,
    filters: ComparisonFilters = NO_FILTERS,
) -> List[ComparisonResult]:
    """Per-agent comparison, optionally restricted to segments and teams."""
    rows = provider.fetch_agent_aggregates(periods, filters)
    return compute_deltas(rows)


def segment_comparison(provider: AggregationProvider, periods: ResolvedPeriods) -> List[ComparisonResult]:
    rows = provider.fetch_segment_aggregates(periods, NO_FILTERS)
    return compute_deltas(rows)


def trends_summary(provider: AggregationProvider, periods: ResolvedPeriods) -> ComparisonResult:
    """All segments collapsed into one overall comparison."""
    rows = provider.fetch_segment_aggregates(periods, NO_FILTERS)
    # collapse_totals always yields both periods, so exactly one result comes back
    (summary,) = compute_deltas(collapse_totals(rows))
    return summary
