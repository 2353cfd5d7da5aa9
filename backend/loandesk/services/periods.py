"""
Month-to-date period resolution for performance comparisons.

Given an anchor date, the current period is the anchor's calendar month and the
previous period is the calendar month before it. Both periods are cut off at
the anchor's day-of-month so that e.g. the first 15 days of July are compared
with the first 15 days of June.

Example:
    >>> periods = resolve_periods("2025-01-15")
    >>> str(periods.current_month), str(periods.previous_month), periods.day_cutoff
    ('2025-01', '2024-12', 15)
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Optional

MIN_DAY = 1
MAX_DAY = 31

# Day used when stepping back a month; exists in every month
REFERENCE_DAY = 15


@dataclass(frozen=True)
class PeriodKey:
    """A calendar month, serialized as YYYY-MM."""

    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def cutoff_day(self, day_cutoff: int) -> date:
        """Last date included for this month, clamped to the month's length."""
        last_day = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, min(day_cutoff, last_day))

    def previous(self) -> "PeriodKey":
        if self.month == 1:
            stepped = date(self.year - 1, 12, REFERENCE_DAY)
        else:
            stepped = date(self.year, self.month - 1, REFERENCE_DAY)
        return PeriodKey(stepped.year, stepped.month)


@dataclass(frozen=True)
class ResolvedPeriods:
    current_month: PeriodKey
    previous_month: PeriodKey
    day_cutoff: int

    @property
    def current_range(self) -> tuple[date, date]:
        return self.current_month.first_day(), self.current_month.cutoff_day(self.day_cutoff)

    @property
    def previous_range(self) -> tuple[date, date]:
        return self.previous_month.first_day(), self.previous_month.cutoff_day(self.day_cutoff)


def parse_anchor_date(raw: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None for anything unusable."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def resolve_periods(anchor: Optional[str] = None, today: Optional[date] = None) -> ResolvedPeriods:
    """
    Resolve the current/previous month keys and the shared day cutoff.

    Args:
        anchor: Anchor date as YYYY-MM-DD. Missing or invalid values fall back
            to ``today``.
        today: Clock injection point; defaults to ``date.today()``.

    Returns:
        ResolvedPeriods for the anchor date. Never raises for bad input.
    """
    anchor_date = parse_anchor_date(anchor)
    if anchor_date is None:
        anchor_date = today or date.today()

    current = PeriodKey(anchor_date.year, anchor_date.month)
    day_cutoff = max(MIN_DAY, min(MAX_DAY, anchor_date.day))

    return ResolvedPeriods(
        current_month=current,
        previous_month=current.previous(),
        day_cutoff=day_cutoff,
    )
