"""
Tests for the SQL aggregation provider against a seeded SQLite database.
"""
from datetime import date

import pytest

from loandesk.services import performance_service
from loandesk.services.aggregation import ComparisonFilters, SqlAggregationProvider
from loandesk.services.comparison import Period
from loandesk.services.periods import resolve_periods


@pytest.fixture()
def seeded(factory):
    """
    Two agents sharing a display name, one of them in a team, plus an
    unassigned lead. Anchor date is 2025-07-15.
    """
    team = factory.team("North")
    asha = factory.profile("Asha", "Rao")
    asha_twin = factory.profile("Asha", "Rao")
    factory.membership(team, asha)
    bank = factory.bank("HDFC")

    lead_a = factory.lead(owner=asha, segment="PL", mobile_number="9000000001")
    lead_b = factory.lead(owner=asha_twin, segment="BL", mobile_number="9000000002")
    lead_u = factory.lead(owner=None, segment=None, mobile_number="9000000003")

    factory.application(lead_a, bank, date(2025, 7, 3), 50000)
    factory.application(lead_a, bank, date(2025, 7, 15), 30000)   # cutoff day is inclusive
    factory.application(lead_a, bank, date(2025, 7, 20), 99999)   # after cutoff
    factory.application(lead_a, bank, date(2025, 6, 10), 40000)
    factory.application(lead_a, bank, date(2025, 6, 16), 77777)   # after cutoff
    factory.application(lead_a, bank, None, 12345)                # never disbursed
    factory.application(lead_b, bank, date(2025, 6, 1), 20000)
    factory.application(lead_u, bank, date(2025, 7, 1), None)

    return {"team": team, "asha": asha, "asha_twin": asha_twin}


def _by_period(rows):
    return {
        (row.period, row.agent_id): row
        for row in rows
    }


class TestSqlAggregationProvider:

    def test_agent_rows_respect_day_cutoff(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        rows = provider.fetch_agent_aggregates(resolve_periods("2025-07-15"))

        by_key = _by_period(rows)
        assert len(rows) == 4

        current_asha = by_key[(Period.current, seeded["asha"].id)]
        assert current_asha.count == 2
        assert current_asha.amount == 80000.0
        assert current_asha.team_id == seeded["team"].id
        assert current_asha.team_name == "North"
        assert current_asha.segment == "PL"

        previous_asha = by_key[(Period.previous, seeded["asha"].id)]
        assert previous_asha.count == 1
        assert previous_asha.amount == 40000.0

        previous_twin = by_key[(Period.previous, seeded["asha_twin"].id)]
        assert previous_twin.team_name == "No Team"
        assert previous_twin.segment == "BL"

        unassigned = by_key[(Period.current, None)]
        assert unassigned.agent_name == "Unassigned"
        assert unassigned.segment == "Unknown"
        assert unassigned.amount == 0.0

    def test_segment_filter(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        rows = provider.fetch_agent_aggregates(
            resolve_periods("2025-07-15"),
            ComparisonFilters(segments=frozenset({"PL"})),
        )

        assert {row.agent_id for row in rows} == {seeded["asha"].id}

    def test_team_filter(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        rows = provider.fetch_agent_aggregates(
            resolve_periods("2025-07-15"),
            ComparisonFilters(team_ids=frozenset({seeded["team"].id})),
        )

        assert {row.agent_id for row in rows} == {seeded["asha"].id}
        assert len(rows) == 2

    def test_segment_rows(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        rows = provider.fetch_segment_aggregates(resolve_periods("2025-07-15"))

        totals = {(row.period, row.segment): (row.count, row.amount) for row in rows}
        assert totals == {
            (Period.current, "PL"): (2, 80000.0),
            (Period.current, "Unknown"): (1, 0.0),
            (Period.previous, "PL"): (1, 40000.0),
            (Period.previous, "BL"): (1, 20000.0),
        }

    def test_no_activity_returns_no_rows(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        assert provider.fetch_agent_aggregates(resolve_periods("2020-05-10")) == []
        assert provider.fetch_segment_aggregates(resolve_periods("2020-05-10")) == []

    def test_previous_month_shorter_than_cutoff(self, db_session, factory):
        bank = factory.bank("ICICI")
        lead = factory.lead(segment="BL")
        factory.application(lead, bank, date(2025, 2, 28), 1000)

        rows = SqlAggregationProvider(db_session).fetch_segment_aggregates(resolve_periods("2025-03-31"))

        assert [(row.period, row.count) for row in rows] == [(Period.previous, 1)]


class TestEndToEnd:

    def test_monthly_comparison_over_database(self, db_session, seeded):
        provider = SqlAggregationProvider(db_session)

        results = performance_service.monthly_comparison(provider, resolve_periods("2025-07-15"))

        by_agent = {r.labels["agent_id"]: r for r in results}
        assert len(by_agent) == 3

        asha = by_agent[seeded["asha"].id]
        assert asha.count_change == 1
        assert asha.amount_change == 40000.0
        assert asha.count_change_percent == 100.0

        twin = by_agent[seeded["asha_twin"].id]
        assert twin.current_month_count == 0
        assert twin.count_change_percent == -100.0

        unassigned = by_agent[None]
        assert unassigned.count_change_percent == 100.0
        assert unassigned.amount_change_percent == 0.0

    def test_api_against_database(self, client, seeded):
        response = client.get("/performance/trends-summary", params={"compareDate": "2025-07-15"})

        assert response.status_code == 200
        body = response.json()
        assert body["current_month_count"] == 3
        assert body["previous_month_count"] == 2
        assert body["current_month_amount"] == 80000
        assert body["previous_month_amount"] == 60000
