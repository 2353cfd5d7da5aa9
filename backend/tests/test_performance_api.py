"""
API tests for the performance comparison endpoints with a stubbed data source.
"""
import logging
from uuid import uuid4

import pytest

from loandesk.api.deps import get_aggregation_provider
from loandesk.main import app
from loandesk.services.aggregation import NO_FILTERS
from loandesk.services.comparison import AgentComparisonRow, Period, SegmentComparisonRow

AGENT_ID = uuid4()
TEAM_ID = uuid4()


class StubProvider:
    """Records calls and returns canned rows, or raises ``error``."""

    def __init__(self, agent_rows=(), segment_rows=(), error=None):
        self.agent_rows = list(agent_rows)
        self.segment_rows = list(segment_rows)
        self.error = error
        self.calls = []

    def fetch_agent_aggregates(self, periods, filters=NO_FILTERS):
        self.calls.append(("agent", periods, filters))
        if self.error:
            raise self.error
        return self.agent_rows

    def fetch_segment_aggregates(self, periods, filters=NO_FILTERS):
        self.calls.append(("segment", periods, filters))
        if self.error:
            raise self.error
        return self.segment_rows


@pytest.fixture()
def use_provider(client):
    def _install(provider):
        app.dependency_overrides[get_aggregation_provider] = lambda: provider
        return provider
    return _install


def agent_row(period, count, amount):
    return AgentComparisonRow(
        period=period,
        agent_id=AGENT_ID,
        agent_name="Asha Rao",
        team_id=TEAM_ID,
        team_name="North",
        segment="PL",
        count=count,
        amount=amount,
    )


class TestMonthlyComparison:

    def test_month_over_month_growth(self, client, use_provider):
        provider = use_provider(StubProvider(agent_rows=[
            agent_row(Period.current, 10, 50000.0),
            agent_row(Period.previous, 8, 40000.0),
        ]))

        response = client.get("/performance/monthly-comparison", params={"compareDate": "2025-07-15"})

        assert response.status_code == 200
        (row,) = response.json()
        assert row["agent_id"] == str(AGENT_ID)
        assert row["team_id"] == str(TEAM_ID)
        assert row["count_change"] == 2
        assert row["amount_change"] == 10000
        assert row["count_change_percent"] == 25
        assert row["amount_change_percent"] == 25

        _, periods, _ = provider.calls[0]
        assert str(periods.current_month) == "2025-07"
        assert str(periods.previous_month) == "2025-06"
        assert periods.day_cutoff == 15

    def test_agent_without_previous_month(self, client, use_provider):
        use_provider(StubProvider(agent_rows=[agent_row(Period.current, 5, 25000.0)]))

        response = client.get("/performance/monthly-comparison", params={"compareDate": "2025-03-10"})

        (row,) = response.json()
        assert row["previous_month_count"] == 0
        assert row["previous_month_amount"] == 0
        assert row["count_change"] == 5
        assert row["amount_change"] == 25000
        assert row["count_change_percent"] == 100
        assert row["amount_change_percent"] == 100

    def test_filters_are_parsed_and_forwarded(self, client, use_provider):
        provider = use_provider(StubProvider())
        team_id = uuid4()

        response = client.get(
            "/performance/monthly-comparison",
            params={"segments": "pl,,XX", "teamIds": f"{team_id},not-a-uuid"},
        )

        assert response.status_code == 200
        assert response.json() == []
        _, _, filters = provider.calls[0]
        assert filters.segments == frozenset({"PL"})
        assert filters.team_ids == frozenset({team_id})

    def test_malformed_filters_mean_no_filter(self, client, use_provider):
        provider = use_provider(StubProvider())

        client.get("/performance/monthly-comparison", params={"segments": ",", "teamIds": "abc"})

        _, _, filters = provider.calls[0]
        assert filters.segments is None
        assert filters.team_ids is None

    def test_invalid_compare_date_falls_back_to_today(self, client, use_provider):
        provider = use_provider(StubProvider())

        response = client.get("/performance/monthly-comparison", params={"compareDate": "not-a-date"})

        assert response.status_code == 200
        assert len(provider.calls) == 1

    def test_provider_failure_returns_500(self, client, use_provider):
        use_provider(StubProvider(error=RuntimeError("connection refused")))

        response = client.get("/performance/monthly-comparison")

        assert response.status_code == 500
        body = response.json()
        assert isinstance(body, dict)
        assert body["error"]


class TestSegmentComparison:

    def test_empty_result_is_ok(self, client, use_provider):
        use_provider(StubProvider())

        response = client.get("/performance/segment-comparison", params={"compareDate": "2025-07-15"})

        assert response.status_code == 200
        assert response.json() == []

    def test_segment_rows(self, client, use_provider):
        use_provider(StubProvider(segment_rows=[
            SegmentComparisonRow(period=Period.current, segment="BL", count=4, amount=800.0),
            SegmentComparisonRow(period=Period.previous, segment="BL", count=2, amount=1000.0),
        ]))

        response = client.get("/performance/segment-comparison")

        (row,) = response.json()
        assert row["segment"] == "BL"
        assert row["count_change_percent"] == 100
        assert row["amount_change_percent"] == -20

    def test_provider_failure_returns_500(self, client, use_provider):
        use_provider(StubProvider(error=TimeoutError("statement timeout")))

        response = client.get("/performance/segment-comparison")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch segment comparison data"}


class TestTrendsSummary:

    def test_collapses_segments_into_one_object(self, client, use_provider):
        use_provider(StubProvider(segment_rows=[
            SegmentComparisonRow(period=Period.current, segment="PL", count=3, amount=300.0),
            SegmentComparisonRow(period=Period.current, segment="BL", count=2, amount=200.0),
            SegmentComparisonRow(period=Period.previous, segment="PL", count=4, amount=1000.0),
        ]))

        response = client.get("/performance/trends-summary", params={"compareDate": "2025-01-20"})

        assert response.status_code == 200
        body = response.json()
        assert body["current_month"] == "2025-01"
        assert body["previous_month"] == "2024-12"
        assert body["compare_day"] == 20
        assert body["current_month_count"] == 5
        assert body["count_change_percent"] == 25
        assert body["amount_change"] == -500
        assert body["amount_change_percent"] == -50

    def test_no_activity_reports_zeroes(self, client, use_provider):
        use_provider(StubProvider())

        body = client.get("/performance/trends-summary").json()

        assert body["current_month_count"] == 0
        assert body["previous_month_amount"] == 0
        assert body["count_change_percent"] == 0

    def test_provider_failure_returns_500(self, client, use_provider):
        use_provider(StubProvider(error=RuntimeError("boom")))

        response = client.get("/performance/trends-summary")

        assert response.status_code == 500
        assert "error" in response.json()


class TestFailureLogging:

    @pytest.mark.parametrize(
        "endpoint",
        ["monthly-comparison", "segment-comparison", "trends-summary"],
    )
    def test_failure_logged_once_with_period_keys(self, client, use_provider, caplog, endpoint):
        use_provider(StubProvider(error=RuntimeError("connection refused")))

        with caplog.at_level(logging.ERROR, logger="loandesk.api.routes.performance"):
            response = client.get(f"/performance/{endpoint}", params={"compareDate": "2025-01-20"})

        assert response.status_code == 500
        records = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(records) == 1
        (record,) = records
        assert record.endpoint == endpoint
        assert record.current_month == "2025-01"
        assert record.previous_month == "2024-12"
        assert record.compare_day == 20
        assert record.exc_info is not None
