"""Tests for MCP server tools.

Integration tests call the live QuickBooks API and need QBO_ACCESS_TOKEN
and QBO_REALM_ID; without them they are skipped.
"""

import pytest

import conftest
from qbo_metrics import server
from qbo_metrics.config import Settings
from qbo_metrics.models import Timeframe


class _Item:
    def __init__(self, *marks):
        self.keywords = {mark: True for mark in marks}
        self.markers = []

    def add_marker(self, marker):
        self.markers.append(marker)


def test_integration_skipped_without_credentials(monkeypatch):
    monkeypatch.setattr(conftest, "get_config", lambda: Settings(qbo_access_token="", qbo_realm_id=""))
    live, unit = _Item("integration"), _Item()
    conftest.pytest_collection_modifyitems(None, [live, unit])
    assert [m.name for m in live.markers] == ["skip"]
    assert unit.markers == []


def test_integration_runs_with_credentials(monkeypatch):
    monkeypatch.setattr(
        conftest, "get_config", lambda: Settings(qbo_access_token="tok", qbo_realm_id="123")
    )
    live = _Item("integration")
    conftest.pytest_collection_modifyitems(None, [live])
    assert live.markers == []


def test_server_name():
    assert server.mcp.name == "QBO-Metrics"


def test_breakdown_tool_with_stub_client(monkeypatch, profit_and_loss):
    class StubClient:
        def fetch_report(self, report_kind, start_date, end_date):
            return profit_and_loss

    monkeypatch.setattr(server, "get_qbo_client", lambda: StubClient())
    tool = server.get_expense_breakdown
    fn = getattr(tool, "fn", tool)
    result = fn("MONTH", "2024-01-01", "2024-01-31")
    assert result[0] == {"name": "Miscellaneous", "value": 2916.0, "percentage": pytest.approx(57.83, abs=0.01)}
    assert len(result) == 7


def test_invalid_timeframe_rejected(monkeypatch):
    monkeypatch.setattr(server, "get_qbo_client", lambda: None)
    tool = server.get_previous_period
    fn = getattr(tool, "fn", tool)
    with pytest.raises(ValueError):
        fn("FORTNIGHT")


@pytest.mark.integration
def test_get_general_tool():
    fn = getattr(server.get_general, "fn", server.get_general)
    result = fn("MONTH")
    assert set(result["kpis"]) == {"revenue", "expenses", "net_profit", "net_margin", "cash_balance"}
    assert result["timeframe"]["type"] == Timeframe.MONTH.value
    assert result["trend_data"] is None


@pytest.mark.integration
def test_get_monthly_trend_tool():
    fn = getattr(server.get_monthly_trend, "fn", server.get_monthly_trend)
    result = fn(2024)
    assert result["year"] == 2024
    assert [p["month"] for p in result["trend_data"]][:3] == ["Jan", "Feb", "Mar"]
    assert len(result["trend_data"]) == 12


@pytest.mark.integration
def test_get_previous_period_tool():
    fn = getattr(server.get_previous_period, "fn", server.get_previous_period)
    result = fn("YEAR", "2024-01-01", "2024-12-31")
    assert result["timeframe"]["from_date"] == "2024-01-01"
    assert isinstance(result["previous_period_data"], list)
