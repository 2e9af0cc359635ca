"""Tests for the previous-period expense comparison."""

from datetime import date

from conftest import data_row, report, section
from qbo_metrics.models import Timeframe
from qbo_metrics.comparison import previous_period


class RecordingFetcher:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, from_date, to_date):
        self.calls.append((from_date, to_date))
        if self.error is not None:
            raise self.error
        return self.result


def test_previous_year_range_requested(profit_and_loss):
    fetch = RecordingFetcher(profit_and_loss)
    entries = previous_period(Timeframe.YEAR, "2024-01-01", "2024-12-31", fetch)
    assert fetch.calls == [("2023-01-01", "2023-12-31")]
    assert entries[0].name == "Miscellaneous"
    assert len(entries) == 7


def test_previous_month_range_requested():
    tree = report([section("Expenses", [data_row("Rent", "900.00")])])
    fetch = RecordingFetcher(tree)
    entries = previous_period(Timeframe.MONTH, date(2024, 3, 1), date(2024, 3, 31), fetch)
    assert fetch.calls == [("2024-02-01", "2024-02-29")]
    assert [(e.name, e.value, e.percentage) for e in entries] == [("Rent", 900.0, 100.0)]


def test_january_compares_with_previous_december():
    fetch = RecordingFetcher(report([]))
    assert previous_period("MONTH", "2025-01-01", None, fetch) == []
    assert fetch.calls == [("2024-12-01", "2024-12-31")]


def test_lowercase_year_compares_with_previous_year():
    fetch = RecordingFetcher(report([]))
    previous_period("year", "2024-01-01", "2024-12-31", fetch)
    assert fetch.calls == [("2023-01-01", "2023-12-31")]


def test_fetch_failure_is_empty():
    fetch = RecordingFetcher(error=RuntimeError("QBO down"))
    assert previous_period(Timeframe.YEAR, "2024-01-01", "2024-12-31", fetch) == []
    assert len(fetch.calls) == 1


def test_unparsable_start_is_empty_without_fetching():
    fetch = RecordingFetcher(report([]))
    assert previous_period(Timeframe.MONTH, "not-a-date", None, fetch) == []
    assert previous_period(Timeframe.MONTH, None, None, fetch) == []
    assert fetch.calls == []
