"""Dashboard assembly: KPIs, expense breakdown, trend and comparison.

Data flow:
  1. current_range() → the period the caller asked for (or its default)
  2. QBOClient.fetch_report() → P&L and Balance Sheet for that period
  3. extraction → revenue, expenses, net profit, cash, breakdown
  4. build_monthly_trend() → 12 paced P&L fetches for the current year
  5. previous_period() → breakdown of the period before

Steps 1-3 make up the "general" view; the full dashboard adds 4-5.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import date

from qbo_metrics.comparison import previous_period
from qbo_metrics.config import get_config
from qbo_metrics.extraction import (
    CASH_LABELS,
    NET_PROFIT_LABELS,
    REVENUE_LABELS,
    extract_breakdown,
    extract_value,
    find_value_by_priority,
    sum_values,
)
from qbo_metrics.models import (
    Dashboard,
    DashboardKPIs,
    DateRange,
    Organisation,
    ReportKind,
    Timeframe,
    TimeframeInfo,
    TrendPoint,
)
from qbo_metrics.periods import coerce_date, current_range
from qbo_metrics.qbo_client import QBOClient
from qbo_metrics.trend import build_monthly_trend

log = logging.getLogger(__name__)


def resolve_range(
    timeframe: Timeframe | str,
    from_date: date | str | None = None,
    to_date: date | str | None = None,
    today: date | None = None,
) -> DateRange:
    """Caller-supplied range when both ends are given, else the timeframe default."""
    if from_date and to_date:
        return DateRange(from_date=coerce_date(from_date), to_date=coerce_date(to_date))
    return current_range(timeframe, today)


def compute_kpis(
    profit_loss: dict,
    balance_sheet: dict,
    expense_labels: Sequence[str],
) -> DashboardKPIs:
    """Headline numbers from one P&L and one Balance Sheet."""
    revenue = extract_value(profit_loss, REVENUE_LABELS)
    expenses = sum_values(profit_loss, expense_labels)
    net_profit = find_value_by_priority(profit_loss, NET_PROFIT_LABELS) or 0.0
    cash = extract_value(balance_sheet, CASH_LABELS)

    net_margin = (net_profit / revenue) * 100 if revenue > 0 else 0.0
    return DashboardKPIs(
        revenue=abs(revenue),
        expenses=abs(expenses),
        net_profit=net_profit,
        net_margin=net_margin,
        cash_balance=abs(cash),
    )


def _organisation(client: QBOClient) -> Organisation:
    try:
        return client.get_company_info()
    except Exception as exc:
        log.warning("Company info unavailable: %s", exc)
        return Organisation()


def build_general(
    client: QBOClient,
    timeframe: Timeframe | str = Timeframe.YEAR,
    from_date: date | str | None = None,
    to_date: date | str | None = None,
    *,
    today: date | None = None,
    expense_labels: Sequence[str] | None = None,
) -> Dashboard:
    """KPIs and expense breakdown for the current period.

    P&L and Balance Sheet failures propagate; the company name is optional.
    """
    config = get_config()
    timeframe = Timeframe(timeframe)
    period = resolve_range(timeframe, from_date, to_date, today)
    start, end = period.as_params()
    labels = expense_labels if expense_labels is not None else config.expense_total_labels

    profit_loss = client.fetch_report(ReportKind.PROFIT_AND_LOSS, start, end)
    balance_sheet = client.fetch_report(ReportKind.BALANCE_SHEET, start, end)

    return Dashboard(
        organisation=_organisation(client),
        kpis=compute_kpis(profit_loss, balance_sheet, labels),
        expense_breakdown=extract_breakdown(profit_loss, limit=config.breakdown_limit),
        timeframe=TimeframeInfo(from_date=period.from_date, to_date=period.to_date, type=timeframe),
    )


def build_trend(
    client: QBOClient,
    year: int,
    *,
    expense_labels: Sequence[str] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[TrendPoint]:
    """The 12-month trend wired to the client and config pacing."""
    config = get_config()
    labels = expense_labels if expense_labels is not None else config.expense_total_labels
    return build_monthly_trend(
        year,
        client.report_fetcher(ReportKind.PROFIT_AND_LOSS),
        expense_labels=labels,
        inter_call_delay=config.inter_call_delay,
        default_retry_after=config.default_retry_after,
        sleep=sleep,
    )


def build_dashboard(
    client: QBOClient,
    timeframe: Timeframe | str = Timeframe.YEAR,
    from_date: date | str | None = None,
    to_date: date | str | None = None,
    *,
    today: date | None = None,
    expense_labels: Sequence[str] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dashboard:
    """The general view plus this year's trend and the previous-period breakdown."""
    today = today or date.today()
    dashboard = build_general(
        client,
        timeframe,
        from_date,
        to_date,
        today=today,
        expense_labels=expense_labels,
    )

    dashboard.trend_data = build_trend(
        client, today.year, expense_labels=expense_labels, sleep=sleep
    )
    dashboard.previous_period_data = previous_period(
        dashboard.timeframe.type,
        dashboard.timeframe.from_date,
        dashboard.timeframe.to_date,
        client.report_fetcher(ReportKind.PROFIT_AND_LOSS),
    )
    return dashboard
