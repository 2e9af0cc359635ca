"""QBO-Metrics: MCP server for QuickBooks Online financial dashboards.

Tool hierarchy
──────────────
  Dashboard
    1. get_dashboard          - KPIs + breakdown + 12-month trend + previous period
    2. get_general            - KPIs + expense breakdown only (2 report fetches)

  Series
    3. get_monthly_trend      - revenue/expenses per month for one year
    4. get_previous_period    - expense breakdown of the period before

  Breakdown
    5. get_expense_breakdown  - top expense categories for any range

Dates are ISO strings (YYYY-MM-DD). Timeframe is "YEAR" or "MONTH"; when
from/to are omitted the current calendar year or month is used.
"""

from __future__ import annotations

from datetime import date

from fastmcp import FastMCP

from qbo_metrics.comparison import previous_period
from qbo_metrics.config import get_config
from qbo_metrics.dashboard import build_dashboard, build_general, build_trend, resolve_range
from qbo_metrics.extraction import extract_breakdown
from qbo_metrics.models import ReportKind, Timeframe
from qbo_metrics.qbo_client import get_qbo_client

mcp = FastMCP(name="QBO-Metrics")


# ═══════════════════════════════════════════════════════════════════════════
#  DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════


@mcp.tool()
def get_dashboard(
    timeframe: str = "YEAR",
    from_date: str | None = None,
    to_date: str | None = None,
) -> dict:
    """Get the full financial dashboard for a QuickBooks company.

    Args:
        timeframe: 'YEAR' (year to date) or 'MONTH' (month to date)
        from_date: start of the current period (optional)
        to_date: end of the current period (optional)

    Returns organisation, kpis (revenue, expenses, net_profit, net_margin,
    cash_balance), expense_breakdown, trend_data (12 months of the current
    year) and previous_period_data. Makes ~15 paced API calls.
    """
    result = build_dashboard(get_qbo_client(), Timeframe(timeframe), from_date, to_date)
    return result.model_dump(mode="json")


@mcp.tool()
def get_general(
    timeframe: str = "YEAR",
    from_date: str | None = None,
    to_date: str | None = None,
) -> dict:
    """Get KPIs and the expense breakdown without trend or comparison data.

    Args:
        timeframe: 'YEAR' or 'MONTH'
        from_date: start of the period (optional)
        to_date: end of the period (optional)
    """
    result = build_general(get_qbo_client(), Timeframe(timeframe), from_date, to_date)
    return result.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
#  SERIES
# ═══════════════════════════════════════════════════════════════════════════


@mcp.tool()
def get_monthly_trend(year: int | None = None) -> dict:
    """Get revenue and expenses for each month of a year.

    Args:
        year: calendar year (None = current year)

    Always returns 12 points; months that could not be fetched are zero.
    """
    year = year or date.today().year
    points = build_trend(get_qbo_client(), year)
    return {"trend_data": [p.model_dump() for p in points], "year": year}


@mcp.tool()
def get_previous_period(
    timeframe: str = "YEAR",
    from_date: str | None = None,
    to_date: str | None = None,
) -> dict:
    """Get the expense breakdown of the period before the current one.

    Args:
        timeframe: 'YEAR' (previous calendar year) or 'MONTH' (previous month)
        from_date: start of the current period (optional)
        to_date: end of the current period (optional)
    """
    period = resolve_range(Timeframe(timeframe), from_date, to_date)
    client = get_qbo_client()
    entries = previous_period(
        timeframe,
        period.from_date,
        period.to_date,
        client.report_fetcher(ReportKind.PROFIT_AND_LOSS),
    )
    return {
        "previous_period_data": [e.model_dump() for e in entries],
        "timeframe": {
            "from_date": period.from_date.isoformat(),
            "to_date": period.to_date.isoformat(),
            "type": Timeframe(timeframe).value,
        },
    }


# ═══════════════════════════════════════════════════════════════════════════
#  BREAKDOWN
# ═══════════════════════════════════════════════════════════════════════════


@mcp.tool()
def get_expense_breakdown(
    timeframe: str = "YEAR",
    from_date: str | None = None,
    to_date: str | None = None,
) -> list[dict]:
    """Get the top expense categories with their share of total expenses.

    Args:
        timeframe: 'YEAR' or 'MONTH'
        from_date: start of the period (optional)
        to_date: end of the period (optional)

    Categories come from the Expenses, Other Expenses and Cost of Goods
    Sold sections; subtotal rows are excluded.
    """
    period = resolve_range(Timeframe(timeframe), from_date, to_date)
    start, end = period.as_params()
    report = get_qbo_client().fetch_report(ReportKind.PROFIT_AND_LOSS, start, end)
    entries = extract_breakdown(report, limit=get_config().breakdown_limit)
    return [e.model_dump() for e in entries]


# ═══════════════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import sys

    # Support SSE transport for remote hosting:
    #   python -m qbo_metrics.server --sse
    # Default is STDIO (for local MCP clients)
    if "--sse" in sys.argv:
        mcp.run(transport="sse", port=get_config().port)
    else:
        mcp.run()
