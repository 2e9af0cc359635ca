"""Month-by-month revenue/expense trend for one calendar year.

One Profit & Loss report per month, fetched strictly one at a time in
calendar order with a fixed pause between fetches (QBO rejects bursts
above 10 concurrent requests per realm). A month that cannot be fetched
becomes a zero point; the series always has 12 entries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from qbo_metrics.extraction import (
    COGS_LABELS,
    OPERATING_EXPENSE_LABELS,
    REVENUE_LABELS,
    extract_value,
    sum_values,
)
from qbo_metrics.models import TrendPoint
from qbo_metrics.periods import month_range, short_month_name
from qbo_metrics.retry import (
    DEFAULT_RETRY_AFTER,
    INTER_CALL_DELAY,
    call_with_rate_limit_retry,
    paced,
)

log = logging.getLogger(__name__)

# Operating expenses + COGS. "Total Other Expenses" is left out unless the
# caller (or EXPENSE_TOTAL_LABELS in config) asks for it.
DEFAULT_EXPENSE_LABELS = OPERATING_EXPENSE_LABELS + COGS_LABELS

ReportFetcher = Callable[[str, str], dict]


def trend_point(
    month: int,
    report: dict,
    *,
    revenue_labels: Sequence[str] = REVENUE_LABELS,
    expense_labels: Sequence[str] = DEFAULT_EXPENSE_LABELS,
) -> TrendPoint:
    """Reduce one month's P&L report to a TrendPoint."""
    revenue = extract_value(report, revenue_labels)
    expenses = sum_values(report, expense_labels)
    return TrendPoint(
        month=short_month_name(month),
        revenue=abs(revenue),
        expenses=abs(expenses),
    )


def build_monthly_trend(
    year: int,
    fetch_report: ReportFetcher,
    *,
    revenue_labels: Sequence[str] = REVENUE_LABELS,
    expense_labels: Sequence[str] = DEFAULT_EXPENSE_LABELS,
    inter_call_delay: float = INTER_CALL_DELAY,
    default_retry_after: float = DEFAULT_RETRY_AFTER,
    sleep: Callable[[float], None] = time.sleep,
) -> list[TrendPoint]:
    """Build the 12-point trend for *year*.

    Args:
        year: calendar year
        fetch_report: ``(from_iso, to_iso) -> report tree``; may raise
            QBORateLimitError or anything else
        revenue_labels: candidates for the revenue total
        expense_labels: summary labels summed into "expenses"
        inter_call_delay: seconds between month fetches (not after the last)
        default_retry_after: wait used when a 429 carries no Retry-After
        sleep: injectable for tests

    A rate-limited month is retried once after the server's delay; if that
    fails too, or the fetch fails for any other reason, the month is
    recorded as zero revenue and zero expenses and the loop moves on.
    """
    points: list[TrendPoint] = []

    for month in paced(range(1, 13), inter_call_delay, sleep=sleep):
        period = month_range(year, month)
        from_date, to_date = period.as_params()
        try:
            report = call_with_rate_limit_retry(
                fetch_report,
                from_date,
                to_date,
                retries=1,
                default_delay=default_retry_after,
                sleep=sleep,
            )
        except Exception as exc:
            log.warning("Trend fetch failed for %d-%02d, using zeros: %s", year, month, exc)
            points.append(TrendPoint(month=short_month_name(month)))
            continue

        points.append(
            trend_point(
                month,
                report,
                revenue_labels=revenue_labels,
                expense_labels=expense_labels,
            )
        )

    return points
