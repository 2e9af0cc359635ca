"""Expense breakdown of the period just before the current one."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from qbo_metrics.extraction import extract_breakdown
from qbo_metrics.models import DateRange, ExpenseEntry, Timeframe
from qbo_metrics.periods import previous_range

log = logging.getLogger(__name__)


def previous_period(
    timeframe: Timeframe | str,
    current_from: date | str,
    current_to: date | str | None,
    fetch_report: Callable[[str, str], dict],
) -> list[ExpenseEntry]:
    """Expense breakdown for the previous year (YEAR) or previous month.

    Comparison data is best-effort: if the range cannot be derived or the
    report cannot be fetched, an empty list is returned.
    *current_to* is accepted for symmetry with the current-period call; the
    previous range depends only on *current_from*.
    """
    try:
        period: DateRange = previous_range(timeframe, current_from)
    except (TypeError, ValueError) as exc:
        log.warning("Cannot derive previous period from %r: %s", current_from, exc)
        return []

    from_date, to_date = period.as_params()
    try:
        report = fetch_report(from_date, to_date)
    except Exception as exc:
        log.warning("Previous period fetch failed for %s..%s: %s", from_date, to_date, exc)
        return []

    return extract_breakdown(report)
