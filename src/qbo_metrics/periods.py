"""Calendar ranges for report requests.

Every range is a whole calendar month or a whole calendar year. Month ends
are derived as "the day before the first of next month", never by counting
days, so February and leap years need no special cases.
"""

from __future__ import annotations

from datetime import date, timedelta

from qbo_metrics.models import DateRange, Timeframe

# Fixed English abbreviations; strftime("%b") would follow the process locale
_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def short_month_name(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be 1-12, got {month}")
    return _MONTH_ABBR[month - 1]


def coerce_date(value: date | str) -> date:
    """Accept a date or an ISO string ("2024-03-01", "2024-03-01T00:00:00Z")."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a date: {value!r}")
    return date.fromisoformat(value.strip()[:10])


def month_range(year: int, month: int) -> DateRange:
    start = date(year, month, 1)
    if month == 12:
        next_start = date(year + 1, 1, 1)
    else:
        next_start = date(year, month + 1, 1)
    return DateRange(from_date=start, to_date=next_start - timedelta(days=1))


def year_range(year: int) -> DateRange:
    return DateRange(from_date=date(year, 1, 1), to_date=date(year, 12, 31))


def previous_range(timeframe: Timeframe | str, current_from: date | str) -> DateRange:
    """The period immediately before the one starting at *current_from*.

    YEAR (any case) → the whole previous calendar year.
    Anything else → the whole calendar month before current_from's month.
    """
    start = coerce_date(current_from)
    if _is_year(timeframe):
        return year_range(start.year - 1)
    if start.month == 1:
        return month_range(start.year - 1, 12)
    return month_range(start.year, start.month - 1)


def current_range(timeframe: Timeframe | str, today: date | None = None) -> DateRange:
    """Default range for a timeframe: this calendar year, or this calendar month."""
    today = today or date.today()
    if _is_year(timeframe):
        return year_range(today.year)
    return month_range(today.year, today.month)


def _is_year(timeframe: Timeframe | str) -> bool:
    value = timeframe.value if isinstance(timeframe, Timeframe) else str(timeframe)
    return value.strip().upper() == Timeframe.YEAR.value
