"""Pydantic models for extracted metrics and dashboard outputs."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel


class Timeframe(str, Enum):
    YEAR = "YEAR"
    MONTH = "MONTH"


class ReportKind(str, Enum):
    PROFIT_AND_LOSS = "ProfitAndLoss"
    BALANCE_SHEET = "BalanceSheet"


# ---------------------------------------------------------------------------
# Extraction results
# ---------------------------------------------------------------------------

class NamedValue(BaseModel):
    """A matched row label and its parsed amount."""
    name: str
    value: float


class ExpenseEntry(BaseModel):
    name: str
    value: float
    percentage: float            # 0-100, share of the extraction pass total


class TrendPoint(BaseModel):
    month: str                   # "Jan" … "Dec"
    revenue: float = 0.0
    expenses: float = 0.0


class DateRange(BaseModel):
    """Inclusive calendar range; always a full month or a full year."""
    from_date: date
    to_date: date

    def as_params(self) -> tuple[str, str]:
        return self.from_date.isoformat(), self.to_date.isoformat()


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class Organisation(BaseModel):
    name: str = "Unknown"
    short_code: str = ""


class DashboardKPIs(BaseModel):
    revenue: float = 0.0
    expenses: float = 0.0
    net_profit: float = 0.0      # signed: a loss stays negative
    net_margin: float = 0.0      # percent of revenue
    cash_balance: float = 0.0


class TimeframeInfo(BaseModel):
    from_date: date
    to_date: date
    type: Timeframe


class Dashboard(BaseModel):
    organisation: Organisation = Organisation()
    kpis: DashboardKPIs = DashboardKPIs()
    expense_breakdown: list[ExpenseEntry] = []
    trend_data: list[TrendPoint] | None = None
    previous_period_data: list[ExpenseEntry] | None = None
    timeframe: TimeframeInfo
