"""Report extraction engine.

Two walkers over a QBO report tree (see report_tree.py for the shape):

  Field extractor     - first row whose label contains one of several
                        candidate labels, checked on leaf "Data" rows and
                        on section Summary rows at every level
  Breakdown extractor - every leaf row under an expense-like section,
                        ranked by amount with its share of the total

Both are pure functions of the tree: no I/O, no caching, no shared state.
Malformed nodes are skipped, never raised on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from qbo_metrics.models import ExpenseEntry, NamedValue
from qbo_metrics.report_tree import (
    get_children,
    header_label,
    is_data_row,
    row_amount,
    row_label,
    summary_row,
)

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Canonical row labels
# ═══════════════════════════════════════════════════════════════════════════

# Rows deeper than this are ignored; real reports nest 3-5 levels
MAX_DEPTH = 10

REVENUE_LABELS = ("Total Income", "Total Revenue")
OPERATING_EXPENSE_LABELS = ("Total Expenses",)
COGS_LABELS = ("Total Cost of Goods Sold",)
OTHER_EXPENSE_LABELS = ("Total Other Expenses",)

# Resolved by find_value_by_priority(): a plain substring search for
# "PROFIT" would stop at the "Gross Profit" summary above the bottom line.
NET_PROFIT_LABELS = ("Net Income", "Net Profit", "PROFIT")

# Balance sheet: the bank total may be a section Summary or a single Data row
CASH_LABELS = ("Total Cash and Cash Equivalent", "Total Bank", "Cash and cash equivalents")

# Section headers whose subtree holds expense categories
EXPENSE_SECTION_LABELS = (
    "expenses",
    "other expenses",
    "cost of goods sold",
    "cost of sales",
    "cogs",
)

BREAKDOWN_LIMIT = 10


# ═══════════════════════════════════════════════════════════════════════════
#  Field extractor
# ═══════════════════════════════════════════════════════════════════════════

def _normalize_labels(labels: str | Iterable[str]) -> list[str]:
    if isinstance(labels, str):
        labels = [labels]
    return [label.lower() for label in labels if isinstance(label, str) and label]


def _root_rows(tree: Any) -> list[dict]:
    """Top-level rows: a report dict's ``Rows`` or an already-unwrapped list."""
    if isinstance(tree, list):
        return [row for row in tree if isinstance(row, dict)]
    return get_children(tree)


def _match_row(row: dict, labels: list[str], match_mode: str) -> NamedValue | None:
    """Match one row-like structure against the lowercased candidates.

    match_mode:
      "contains" - a candidate appears anywhere in the row label
      "exact"    - the whole row label equals a candidate
    """
    name = row_label(row)
    lowered = name.lower()
    if match_mode == "exact":
        matched = lowered in labels
    else:
        matched = any(label in lowered for label in labels)
    if not matched:
        return None
    amount = row_amount(row)
    if amount is None:
        return None
    return NamedValue(name=name, value=amount)


def _search(
    rows: list[dict],
    labels: list[str],
    match_mode: str,
    depth: int,
    max_depth: int,
    skip_nested_zero: bool = False,
) -> NamedValue | None:
    """Depth-first search over *rows*.

    With *skip_nested_zero*, a zero found somewhere below a row does not end
    the search; the scan moves on to that row's next sibling.
    """
    if depth > max_depth:
        return None

    for row in rows:
        # Leaf account line, e.g. a single bank account standing in for cash
        if is_data_row(row):
            hit = _match_row(row, labels, match_mode)
            if hit is not None:
                return hit

        # Section totals such as "Total Income"
        summary = summary_row(row)
        if summary is not None:
            hit = _match_row(summary, labels, match_mode)
            if hit is not None:
                return hit

        hit = _search(
            get_children(row), labels, match_mode, depth + 1, max_depth, skip_nested_zero
        )
        if hit is not None and not (skip_nested_zero and hit.value == 0):
            return hit

    return None


def find_named_value(
    tree: Any,
    candidate_labels: str | Iterable[str],
    *,
    match_mode: str = "contains",
    max_depth: int = MAX_DEPTH,
) -> NamedValue | None:
    """Find the first row whose label contains any candidate (case-insensitive).

    Depth-first, document order. At each node a Data row is checked first,
    then the node's Summary, then its children. A matching row whose amount
    does not parse is skipped. Returns None when nothing matches.
    """
    labels = _normalize_labels(candidate_labels)
    if not labels:
        return None
    return _search(_root_rows(tree), labels, match_mode, 0, max_depth)


def find_value(
    tree: Any,
    candidate_labels: str | Iterable[str],
    *,
    match_mode: str = "contains",
    max_depth: int = MAX_DEPTH,
) -> float | None:
    """Like find_named_value() but returns just the amount (None = not found)."""
    hit = find_named_value(tree, candidate_labels, match_mode=match_mode, max_depth=max_depth)
    return hit.value if hit is not None else None


def extract_value(
    tree: Any,
    candidate_labels: str | Iterable[str],
    *,
    max_depth: int = MAX_DEPTH,
) -> float:
    """Amount of the first matching row, or 0.0 when none matches.

    A zero matched inside a section does not stop the walk: the next
    sibling is tried, so an empty sub-total ahead of the real total is
    passed over. A zero matched among the root rows is returned as is.

    Use find_value() when "not in the report" must be told apart from a
    reported zero.
    """
    labels = _normalize_labels(candidate_labels)
    if not labels:
        return 0.0
    hit = _search(_root_rows(tree), labels, "contains", 0, max_depth, skip_nested_zero=True)
    return 0.0 if hit is None else hit.value


def find_value_by_priority(
    tree: Any,
    labels: Sequence[str],
    *,
    max_depth: int = MAX_DEPTH,
) -> float | None:
    """Resolve a metric from an ordered label list.

    Pass 1 looks for a row labelled exactly like each candidate, in order;
    pass 2 falls back to substring matching. A bottom line labelled just
    "PROFIT" is thus found ahead of the earlier "Gross Profit" row.
    """
    for match_mode in ("exact", "contains"):
        for label in labels:
            value = find_value(tree, [label], match_mode=match_mode, max_depth=max_depth)
            if value is not None:
                return value
    return None


def sum_values(
    tree: Any,
    labels: Iterable[str],
    *,
    max_depth: int = MAX_DEPTH,
) -> float:
    """Sum the amounts of several independently located rows (missing → 0)."""
    return sum(extract_value(tree, [label], max_depth=max_depth) for label in labels)


# ═══════════════════════════════════════════════════════════════════════════
#  Breakdown extractor
# ═══════════════════════════════════════════════════════════════════════════

def _is_target_section(node: dict, section_labels: list[str]) -> bool:
    label = header_label(node).lower()
    if not label:
        return False
    return any(target in label for target in section_labels)


def _category(row: dict) -> NamedValue | None:
    """A leaf row as an expense category, or None for subtotals/non-positive amounts."""
    name = row_label(row)
    if not name or "total" in name.lower():
        return None
    amount = row_amount(row)
    if amount is None or amount <= 0:
        return None
    return NamedValue(name=name, value=abs(amount))


def _collect(
    rows: list[dict],
    in_section: bool,
    section_labels: list[str],
    depth: int,
    max_depth: int,
) -> list[NamedValue]:
    if depth > max_depth:
        return []

    found: list[NamedValue] = []
    for row in rows:
        if in_section and is_data_row(row):
            category = _category(row)
            if category is not None:
                found.append(category)

        child_in_section = in_section or _is_target_section(row, section_labels)
        found.extend(
            _collect(get_children(row), child_in_section, section_labels, depth + 1, max_depth)
        )
    return found


def extract_breakdown(
    tree: Any,
    *,
    section_labels: Iterable[str] = EXPENSE_SECTION_LABELS,
    limit: int = BREAKDOWN_LIMIT,
    max_depth: int = MAX_DEPTH,
) -> list[ExpenseEntry]:
    """Rank the expense categories of a P&L report.

    A section whose Header contains one of *section_labels* marks its whole
    subtree as expense territory. Leaf rows inside it are collected unless
    their label contains "total" or their amount is not a positive number.
    Percentages are shares of the sum of every collected row, so they add
    up to 100 unless the result is cut at *limit*.
    """
    targets = _normalize_labels(section_labels)
    categories = _collect(_root_rows(tree), False, targets, 0, max_depth)
    if not categories:
        return []

    total = sum(c.value for c in categories)
    entries = [
        ExpenseEntry(
            name=c.name,
            value=c.value,
            percentage=(c.value / total) * 100 if total > 0 else 0.0,
        )
        for c in categories
    ]
    entries.sort(key=lambda e: e.value, reverse=True)
    log.debug("Expense breakdown: %d categories, total %.2f", len(entries), total)
    return entries[:limit]
