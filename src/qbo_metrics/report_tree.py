"""Shape helpers for QuickBooks report trees.

A QBO report is a nested JSON document:

    {"Header": {...report metadata...},
     "Rows": {"Row": [
         {"type": "Section",
          "Header":  {"ColData": [{"value": "Income"}, {"value": ""}]},
          "Rows":    {"Row": [
              {"type": "Data", "ColData": [{"value": "Sales"}, {"value": "1,200.00"}]}
          ]},
          "Summary": {"ColData": [{"value": "Total Income"}, {"value": "1,200.00"}]}},
         ...
     ]}}

``Rows`` shows up either as a bare list or wrapped under a ``Row`` key
(which may itself hold a single node instead of a list). Every walker in
this package goes through :func:`get_children` so that variant handling
lives in one place. Nothing here raises on malformed input.
"""

from __future__ import annotations

import math
from typing import Any

DATA_ROW_TYPE = "Data"


def get_children(node: Any) -> list[dict]:
    """Return the child rows of *node* as a list, whatever form ``Rows`` takes."""
    if not isinstance(node, dict):
        return []
    rows = node.get("Rows")
    if isinstance(rows, dict):
        rows = rows.get("Row")
    if isinstance(rows, dict):
        rows = [rows]
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


def _cell_value(row: Any, index: int) -> Any:
    if not isinstance(row, dict):
        return None
    cols = row.get("ColData")
    if not isinstance(cols, list) or index >= len(cols):
        return None
    cell = cols[index]
    if not isinstance(cell, dict):
        return None
    return cell.get("value")


def row_label(row: Any) -> str:
    """Column 0 of a row-like structure, or "" when missing."""
    value = _cell_value(row, 0)
    if value is None:
        return ""
    return str(value).strip()


def row_amount(row: Any) -> float | None:
    """Column 1 of a row-like structure, parsed; None when absent or invalid."""
    return parse_amount(_cell_value(row, 1))


def parse_amount(raw: Any) -> float | None:
    """Parse a comma-grouped amount string such as ``"-12,345.67"``.

    Returns None for missing, empty or unparsable input and for NaN/inf,
    so callers can tell "absent" apart from a genuine zero.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        f = float(raw)
    else:
        text = str(raw).replace(",", "").strip()
        if not text:
            return None
        try:
            f = float(text)
        except ValueError:
            return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def is_data_row(node: Any) -> bool:
    return (
        isinstance(node, dict)
        and node.get("type") == DATA_ROW_TYPE
        and isinstance(node.get("ColData"), list)
    )


def summary_row(node: Any) -> dict | None:
    """The node's ``Summary`` when it carries column data."""
    if not isinstance(node, dict):
        return None
    summary = node.get("Summary")
    if isinstance(summary, dict) and isinstance(summary.get("ColData"), list):
        return summary
    return None


def header_label(node: Any) -> str:
    """Section label from the node's ``Header``, or "" for non-sections."""
    if not isinstance(node, dict):
        return ""
    return row_label(node.get("Header"))
