"""Sample QuickBooks report trees shared across tests."""

import copy

import pytest

from qbo_metrics.config import get_config


def pytest_collection_modifyitems(config, items):
    settings = get_config()
    if settings.qbo_access_token and settings.qbo_realm_id:
        return
    skip = pytest.mark.skip(reason="needs QBO_ACCESS_TOKEN and QBO_REALM_ID")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


def data_row(name, amount):
    return {"type": "Data", "ColData": [{"value": name}, {"value": amount}]}


def section(header, rows, summary=None, wrap=True):
    node = {"type": "Section"}
    if header is not None:
        node["Header"] = {"ColData": [{"value": header}, {"value": ""}]}
    node["Rows"] = {"Row": rows} if wrap else rows
    if summary is not None:
        node["Summary"] = {"ColData": [{"value": summary[0]}, {"value": summary[1]}]}
    return node


def summary_only(label, amount):
    return {"type": "Section", "Summary": {"ColData": [{"value": label}, {"value": amount}]}}


def report(rows, name="ProfitAndLoss"):
    return {
        "Header": {"ReportName": name, "Currency": "USD", "Option": [{"Name": "NoReportData", "Value": "false"}]},
        "Columns": {"Column": [{"ColTitle": "", "ColType": "Account"}, {"ColTitle": "Total", "ColType": "Money"}]},
        "Rows": {"Row": rows},
    }


# Sandbox-style P&L: revenue 3,797.50, opex 1,691.15, COGS 405.00,
# other expenses 2,916.00, net income -1,214.65
_PROFIT_AND_LOSS = report([
    section("Income", [
        data_row("Design income", "2,250.00"),
        data_row("Landscaping Services", "1,477.50"),
        data_row("Pest Control Services", "70.00"),
    ], summary=("Total Income", "3,797.50")),
    section("Cost of Goods Sold", [
        data_row("Cost of Goods Sold", "405.00"),
    ], summary=("Total Cost of Goods Sold", "405.00")),
    summary_only("Gross Profit", "3,392.50"),
    section("Expenses", [
        data_row("Advertising", "74.86"),
        section("Automobile", [
            data_row("Fuel", "349.41"),
        ], summary=("Total Automobile", "349.41")),
        data_row("Insurance", "241.23"),
        data_row("Legal & Professional Fees", "1,050.00"),
        data_row("Meals and Entertainment", "5.66"),
        data_row("Refunds", "-30.00"),
        data_row("Utilities", ""),
    ], summary=("Total Expenses", "1,691.15")),
    summary_only("Net Operating Income", "1,701.35"),
    section("Other Expenses", [
        data_row("Miscellaneous", "2,916.00"),
    ], summary=("Total Other Expenses", "2,916.00")),
    summary_only("Net Other Income", "-2,916.00"),
    summary_only("Net Income", "-1,214.65"),
])

_BALANCE_SHEET = report([
    section("ASSETS", [
        section("Current Assets", [
            section("Bank Accounts", [
                data_row("Checking", "1,201.00"),
                data_row("Savings", "800.00"),
            ], summary=("Total Bank Accounts", "2,001.00")),
            section("Accounts Receivable", [
                data_row("Accounts Receivable (A/R)", "5,281.52"),
            ], summary=("Total Accounts Receivable", "5,281.52")),
        ], summary=("Total Current Assets", "7,282.52")),
    ], summary=("TOTAL ASSETS", "7,282.52")),
], name="BalanceSheet")


@pytest.fixture
def profit_and_loss():
    return copy.deepcopy(_PROFIT_AND_LOSS)


@pytest.fixture
def balance_sheet():
    return copy.deepcopy(_BALANCE_SHEET)
