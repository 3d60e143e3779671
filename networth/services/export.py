"""
CSV export of the current net worth snapshot and of recorded history.
"""
import csv
import io
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from networth.db.core import NetworthHistoryDB
from networth.models.net_worth import NetWorthSnapshot

SNAPSHOT_COLUMNS = ["Metric", "Value", "Percentage", "Category", "Export Date"]

HISTORY_COLUMNS = [
    "Date",
    "Net Worth",
    "Total Assets",
    "Account Balance",
    "Investment Value",
    "Investment Cost",
    "Investment Gain",
    "Investment Gain Percentage",
    "Money Lent",
    "Currency",
    "Record Type",
]


def export_filename(export_date: Optional[date] = None) -> str:
    return f"networth_{(export_date or date.today()).isoformat()}.csv"


def _share_of(part: Decimal, whole: Decimal) -> str:
    if whole <= 0:
        return "0%"
    share = (part / whole * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{share}%"


def snapshot_to_csv(snapshot: NetWorthSnapshot, export_date: Optional[date] = None) -> str:
    """
    One row per metric. Asset components carry their share of total assets.
    """
    exported = (export_date or date.today()).isoformat()
    assets = snapshot.total_assets

    rows = [
        ("Total Net Worth", snapshot.net_worth, "", "Net Worth"),
        ("Total Assets", assets, "", "Assets"),
        ("Account Balance", snapshot.total_account_balance, _share_of(snapshot.total_account_balance, assets), "Assets"),
        ("Investment Value", snapshot.total_investment_value, _share_of(snapshot.total_investment_value, assets), "Assets"),
        ("Money Lent", snapshot.total_money_lent, _share_of(snapshot.total_money_lent, assets), "Assets"),
        ("Total Investment Cost", snapshot.total_investment_cost, "", "Investment Performance"),
        ("Total Investment Gain", snapshot.total_investment_gain, "", "Investment Performance"),
        (
            "Investment Gain Percentage",
            snapshot.total_investment_gain_percentage,
            f"{snapshot.total_investment_gain_percentage.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}%",
            "Investment Performance"
        ),
    ]

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(SNAPSHOT_COLUMNS)
    for metric, value, percentage, category in rows:
        writer.writerow([metric, str(value), percentage, category, exported])
    return output.getvalue()


def history_to_csv(records: Iterable[NetworthHistoryDB]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=HISTORY_COLUMNS)
    writer.writeheader()
    for record in records:
        writer.writerow({
            "Date": record.snapshot_date.isoformat(),
            "Net Worth": record.net_worth,
            "Total Assets": record.total_assets,
            "Account Balance": record.total_account_balance,
            "Investment Value": record.total_investment_value,
            "Investment Cost": record.total_investment_cost,
            "Investment Gain": record.total_investment_gain,
            "Investment Gain Percentage": record.total_investment_gain_percentage,
            "Money Lent": record.total_money_lent,
            "Currency": record.currency,
            "Record Type": record.record_type.value,
        })
    return output.getvalue()
