"""
Simulated data generator for the 10X business metrics dashboard.

Produces CSV text in the same shape as the monthly "10X Business Metrics"
export: quoted and unquoted currency, accounting-style negatives, percent
signs, and either M/D/YYYY or spreadsheet-serial month headers. All values
are synthetic.
"""

import numpy as np
import pandas as pd

from .config import CURRENCY_UNIT, EXCEL_EPOCH, IDENTITY_COLUMNS, PERCENT_UNIT, RATIO_UNIT

# ---------------------------------------------------------------------------
# Metric definitions: identity columns plus a base level, noise, and
# monthly growth factor
# ---------------------------------------------------------------------------
_METRICS = [
    ("8", "Accounting", "Income Statement", "Income", "Total Revenue", "$", 480_000, 35_000, 1.012),
    ("12", "Accounting", "Income Statement", "Cost of Goods", "Cost of Goods Sold", "$", 300_000, 20_000, 1.010),
    ("20", "Accounting", "Income Statement", "Gross Margin", "Gross Income", "$", 180_000, 25_000, 1.015),
    ("21", "Accounting", "Income Statement", "Gross Margin", "GM %", "%", 37.5, 2.0, 1.0),
    ("27", "Accounting", "Income Statement", "Operating Expenses", "Total Operating Expenses", "$", 165_000, 12_000, 1.004),
    ("33", "Accounting", "Income Statement", "Net Income", "Net Income", "$", 12_000, 30_000, 1.02),
    ("40", "Accounting", "Balance Sheet", "Assets", "Cash Balance", "$", 850_000, 40_000, 1.006),
    ("41", "Accounting", "Balance Sheet", "Assets", "Inventory Value", "$", 620_000, 25_000, 1.003),
    ("45", "Accounting", "Balance Sheet", "Liquidity", "Current Ratio", "ratio", 1.8, 0.1, 1.0),
    ("60", "Operations", "Production", "Output", "Tons Shipped", "tons", 1_250, 90, 1.008),
    ("61", "Operations", "Production", "Output", "Orders Shipped", "#", 310, 25, 1.01),
    ("62", "Operations", "Production", "Quality", "On-Time Delivery Rate", "%", 93.0, 2.5, 1.0),
    ("70", "People", "Workforce", "Headcount", "Total Employees", "#", 84, 1.5, 1.004),
    ("80", "Sales", "Customers", "Accounts", "Active Customers", "#", 142, 4, 1.006),
]


def _format_currency(amount: float, quote: bool) -> str:
    whole = int(round(amount))
    if whole < 0:
        text = f"(${abs(whole):,})"
    else:
        text = f"${whole:,} "
    # Commas inside a field require CSV quoting
    if quote or "," in text:
        return f'"{text}"'
    return text


def _format_value(value: float, unit: str, quote: bool) -> str:
    if unit == CURRENCY_UNIT:
        return _format_currency(value, quote)
    if unit == PERCENT_UNIT:
        return f"{value:.1f}%"
    if unit == RATIO_UNIT:
        return f"{value:.2f}"
    whole = int(round(value))
    return f'"{whole:,}"' if whole >= 1000 else str(whole)


def _format_header(month: pd.Timestamp, date_style: str) -> str:
    if date_style == "serial":
        return str((month - pd.Timestamp(EXCEL_EPOCH)).days)
    return f"{month.month}/{month.day}/{month.year}"


def generate_metrics_csv(
    start_month: str = "2024-01-01",
    n_months: int = 16,
    date_style: str = "slash",
    seed: int = 42,
    malformed_rows: int = 0,
) -> str:
    """Generate a simulated metrics CSV export.

    Parameters
    ----------
    start_month : First month of the period axis.
    n_months : Number of monthly columns.
    date_style : 'slash' for M/D/YYYY headers, 'serial' for spreadsheet serials.
    seed : Random seed; the same seed always yields the same text.
    malformed_rows : Number of truncated rows (fewer than 7 fields) appended.

    Returns
    -------
    CSV text with a header row and one row per metric.
    """
    if date_style not in ("slash", "serial"):
        raise ValueError(f"date_style must be 'slash' or 'serial', got {date_style!r}")

    rng = np.random.default_rng(seed)
    months = pd.date_range(start_month, periods=n_months, freq="MS")

    header = list(IDENTITY_COLUMNS) + [_format_header(m, date_style) for m in months]
    lines = [",".join(header)]

    for uid, group, category, mtype, name, unit, base, std, growth in _METRICS:
        cells = [uid, group, category, mtype, name, unit]
        for i in range(n_months):
            value = base * (growth ** i) + rng.normal(0, std)
            if unit != CURRENCY_UNIT:
                value = max(value, 0.0)
            cells.append(_format_value(value, unit, quote=bool(rng.random() < 0.3)))
        lines.append(",".join(cells))

    for i in range(malformed_rows):
        lines.append(f"9{i:02d},Notes,Partial,Row,Incomplete")

    return "\n".join(lines) + "\n"

