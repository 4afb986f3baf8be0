"""
KPI display helpers — pure functions with no side effects.

Provides period-over-period change, unit-aware value formatting, and
chart axis titles shared by the dashboard and the smoke pipeline.
"""

import pandas as pd

from .config import CURRENCY_UNIT, PERCENT_UNIT


def calc_percentage_change(current: float | None, previous: float | None) -> float | None:
    """Return the % change from previous to current.

    A zero baseline reports 100 for growth and 0 otherwise; missing values
    give None.
    """
    if current is None or previous is None or pd.isna(current) or pd.isna(previous):
        return None
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / abs(previous) * 100


def _is_ratio(unit: str, name: str) -> bool:
    return "ratio" in unit.lower() or "ratio" in name.lower()


def _is_percent(unit: str, name: str) -> bool:
    return unit == PERCENT_UNIT or "GM" in name or "OM" in name


def _is_currency(unit: str, name: str) -> bool:
    return unit == CURRENCY_UNIT or "Price" in name or "Revenue" in name


def format_display_value(value: float | None, unit: str, name: str = "") -> str:
    """Format a value for cards and tables.

    Logic
    -----
    - ratios: two decimals
    - percentages: one decimal with '%'; fractions in [-1, 1] are scaled to 100
    - currency: $1.2M / $3.4K / $5.00
    - order and tonnage counts: thousands separators
    """
    if value is None or pd.isna(value):
        return "N/A"
    unit = unit or ""

    if _is_ratio(unit, name):
        return f"{value:.2f}"

    if _is_percent(unit, name):
        if -1 <= value <= 1 and value != 0:
            value = value * 100
        return f"{value:.1f}%"

    if _is_currency(unit, name):
        if abs(value) >= 1_000_000:
            return f"${value / 1_000_000:.1f}M"
        if abs(value) >= 1_000:
            return f"${value / 1_000:.1f}K"
        return f"${value:.2f}"

    if "Orders" in name or "Tons" in name:
        return f"{value:,.0f}"

    return f"{value:g}"


def format_thousands(value: float | None, unit: str) -> str:
    """Format an aggregate that is already expressed in thousands."""
    if value is None or pd.isna(value):
        return ""
    if unit == CURRENCY_UNIT:
        return f"${value:,.0f}K"
    if unit == PERCENT_UNIT:
        return f"{value:.1f}%"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def get_axis_title(name: str, unit: str) -> str:
    """Y-axis title for a metric chart."""
    if "Orders" in name:
        return "Number of Orders"
    if "Tons" in name:
        return "Tons"
    if _is_percent(unit or "", name):
        return "Percentage (%)"
    if _is_currency(unit or "", name):
        return "Amount (USD)"
    return "Value"
