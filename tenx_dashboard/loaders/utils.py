"""
Shared utilities for data ingestion: quote-aware tokenizing, period
normalisation, and cell value cleaning.
"""

import logging
import re
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..config import EXCEL_EPOCH, MONTH_ABBR, SERIAL_DATE_MIN
from ..models import CellStatus, CellValue

logger = logging.getLogger(__name__)

_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_SERIAL_DATE = re.compile(r"^[1-9]\d*$")
_PERIOD_KEY = re.compile(r"^(\d{4})-(\d{2})$")
# Longest numeric prefix, the way a spreadsheet export is read leniently
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_CURRENCY_NOISE = re.compile(r"[$,\s]")


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------

def split_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas that sit outside double quotes.

    Quote characters toggle the in-quotes state and are dropped from the
    field text, so `1,"$1,234",x` yields ['1', '$1,234', 'x'].
    """
    fields = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------

def _month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def normalize_period(val: Any) -> str:
    """Convert a period header to a canonical YYYY-MM key.

    Accepts M/D/YYYY text, spreadsheet serial numbers (1899-12-30 epoch,
    as text or number), and native date/datetime objects. Anything else is
    returned trimmed and unchanged.
    """
    if val is None:
        return ""
    if isinstance(val, (datetime, date)):
        return _month_key(val.year, val.month)
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        if (isinstance(val, int) or val.is_integer()) and int(val) > SERIAL_DATE_MIN:
            return _serial_to_key(int(val)) or str(val)
        return str(val)

    text = str(val).strip()

    match = _SLASH_DATE.match(text)
    if match:
        return _month_key(int(match.group(3)), int(match.group(1)))

    if _SERIAL_DATE.match(text) and int(text) > SERIAL_DATE_MIN:
        return _serial_to_key(int(text)) or text

    return text


def _serial_to_key(serial: int) -> str | None:
    try:
        stamp = pd.Timestamp(EXCEL_EPOCH) + pd.Timedelta(days=serial)
    except (ValueError, OverflowError):
        logger.warning("Could not convert serial number %s to date", serial)
        return None
    return _month_key(stamp.year, stamp.month)


def is_period_key(text: str) -> bool:
    return bool(_PERIOD_KEY.match(text or ""))


def split_period_key(text: str) -> tuple[int, int] | None:
    """Return (year, month) for a YYYY-MM key, or None."""
    match = _PERIOD_KEY.match(text or "")
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def format_month(period: str) -> str:
    """'2025-03' -> 'Mar 2025'. Non-period strings are returned as-is."""
    parts = split_period_key(period)
    if parts is None:
        return period
    year, month = parts
    return f"{MONTH_ABBR[month - 1]} {year}"


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def _leading_float(text: str) -> float | None:
    match = _LEADING_FLOAT.match(text)
    if not match:
        return None
    return float(match.group(0))


def parse_cell(raw: Any) -> CellValue:
    """Parse one raw cell into a tagged CellValue.

    Handles surrounding double quotes, `$` and thousands separators, and
    the accounting convention `(1,234)` for negatives, alone or combined
    (`"($394)"`). Trailing text after the number is ignored, so `45%`
    reads as 45.
    """
    text = "" if raw is None else str(raw)
    trimmed = text.strip()
    if not trimmed:
        return CellValue(raw=text, status=CellStatus.BLANK)

    inner = trimmed
    if len(inner) >= 2 and inner.startswith('"') and inner.endswith('"'):
        inner = inner[1:-1].strip()

    negative = False
    if len(inner) >= 2 and inner.startswith("(") and inner.endswith(")"):
        negative = True
        inner = inner[1:-1]

    cleaned = _CURRENCY_NOISE.sub("", inner)
    number = _leading_float(cleaned)
    if number is None:
        return CellValue(raw=text, status=CellStatus.INVALID)

    return CellValue(raw=text, status=CellStatus.OK, value=-number if negative else number)


def parse_value(raw: Any) -> float:
    """Lenient numeric reading of a cell: blank or unparseable becomes 0."""
    return parse_cell(raw).or_zero()


def clean_value(raw: Any) -> str:
    """Display-oriented cleaning: strip quotes, `$`, commas; `(x)` -> `-x`.

    Non-currency text such as `45%` or `0.52` is returned trimmed.
    """
    if raw is None:
        return ""
    trimmed = str(raw).strip()
    if not trimmed:
        return ""
    if trimmed.startswith('"') and trimmed.endswith('"') and len(trimmed) >= 2:
        trimmed = trimmed[1:-1].strip()
    if trimmed.startswith("(") and trimmed.endswith(")") and len(trimmed) >= 2:
        return "-" + _CURRENCY_NOISE.sub("", trimmed[1:-1])
    if "$" in trimmed:
        return _CURRENCY_NOISE.sub("", trimmed)
    return trimmed
