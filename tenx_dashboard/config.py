"""
Configuration: file locations, CSV column contract, aggregation keywords,
constants.

AGGREGATION_POLICY_REGISTRY maps a metric uid to its aggregation policy
("sum", "average" or "end-of-period"). Entries here take precedence over
the keyword classifier; request-level overrides take precedence over both.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# File paths — update LATEST_CSV_FILENAME when a new export arrives
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

LATEST_CSV_FILENAME = "10X Business Metrics Through Apr 2025 - 06-04-2025candp1.csv"
METRICS_FILE_PREFIX = "10X Business Metrics"

# Set to an absolute path to point the pipeline at a different export
METRICS_CSV_ENV = "TENX_METRICS_CSV"


def get_latest_csv_path() -> Path:
    """Return the configured metrics CSV path, honouring TENX_METRICS_CSV."""
    override = os.environ.get(METRICS_CSV_ENV)
    if override:
        return Path(override)
    return DATA_DIR / LATEST_CSV_FILENAME


# ---------------------------------------------------------------------------
# Company identity
# ---------------------------------------------------------------------------
COMPANY_NAME = "10X Manufacturing"

# ---------------------------------------------------------------------------
# CSV column contract
# ---------------------------------------------------------------------------
# Columns 0-5 identify the metric; every column after that is one period.
IDENTITY_COLUMNS = ("uid", "group", "category", "type", "name", "unit")
PERIOD_COLUMN_START = len(IDENTITY_COLUMNS)
MIN_ROW_FIELDS = PERIOD_COLUMN_START + 1

CURRENCY_UNIT = "$"
PERCENT_UNIT = "%"
RATIO_UNIT = "ratio"

# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
# Point-in-time balances: a quarter reports the last month, not a total.
SNAPSHOT_KEYWORDS = (
    "balance", "cash", "inventory", "assets", "liabilities", "equity",
    "employees", "headcount", "staff", "outstanding", "turnover",
    "followers", "customers", "ratio", "rate", "compliance", "uptime",
    "satisfaction", "incidents", "findings", "consumption", "generated",
)

# Flow items accumulate over a period.
FLOW_CATEGORY_KEYWORDS = ("income", "revenue", "expense", "cost", "cash flow")
FLOW_NAME_KEYWORDS = ("revenue", "income", "expense", "cost")

AVERAGE_NAME_KEYWORDS = ("rate", "ratio")

# Currency aggregates are reported in thousands of dollars
CURRENCY_SCALE = 1000

# Number of quarters shown by default in quarterly highlights
RECENT_QUARTERS = 7

AGGREGATION_POLICY_REGISTRY: dict[str, str] = {}

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EXCEL_EPOCH = "1899-12-30"
# Smallest integer header treated as a spreadsheet serial date
SERIAL_DATE_MIN = 1000

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
