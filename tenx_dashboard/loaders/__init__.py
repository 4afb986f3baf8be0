"""Data ingestion loaders for business metrics exports."""

from .metrics_csv import find_latest_metrics_file, load_metrics_csv, parse_metrics_csv
from .workbook import load_metrics_workbook
from .utils import format_month, normalize_period, parse_cell, parse_value, split_csv_line

__all__ = [
    "parse_metrics_csv",
    "load_metrics_csv",
    "find_latest_metrics_file",
    "load_metrics_workbook",
    "normalize_period",
    "format_month",
    "parse_cell",
    "parse_value",
    "split_csv_line",
]
