"""
Loader for metrics kept as an Excel workbook rather than a CSV export.

The sheet follows the same column contract as the CSV: six identity
columns followed by one column per month. Month headers may be native
datetimes, serial numbers, or M/D/YYYY text.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import openpyxl

from ..config import PERIOD_COLUMN_START
from ..exceptions import MalformedInputError
from ..models import ParsedMetrics
from .metrics_csv import parse_metrics_rows

logger = logging.getLogger(__name__)


def _cell_text(val: Any) -> str:
    """Render a data cell as the raw string a CSV export would carry."""
    if val is None:
        return ""
    if isinstance(val, bool):
        return str(val)
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val)


def _trim_trailing_empty(cells: tuple) -> list:
    values = list(cells)
    while values and (values[-1] is None or str(values[-1]).strip() == ""):
        values.pop()
    return values


def load_metrics_workbook(path: str | Path, sheet_name: str | None = None) -> ParsedMetrics:
    """Load business metrics from an .xlsx workbook.

    Assumptions
    -----------
    - Row 1 is the header (uid, group, category, type, name, unit, months...).
    - Data starts on row 2; fully empty rows are ignored.
    - A row filled through the unit column is a metric even with no values
      yet; rows that stop short of it are reported as skipped.
    - If `sheet_name` is missing from the workbook the first sheet is used.

    Returns
    -------
    ParsedMetrics, identical in shape to parse_metrics_csv().
    """
    path = Path(path)
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except Exception:
        logger.exception("Failed to open metrics workbook: %s", path)
        raise

    try:
        if sheet_name is None:
            sheet_name = wb.sheetnames[0]
        elif sheet_name not in wb.sheetnames:
            logger.warning("Sheet '%s' not found, using '%s'", sheet_name, wb.sheetnames[0])
            sheet_name = wb.sheetnames[0]

        ws = wb[sheet_name]
        row_iter = ws.iter_rows(values_only=True)

        header = next(row_iter, None)
        if header is None:
            raise MalformedInputError(f"sheet '{sheet_name}' is empty; no header row found")
        header = _trim_trailing_empty(header)

        rows = []
        for line_number, cells in enumerate(row_iter, start=2):
            content = _trim_trailing_empty(cells[:len(header)])
            if not content:
                continue
            # Rows filled through the unit column keep blank period cells
            if len(content) >= PERIOD_COLUMN_START:
                values = list(cells[:len(header)])
                values.extend([None] * (len(header) - len(values)))
            else:
                values = content
            rows.append((line_number, [_cell_text(v) for v in values]))
    finally:
        wb.close()

    return parse_metrics_rows(header, rows, source=f"{path.name} [{sheet_name}]")
