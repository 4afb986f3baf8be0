"""
Loader for the "10X Business Metrics" CSV export.

Column contract (0-based):
    0 uid | 1 metric group | 2 metric category | 3 metric type |
    4 metric name | 5 unit | 6.. one column per month

Month headers arrive either as M/D/YYYY text or as spreadsheet serial
numbers, depending on how the sheet was exported. Values are left as raw
strings here; numeric interpretation happens at aggregation time so that
display layers can keep the formatted text.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

from ..config import (
    IDENTITY_COLUMNS,
    METRICS_FILE_PREFIX,
    MIN_ROW_FIELDS,
    PERIOD_COLUMN_START,
)
from ..exceptions import MalformedInputError
from ..models import MetricRecord, ParsedMetrics, SkippedRow
from .utils import is_period_key, normalize_period, split_csv_line

logger = logging.getLogger(__name__)


def build_period_axis(header: Sequence[Any]) -> tuple[str, ...]:
    """Normalise header cells 6.. into period keys, dropping blanks."""
    periods = (normalize_period(cell) for cell in header[PERIOD_COLUMN_START:])
    return tuple(p for p in periods if p)


def _record_from_fields(fields: Sequence[str], axis_length: int) -> MetricRecord:
    identity = [fields[i].strip() for i in range(len(IDENTITY_COLUMNS))]
    values = list(fields[PERIOD_COLUMN_START:PERIOD_COLUMN_START + axis_length])
    # Short rows are padded with blank cells rather than dropped; blanks
    # stay distinguishable from an explicit "0" via parse_cell().
    if len(values) < axis_length:
        values.extend([""] * (axis_length - len(values)))
    return MetricRecord(*identity, values=tuple(values))


def parse_metrics_rows(
    header: Sequence[Any],
    rows: Iterable[tuple[int, Sequence[str]]],
    source: str | None = None,
) -> ParsedMetrics:
    """Turn a header plus numbered, already-split rows into ParsedMetrics.

    Parameters
    ----------
    header : Header cells; period cells may be text, serials, or dates.
    rows : (line_number, fields) pairs in source order.
    source : Label used in log messages and kept on the result.
    """
    if len(header) < MIN_ROW_FIELDS:
        raise MalformedInputError(
            f"header has {len(header)} columns; expected at least {MIN_ROW_FIELDS} "
            f"({len(IDENTITY_COLUMNS)} identity columns plus periods)"
        )

    period_axis = build_period_axis(header)
    unrecognized = tuple(p for p in period_axis if not is_period_key(p))
    if unrecognized:
        logger.warning(
            "%d period header(s) not recognised as dates and kept verbatim: %s",
            len(unrecognized), ", ".join(unrecognized),
        )

    records = []
    skipped = []
    for line_number, fields in rows:
        if len(fields) < MIN_ROW_FIELDS:
            skipped.append(SkippedRow(
                line_number=line_number,
                reason="Insufficient columns",
                fields=tuple(fields),
            ))
            continue
        records.append(_record_from_fields(fields, len(period_axis)))

    if skipped:
        logger.warning(
            "Skipped %d row(s) with fewer than %d columns (lines %s)",
            len(skipped), MIN_ROW_FIELDS,
            ", ".join(str(s.line_number) for s in skipped),
        )

    logger.info(
        "Parsed %d metric records across %d periods from %s",
        len(records), len(period_axis), source or "text",
    )
    return ParsedMetrics(
        period_axis=period_axis,
        records=tuple(records),
        skipped_rows=tuple(skipped),
        unrecognized_periods=unrecognized,
        source=source,
    )


def parse_metrics_csv(text: str, source: str | None = None) -> ParsedMetrics:
    """Parse raw metrics CSV text.

    Assumptions
    -----------
    - Line 1 is the header; the first six columns identify the metric.
    - Blank lines are ignored.
    - Rows with fewer than 7 fields are reported in `skipped_rows`, not raised.
    - Quoted fields may contain commas (e.g. "$1,234").

    Raises
    ------
    MalformedInputError if the text is empty or the header is unusable.
    """
    if text is None or not text.strip():
        raise MalformedInputError("metrics CSV is empty; no header row found")

    lines = text.split("\n")
    header_line = lines[0].strip()
    if not header_line:
        raise MalformedInputError("first line of metrics CSV is blank; no header row found")

    header = split_csv_line(header_line)

    def numbered_rows():
        for idx, line in enumerate(lines[1:], start=2):
            line = line.strip()
            if not line:
                continue
            yield idx, split_csv_line(line)

    return parse_metrics_rows(header, numbered_rows(), source=source)


def load_metrics_csv(path: str | Path) -> ParsedMetrics:
    """Read and parse a metrics CSV file from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError:
        logger.exception("Failed to read metrics CSV: %s", path)
        raise
    return parse_metrics_csv(text, source=path.name)


def find_latest_metrics_file(
    directory: str | Path,
    prefix: str = METRICS_FILE_PREFIX,
) -> Path | None:
    """Return the last metrics CSV in `directory` by file name.

    Exports are named so that alphabetical order puts the newest last.
    """
    directory = Path(directory)
    candidates = sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.name.startswith(prefix) and p.suffix.lower() == ".csv"
    )
    if not candidates:
        logger.warning("No '%s*.csv' files found in %s", prefix, directory)
        return None
    latest = candidates[-1]
    logger.info("Using latest metrics file: %s", latest.name)
    return latest
