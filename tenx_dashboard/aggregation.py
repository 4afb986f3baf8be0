"""
Aggregation engine: roll monthly metric values up into months, quarters,
or years according to each metric's aggregation policy.

Rules
-----
- sum           -> total of the monthly values in the group
- average       -> arithmetic mean of the monthly values
- end-of-period -> value of the latest month in the group
- '$' metrics are reported in thousands, rounded half up to an integer
"""

import logging
import math
from typing import Callable, Iterable, Mapping

import pandas as pd

from .config import CURRENCY_SCALE, CURRENCY_UNIT, MONTH_ABBR
from .loaders.utils import parse_cell, split_period_key
from .models import AggregateResult, AggregationPolicy, MetricRecord
from .policy import resolve_policies

logger = logging.getLogger(__name__)

# A grouping maps a YYYY-MM key to (label, sort_key), or None to exclude it.
Grouping = Callable[[str], tuple[str, tuple[int, int]] | None]


def month_of(period: str) -> tuple[str, tuple[int, int]] | None:
    parts = split_period_key(period)
    if parts is None:
        return None
    year, month = parts
    return f"{MONTH_ABBR[month - 1]} {year}", (year, month)


def quarter_of(period: str) -> tuple[str, tuple[int, int]] | None:
    parts = split_period_key(period)
    if parts is None:
        return None
    year, month = parts
    quarter = math.ceil(month / 3)
    return f"{quarter}Q{year}", (year, quarter)


def year_of(period: str) -> tuple[str, tuple[int, int]] | None:
    parts = split_period_key(period)
    if parts is None:
        return None
    return str(parts[0]), (parts[0], 0)


GROUPINGS: dict[str, Grouping] = {
    "month": month_of,
    "quarter": quarter_of,
    "year": year_of,
}

INVALID_CELL_MODES = ("zero", "skip")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def scale_currency(value: float | None, unit: str) -> float | None:
    """Report '$' values in thousands; other units pass through."""
    if value is None or unit != CURRENCY_UNIT:
        return value
    return round_half_up(value / CURRENCY_SCALE)


def sort_groups(period_axis: Iterable[str], grouping: Grouping) -> list[str]:
    """Distinct group labels in chronological (not lexicographic) order."""
    keys: dict[str, tuple[int, int]] = {}
    for period in period_axis:
        group = grouping(period)
        if group is not None:
            keys.setdefault(group[0], group[1])
    return sorted(keys, key=keys.__getitem__)


def _long_frame(
    records: list[MetricRecord],
    period_axis: list[str],
    grouping: Grouping,
    invalid_cells: str,
) -> pd.DataFrame:
    """One row per (record, period) that falls into a group."""
    slots = []
    for idx, period in enumerate(period_axis):
        group = grouping(period)
        if group is not None:
            slots.append((idx, group[0]))

    rows = []
    for record in records:
        for idx, label in slots:
            raw = record.values[idx] if idx < len(record.values) else ""
            cell = parse_cell(raw)
            if cell.is_ok:
                value = cell.value
            elif invalid_cells == "zero":
                value = 0.0
            else:
                value = math.nan
            rows.append({
                "group": label,
                "uid": record.uid,
                "period": period_axis[idx],
                "value": value,
            })
    return pd.DataFrame(rows, columns=["group", "uid", "period", "value"])


def aggregate(
    records: Iterable[MetricRecord],
    period_axis: Iterable[str],
    grouping: str | Grouping = "quarter",
    overrides: Mapping[str, object] | None = None,
    registry: Mapping[str, object] | None = None,
    invalid_cells: str = "zero",
    scale: bool = True,
) -> AggregateResult:
    """Aggregate metric values by period group.

    Parameters
    ----------
    records : Parsed metric records; not modified.
    period_axis : YYYY-MM keys aligned with each record's values.
    grouping : 'month', 'quarter', 'year', or a callable returning
               (label, sort_key) for a period key.
    overrides : uid -> policy name; wins over the registry and classifier.
    registry : uid -> policy name; defaults to config.AGGREGATION_POLICY_REGISTRY.
    invalid_cells : 'zero' fills blank/unparseable cells with 0;
                    'skip' leaves them out of the reduction.
    scale : Report '$' metrics in thousands.

    Returns
    -------
    AggregateResult with chronologically sorted groups, a
    group -> uid -> value table, and the policy used per uid.
    """
    if invalid_cells not in INVALID_CELL_MODES:
        raise ValueError(f"invalid_cells must be one of {INVALID_CELL_MODES}, got {invalid_cells!r}")

    grouping_name = grouping if isinstance(grouping, str) else getattr(grouping, "__name__", "custom")
    group_fn = GROUPINGS[grouping] if isinstance(grouping, str) else grouping

    # Later rows with a repeated uid replace earlier ones.
    by_uid: dict[str, MetricRecord] = {}
    for record in records:
        by_uid[record.uid] = record
    unique_records = list(by_uid.values())
    axis = list(period_axis)

    policies = resolve_policies(unique_records, overrides, registry)
    units = {r.uid: r.unit for r in unique_records}

    frame = _long_frame(unique_records, axis, group_fn, invalid_cells)
    if frame.empty:
        logger.info("No groupable periods for %d records; empty %s aggregate", len(unique_records), grouping_name)
        return AggregateResult(groups=[], table={}, policy_used=policies, grouping=grouping_name)

    groups = sort_groups(axis, group_fn)

    # YYYY-MM keys sort chronologically, so "last" is the latest month.
    frame = frame.sort_values("period", kind="stable")
    reduced = frame.groupby(["group", "uid"], sort=False)["value"].agg(["sum", "mean", "last", "count"])

    column_for = {
        AggregationPolicy.SUM: "sum",
        AggregationPolicy.AVERAGE: "mean",
        AggregationPolicy.END_OF_PERIOD: "last",
    }

    table: dict[str, dict[str, float | None]] = {g: {} for g in groups}
    for (group, uid), row in reduced.iterrows():
        if row["count"] == 0:
            value = None
        else:
            value = float(row[column_for[policies[uid]]])
        if scale:
            value = scale_currency(value, units[uid])
        table[group][uid] = value

    # Keep uid order stable with the source rows inside every group.
    table = {g: {uid: table[g][uid] for uid in by_uid if uid in table[g]} for g in groups}

    logger.info(
        "Aggregated %d metrics into %d %s groups",
        len(unique_records), len(groups), grouping_name,
    )
    return AggregateResult(groups=groups, table=table, policy_used=policies, grouping=grouping_name)
