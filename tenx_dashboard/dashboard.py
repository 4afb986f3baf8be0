"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit app, chat context
builders, and report exporters. Each function takes ParsedMetrics and
returns plain dicts or DataFrames suitable for rendering pickers, charts,
and tables.
"""

import logging
from typing import Mapping

import pandas as pd

from .aggregation import GROUPINGS, aggregate, sort_groups
from .catalog import build_catalog
from .config import RECENT_QUARTERS
from .kpis import calc_percentage_change
from .loaders.utils import is_period_key
from .models import AggregateResult, AggregationPolicy, MetricRecord, ParsedMetrics
from .policy import resolve_policies

logger = logging.getLogger(__name__)


def get_metric_options(
    records: tuple[MetricRecord, ...] | list[MetricRecord],
    policies: Mapping[str, AggregationPolicy] | None = None,
) -> list[dict]:
    """One entry per metric for picker widgets."""
    options = []
    for record in records:
        option = {
            "uid": record.uid,
            "name": record.name,
            "unit": record.unit,
            "category": record.full_category,
        }
        if policies is not None and record.uid in policies:
            option["aggregation"] = policies[record.uid].value
        options.append(option)
    return options


def get_metrics_overview(parsed: ParsedMetrics) -> dict:
    """Everything the raw-data and metrics-graph pages need.

    Returns
    -------
    {
        "period_axis": ["2025-01", ...],
        "flat_records": [{"uid": ..., "values": [...]}, ...],
        "hierarchical_tree": {group: {category: {type: {name: leaf}}}},
        "rows": [["", period, ...], [name, value, ...], ...],
        "shadowed_uids": [...],
        "skipped_rows": <int>,
    }

    The catalog is rebuilt on every call, so callers own the returned
    tree and may modify it without affecting `parsed` or later calls.
    """
    catalog = build_catalog(parsed.records)
    rows = [["", *parsed.period_axis]]
    rows.extend([record.name, *record.values] for record in catalog.records)

    return {
        "period_axis": list(parsed.period_axis),
        "flat_records": [record.as_dict() for record in catalog.records],
        "hierarchical_tree": catalog.tree,
        "rows": rows,
        "shadowed_uids": list(catalog.shadowed_uids),
        "skipped_rows": len(parsed.skipped_rows),
    }


def get_quarterly_summary(
    parsed: ParsedMetrics,
    overrides: Mapping[str, object] | None = None,
    recent: int = RECENT_QUARTERS,
) -> dict:
    """Quarterly highlights: the most recent quarters, aggregated per policy.

    Parameters
    ----------
    parsed : Output of a metrics loader.
    overrides : uid -> policy name chosen by the user.
    recent : Number of most recent quarters to keep.

    Returns
    -------
    Dict with groups, table (quarter -> uid -> value, '$' in thousands),
    policy_used, and metric_options.
    """
    result = aggregate(parsed.records, parsed.period_axis, grouping="quarter", overrides=overrides)
    result = result.tail(recent)
    return _summary_payload(parsed, result)


def get_monthly_summary(
    parsed: ParsedMetrics,
    start: str | None = None,
    end: str | None = None,
) -> dict:
    """Monthly values ('$' in thousands) within an inclusive YYYY-MM window."""
    for bound in (start, end):
        if bound is not None and not is_period_key(bound):
            raise ValueError(f"Expected a YYYY-MM period, got {bound!r}")

    axis = list(parsed.period_axis)
    keep = [
        i for i, period in enumerate(axis)
        if is_period_key(period)
        and (start is None or period >= start)
        and (end is None or period <= end)
    ]
    if not keep:
        logger.warning("No months between %s and %s", start or "start", end or "end")

    window_axis = [axis[i] for i in keep]
    window_records = [
        MetricRecord(
            r.uid, r.group, r.category, r.type, r.name, r.unit,
            values=tuple(r.values[i] for i in keep),
        )
        for r in parsed.records
    ]
    result = aggregate(window_records, window_axis, grouping="month")
    return _summary_payload(parsed, result)


def _summary_payload(parsed: ParsedMetrics, result: AggregateResult) -> dict:
    return {
        "grouping": result.grouping,
        "groups": result.groups,
        "table": result.table,
        "policy_used": {uid: p.value for uid, p in result.policy_used.items()},
        "metric_options": get_metric_options(parsed.records, result.policy_used),
    }


def get_aggregate_frame(
    parsed: ParsedMetrics,
    grouping: str = "quarter",
    overrides: Mapping[str, object] | None = None,
) -> pd.DataFrame:
    """Long DataFrame: one row per (group, metric) with name, unit, policy."""
    result = aggregate(parsed.records, parsed.period_axis, grouping=grouping, overrides=overrides)
    names = {r.uid: (r.name, r.unit, r.full_category) for r in parsed.records}

    rows = []
    for group in result.groups:
        for uid, value in result.table[group].items():
            name, unit, category = names[uid]
            rows.append({
                grouping: group,
                "uid": uid,
                "name": name,
                "unit": unit,
                "category": category,
                "aggregation": result.policy_used[uid].value,
                "value": value,
            })

    df = pd.DataFrame(
        rows,
        columns=[grouping, "uid", "name", "unit", "category", "aggregation", "value"],
    )
    logger.info("Built %s aggregate frame with %d rows", grouping, len(df))
    return df


def get_trend_indicators(result: AggregateResult, uid: str) -> list[dict]:
    """Group-over-group % change for one metric."""
    trend = []
    previous = None
    for group in result.groups:
        value = result.table[group].get(uid)
        trend.append({
            "group": group,
            "value": value,
            "change_pct": calc_percentage_change(value, previous),
        })
        previous = value
    return trend


def get_available_groups(parsed: ParsedMetrics, grouping: str = "quarter") -> list[str]:
    """Chronological list of group labels for UI dropdowns."""
    return sort_groups(parsed.period_axis, GROUPINGS[grouping])


def get_policy_table(
    parsed: ParsedMetrics,
    overrides: Mapping[str, object] | None = None,
) -> pd.DataFrame:
    """Aggregation policy per metric, for the override editor."""
    policies = resolve_policies(parsed.records, overrides)
    return pd.DataFrame([
        {"uid": r.uid, "name": r.name, "unit": r.unit, "aggregation": policies[r.uid].value}
        for r in parsed.records
    ], columns=["uid", "name", "unit", "aggregation"])
