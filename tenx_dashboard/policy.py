"""
Aggregation policy selection — how monthly values roll up into a quarter.

Resolution order for each metric uid:
    1. request-level overrides (e.g. a user toggling a quarterly column)
    2. config.AGGREGATION_POLICY_REGISTRY
    3. keyword classification of the metric name, unit, and category
"""

import json
import logging
from typing import Iterable, Mapping

from .config import (
    AGGREGATION_POLICY_REGISTRY,
    AVERAGE_NAME_KEYWORDS,
    CURRENCY_UNIT,
    FLOW_CATEGORY_KEYWORDS,
    FLOW_NAME_KEYWORDS,
    PERCENT_UNIT,
    RATIO_UNIT,
    SNAPSHOT_KEYWORDS,
)
from .models import AggregationPolicy, MetricRecord

logger = logging.getLogger(__name__)


def classify_aggregation(name: str, unit: str, category: str) -> AggregationPolicy:
    """Return the default aggregation policy for a metric.

    Logic (first match wins)
    -----
    - unit is '%' or 'ratio', or name mentions rate/ratio  -> average
    - name mentions a point-in-time balance keyword        -> end-of-period
    - category or name mentions an income/expense flow     -> sum
    - otherwise: sum for '$' metrics, end-of-period for the rest
    """
    lowered_name = (name or "").lower()
    lowered_cat = (category or "").lower()
    unit = (unit or "").strip()

    if unit in (PERCENT_UNIT, RATIO_UNIT) or any(k in lowered_name for k in AVERAGE_NAME_KEYWORDS):
        return AggregationPolicy.AVERAGE

    if any(k in lowered_name for k in SNAPSHOT_KEYWORDS):
        return AggregationPolicy.END_OF_PERIOD

    if any(k in lowered_cat for k in FLOW_CATEGORY_KEYWORDS) or any(
        k in lowered_name for k in FLOW_NAME_KEYWORDS
    ):
        return AggregationPolicy.SUM

    return AggregationPolicy.SUM if unit == CURRENCY_UNIT else AggregationPolicy.END_OF_PERIOD


def coerce_policies(raw: Mapping[str, object] | None) -> dict[str, AggregationPolicy]:
    """Validate a uid -> policy-name map, dropping unknown policy names."""
    policies: dict[str, AggregationPolicy] = {}
    if not raw:
        return policies
    for uid, value in raw.items():
        try:
            policies[str(uid)] = AggregationPolicy(value)
        except ValueError:
            logger.warning("Ignoring unknown aggregation policy %r for uid %s", value, uid)
    return policies


def parse_overrides(text: str | None) -> dict[str, AggregationPolicy]:
    """Parse a JSON object of uid -> policy overrides.

    Malformed JSON is logged and treated as "no overrides".
    """
    if not text:
        return {}
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Invalid overrides parameter: %s", e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Overrides must be a JSON object, got %s", type(raw).__name__)
        return {}
    return coerce_policies(raw)


def resolve_policy(
    record: MetricRecord,
    overrides: Mapping[str, AggregationPolicy] | None = None,
    registry: Mapping[str, object] | None = None,
) -> AggregationPolicy:
    if overrides and record.uid in overrides:
        return AggregationPolicy(overrides[record.uid])
    registry = AGGREGATION_POLICY_REGISTRY if registry is None else registry
    if record.uid in registry:
        return AggregationPolicy(registry[record.uid])
    return classify_aggregation(record.name, record.unit, record.full_category)


def resolve_policies(
    records: Iterable[MetricRecord],
    overrides: Mapping[str, object] | None = None,
    registry: Mapping[str, object] | None = None,
) -> dict[str, AggregationPolicy]:
    """Return uid -> policy for every record."""
    checked = coerce_policies(overrides)
    return {r.uid: resolve_policy(r, checked, registry) for r in records}
