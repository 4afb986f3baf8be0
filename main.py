"""
10X Business Metrics — End-to-end analytics pipeline.

Runs the full pipeline from the metrics CSV to dashboard-ready outputs
and prints smoke-test summaries. Falls back to simulated data when the
configured CSV is not present.

Usage:
    python main.py [path/to/metrics.csv]
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from tenx_dashboard.aggregation import aggregate
from tenx_dashboard.catalog import build_catalog
from tenx_dashboard.config import get_latest_csv_path
from tenx_dashboard.dashboard import (
    get_aggregate_frame,
    get_monthly_summary,
    get_quarterly_summary,
    get_trend_indicators,
)
from tenx_dashboard.kpis import format_thousands
from tenx_dashboard.loaders import load_metrics_csv, parse_metrics_csv, parse_value
from tenx_dashboard.simulator import generate_metrics_csv

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the full analytics pipeline and print smoke-test outputs."""

    print("=" * 70)
    print("  10X BUSINESS METRICS — Ingestion & Aggregation Pipeline")
    print("  Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SOURCE DATA")
    print("-" * 40)

    csv_path = Path(sys.argv[1]) if len(sys.argv) > 1 else get_latest_csv_path()
    if csv_path.exists():
        parsed = load_metrics_csv(csv_path)
    else:
        logger.warning("Metrics CSV not found at %s; using simulated data", csv_path)
        parsed = parse_metrics_csv(generate_metrics_csv(malformed_rows=1), source="simulator")

    print(f"\nSource: {parsed.source}")
    print(f"Periods: {len(parsed.period_axis)} ({parsed.period_axis[0] if parsed.period_axis else '-'} "
          f"to {parsed.period_axis[-1] if parsed.period_axis else '-'})")
    print(f"Records: {len(parsed.records)} | Skipped rows: {len(parsed.skipped_rows)}")
    for skipped in parsed.skipped_rows:
        print(f"  line {skipped.line_number}: {skipped.reason}")

    # ------------------------------------------------------------------
    # 2. Build catalog
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] BUILDING METRIC CATALOG")
    print("-" * 40)

    catalog = build_catalog(parsed.records)
    for group, categories in catalog.tree.items():
        n_metrics = sum(len(names) for types in categories.values() for names in types.values())
        print(f"  {group:20s} | {len(categories)} categories | {n_metrics} metrics")
    if catalog.shadowed_uids:
        print(f"  Shadowed uids: {', '.join(catalog.shadowed_uids)}")

    # ------------------------------------------------------------------
    # 3. Aggregates
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] AGGREGATES")
    print("-" * 40)

    quarterly = get_quarterly_summary(parsed)
    print(f"\nQuarters: {quarterly['groups']}")
    frame = get_aggregate_frame(parsed, grouping="quarter")
    if not frame.empty:
        latest = frame[frame["quarter"] == quarterly["groups"][-1]]
        print(latest[["uid", "name", "unit", "aggregation", "value"]].to_string(index=False))

    monthly = get_monthly_summary(parsed)
    print(f"\nMonths available: {len(monthly['groups'])}")

    yearly = aggregate(parsed.records, parsed.period_axis, grouping="year")
    print("\nYearly totals:")
    units = {r.uid: r.unit for r in parsed.records}
    for record in parsed.records[:5]:
        values = [format_thousands(v, units[record.uid]) for v in yearly.series(record.uid)]
        print(f"  {record.name:28s} | " + " | ".join(f"{g}: {v}" for g, v in zip(yearly.groups, values)))

    # ------------------------------------------------------------------
    # 4. Acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] ACCEPTANCE CRITERIA CHECKS")
    print("-" * 40)

    expected = {'$1,234 ': 1234, '"$1,234"': 1234, "($394)": -394, '"($394)"': -394, "$0 ": 0, "": 0}
    check1 = all(parse_value(raw) == want for raw, want in expected.items())
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] Currency cell cleaning matches the reference table")

    check2 = len(catalog) == len(parsed.records)
    print(f"  [{'PASS' if check2 else 'FAIL'}] Catalog keeps all {len(parsed.records)} records in order")

    again = aggregate(parsed.records, parsed.period_axis)
    check3 = again.table == aggregate(parsed.records, parsed.period_axis).table
    print(f"  [{'PASS' if check3 else 'FAIL'}] Quarterly aggregation is repeatable")

    if parsed.records:
        uid = parsed.records[0].uid
        trend = get_trend_indicators(again, uid)
        last = trend[-1] if trend else None
        if last and last["change_pct"] is not None:
            print(f"  [INFO] {parsed.records[0].name} latest quarter change: {last['change_pct']:+.1f}%")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
