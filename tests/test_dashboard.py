"""
tests/test_dashboard.py

Dashboard-ready payloads built from a parsed export.
"""

import pytest

from tenx_dashboard.dashboard import (
    get_aggregate_frame,
    get_available_groups,
    get_metric_options,
    get_metrics_overview,
    get_monthly_summary,
    get_policy_table,
    get_quarterly_summary,
    get_trend_indicators,
)
from tenx_dashboard.loaders import parse_metrics_csv
from tenx_dashboard.aggregation import aggregate
from tenx_dashboard.simulator import generate_metrics_csv


class TestMetricsOverview:
    def test_shape(self, parsed):
        overview = get_metrics_overview(parsed)
        assert overview["period_axis"] == ["2025-01", "2025-02", "2025-03", "2025-04"]
        assert [r["uid"] for r in overview["flat_records"]] == ["8", "21", "40", "33", "70"]
        assert overview["skipped_rows"] == 1
        assert overview["shadowed_uids"] == []

    def test_rows_grid(self, parsed):
        rows = get_metrics_overview(parsed)["rows"]
        assert rows[0] == ["", "2025-01", "2025-02", "2025-03", "2025-04"]
        assert rows[1][0] == "Total Revenue"
        assert len(rows) == len(parsed.records) + 1
        assert all(len(row) == len(rows[0]) for row in rows)

    def test_tree_leaf(self, parsed):
        tree = get_metrics_overview(parsed)["hierarchical_tree"]
        assert tree["People"]["Workforce"]["Headcount"]["Total Employees"]["uid"] == "70"


class TestQuarterlySummary:
    def test_payload(self, parsed):
        summary = get_quarterly_summary(parsed)
        assert summary["grouping"] == "quarter"
        assert summary["groups"] == ["1Q2025", "2Q2025"]
        assert summary["table"]["1Q2025"]["8"] == 600
        assert summary["policy_used"] == {
            "8": "sum", "21": "average", "40": "end-of-period", "33": "sum", "70": "end-of-period",
        }

    def test_override(self, parsed):
        summary = get_quarterly_summary(parsed, overrides={"8": "average"})
        assert summary["table"]["1Q2025"]["8"] == 200
        option = next(o for o in summary["metric_options"] if o["uid"] == "8")
        assert option["aggregation"] == "average"

    def test_keeps_most_recent_quarters(self):
        parsed = parse_metrics_csv(generate_metrics_csv(start_month="2023-01-01", n_months=36))
        summary = get_quarterly_summary(parsed)
        assert len(summary["groups"]) == 7
        assert summary["groups"][-1] == "4Q2025"
        assert summary["groups"][0] == "2Q2024"
        assert set(summary["table"]) == set(summary["groups"])


class TestMonthlySummary:
    def test_full_range(self, parsed):
        summary = get_monthly_summary(parsed)
        assert summary["groups"] == ["Jan 2025", "Feb 2025", "Mar 2025", "Apr 2025"]

    def test_window(self, parsed):
        summary = get_monthly_summary(parsed, start="2025-02", end="2025-03")
        assert summary["groups"] == ["Feb 2025", "Mar 2025"]
        assert summary["table"]["Mar 2025"]["40"] == 1250

    def test_empty_window(self, parsed):
        summary = get_monthly_summary(parsed, start="2026-01")
        assert summary["groups"] == []

    def test_bad_bound(self, parsed):
        with pytest.raises(ValueError):
            get_monthly_summary(parsed, start="Jan 2025")


def test_metric_options_without_policies(parsed):
    options = get_metric_options(parsed.records)
    assert options[0] == {
        "uid": "8",
        "name": "Total Revenue",
        "unit": "$",
        "category": "Accounting - Income Statement - Income",
    }


def test_aggregate_frame(parsed):
    df = get_aggregate_frame(parsed, grouping="quarter")
    assert list(df.columns) == ["quarter", "uid", "name", "unit", "category", "aggregation", "value"]
    assert len(df) == 10
    row = df[(df["quarter"] == "2Q2025") & (df["uid"] == "33")].iloc[0]
    assert row["value"] == -10
    assert row["aggregation"] == "sum"


def test_trend_indicators(parsed):
    result = aggregate(parsed.records, parsed.period_axis)
    trend = get_trend_indicators(result, "8")
    assert [t["group"] for t in trend] == ["1Q2025", "2Q2025"]
    assert trend[0]["change_pct"] is None
    assert trend[1]["change_pct"] == pytest.approx((400 - 600) / 600 * 100)


def test_available_groups(parsed):
    assert get_available_groups(parsed) == ["1Q2025", "2Q2025"]
    assert get_available_groups(parsed, "year") == ["2025"]


def test_policy_table(parsed):
    df = get_policy_table(parsed, overrides={"70": "average"})
    assert list(df["uid"]) == ["8", "21", "40", "33", "70"]
    assert df.set_index("uid").loc["70", "aggregation"] == "average"


def test_overview_tree_is_owned_by_caller(parsed):
    tree = get_metrics_overview(parsed)["hierarchical_tree"]
    tree["People"]["Workforce"]["Headcount"].clear()
    tree.pop("Accounting")
    again = get_metrics_overview(parsed)["hierarchical_tree"]
    assert set(again) == {"Accounting", "People"}
    assert "Total Employees" in again["People"]["Workforce"]["Headcount"]
