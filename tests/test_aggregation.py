"""
tests/test_aggregation.py

Month / quarter / year roll-ups, policy application, currency scaling,
and chronological ordering of groups.
"""

import pandas as pd
import pytest

from tenx_dashboard.aggregation import (
    aggregate,
    month_of,
    quarter_of,
    round_half_up,
    scale_currency,
    sort_groups,
    year_of,
)
from tenx_dashboard.models import AggregationPolicy, MetricRecord

AXIS = ("2025-01", "2025-02", "2025-03")


def _metric(uid, name, unit, values, category="Ops", group="Plant", mtype="Line"):
    return MetricRecord(uid, group, category, mtype, name, unit, values=tuple(values))


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class TestPolicies:
    def test_average(self):
        result = aggregate([_metric("1", "GM %", "%", ["10", "20", "30"])], AXIS)
        assert result.value("1Q2025", "1") == 20
        assert result.policy_used["1"] is AggregationPolicy.AVERAGE

    def test_sum(self):
        result = aggregate(
            [_metric("1", "Units Sold", "#", ["10", "20", "30"], category="Revenue")], AXIS
        )
        assert result.value("1Q2025", "1") == 60

    def test_end_of_period(self):
        result = aggregate([_metric("1", "Total Employees", "#", ["10", "20", "30"])], AXIS)
        assert result.value("1Q2025", "1") == 30

    def test_override_switches_policy(self):
        record = _metric("8", "Total Revenue", "$", ["$100,000 ", "$200,000 ", "$300,000 "])
        assert aggregate([record], AXIS).value("1Q2025", "8") == 600
        result = aggregate([record], AXIS, overrides={"8": "average"})
        assert result.value("1Q2025", "8") == 200
        assert result.policy_used["8"] is AggregationPolicy.AVERAGE

    def test_registry_applies_when_no_override(self):
        record = _metric("1", "GM %", "%", ["10", "20", "30"])
        result = aggregate([record], AXIS, registry={"1": "end-of-period"})
        assert result.value("1Q2025", "1") == 30

    def test_end_of_period_uses_latest_month_not_column_order(self):
        axis = ("2025-03", "2025-01", "2025-02")
        record = _metric("1", "Total Employees", "#", ["30", "10", "20"])
        assert aggregate([record], axis).value("1Q2025", "1") == 30


# ---------------------------------------------------------------------------
# Sample export
# ---------------------------------------------------------------------------


class TestQuarterlySample:
    @pytest.fixture()
    def result(self, parsed):
        return aggregate(parsed.records, parsed.period_axis)

    def test_groups(self, result):
        assert result.groups == ["1Q2025", "2Q2025"]
        assert result.grouping == "quarter"

    def test_first_quarter(self, result):
        assert result.table["1Q2025"] == {"8": 600, "21": 20, "40": 1250, "33": 2, "70": 85}

    def test_partial_second_quarter(self, result):
        assert result.table["2Q2025"] == {"8": 400, "21": 40, "40": 1300, "33": -10, "70": 84}

    def test_currency_is_integer_thousands(self, result):
        for group in result.groups:
            for uid in ("8", "40", "33"):
                value = result.table[group][uid]
                assert value == int(value)

    def test_uid_order_follows_source(self, result):
        assert list(result.table["1Q2025"]) == ["8", "21", "40", "33", "70"]

    def test_repeatable(self, parsed, result):
        again = aggregate(parsed.records, parsed.period_axis)
        assert again.table == result.table
        assert again.groups == result.groups

    def test_input_not_modified(self, parsed):
        before = [r.as_dict() for r in parsed.records]
        aggregate(parsed.records, parsed.period_axis, overrides={"8": "average"})
        assert [r.as_dict() for r in parsed.records] == before

    def test_unscaled(self, parsed):
        result = aggregate(parsed.records, parsed.period_axis, scale=False)
        assert result.value("1Q2025", "8") == 600_000
        assert result.value("1Q2025", "33") == 1995


# ---------------------------------------------------------------------------
# Ordering and groupings
# ---------------------------------------------------------------------------


class TestGroupings:
    def test_quarters_sort_chronologically(self):
        axis = ("2025-01", "2024-10", "2024-11")
        record = _metric("1", "Total Employees", "#", ["5", "1", "2"])
        result = aggregate([record], axis)
        # Lexicographic order would put "1Q2025" first
        assert result.groups == ["4Q2024", "1Q2025"]

    def test_quarter_labels(self):
        assert quarter_of("2025-01")[0] == "1Q2025"
        assert quarter_of("2025-06")[0] == "2Q2025"
        assert quarter_of("2025-07")[0] == "3Q2025"
        assert quarter_of("2024-12")[0] == "4Q2024"
        assert quarter_of("Total") is None

    def test_month_labels(self):
        assert month_of("2025-03") == ("Mar 2025", (2025, 3))
        assert month_of("2025-13") is None

    def test_year_labels(self):
        assert year_of("2024-07") == ("2024", (2024, 0))

    def test_sort_groups_months_across_years(self):
        axis = ["2025-01", "2024-12", "2024-02"]
        assert sort_groups(axis, month_of) == ["Feb 2024", "Dec 2024", "Jan 2025"]

    def test_monthly_grouping(self, parsed):
        result = aggregate(parsed.records, parsed.period_axis, grouping="month")
        assert result.groups == ["Jan 2025", "Feb 2025", "Mar 2025", "Apr 2025"]
        assert result.value("Feb 2025", "8") == 200
        assert result.value("Jan 2025", "33") == 0
        assert result.value("Apr 2025", "33") == -10

    def test_yearly_grouping(self, parsed):
        result = aggregate(parsed.records, parsed.period_axis, grouping="year")
        assert result.groups == ["2025"]
        assert result.value("2025", "8") == 1000
        assert result.value("2025", "21") == 25
        assert result.value("2025", "70") == 84

    def test_custom_grouping_callable(self):
        def half_of(period):
            year, month = int(period[:4]), int(period[5:])
            half = 1 if month <= 6 else 2
            return f"H{half} {year}", (year, half)

        record = _metric("1", "Units", "#", ["1", "2", "3"], category="Revenue")
        result = aggregate([record], AXIS, grouping=half_of)
        assert result.groups == ["H1 2025"]
        assert result.grouping == "half_of"
        assert result.value("H1 2025", "1") == 6

    def test_unrecognized_periods_are_excluded(self):
        axis = ("2025-01", "Total")
        record = _metric("1", "Units", "#", ["4", "999"], category="Revenue")
        result = aggregate([record], axis)
        assert result.table == {"1Q2025": {"1": 4}}

    def test_no_groupable_periods(self):
        result = aggregate([_metric("1", "Units", "#", ["1"])], ("Total",))
        assert result.groups == []
        assert result.table == {}

    def test_unknown_grouping_name(self):
        with pytest.raises(KeyError):
            aggregate([], AXIS, grouping="fortnight")


# ---------------------------------------------------------------------------
# Blank and invalid cells
# ---------------------------------------------------------------------------


class TestInvalidCells:
    record = _metric("1", "GM %", "%", ["10", "", "n/a"])

    def test_zero_mode_counts_blanks_as_zero(self):
        result = aggregate([self.record], AXIS)
        assert result.value("1Q2025", "1") == pytest.approx(10 / 3)

    def test_skip_mode_leaves_blanks_out(self):
        result = aggregate([self.record], AXIS, invalid_cells="skip")
        assert result.value("1Q2025", "1") == 10

    def test_skip_mode_all_missing_gives_none(self):
        record = _metric("1", "GM %", "%", ["", "", ""])
        assert aggregate([record], AXIS, invalid_cells="skip").value("1Q2025", "1") is None

    def test_skip_mode_end_of_period_uses_last_reported_month(self):
        record = _metric("1", "Total Employees", "#", ["10", "20", ""])
        result = aggregate([record], AXIS, invalid_cells="skip")
        assert result.value("1Q2025", "1") == 20

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            aggregate([self.record], AXIS, invalid_cells="drop")


def test_duplicate_uid_last_row_wins():
    first = _metric("1", "Units", "#", ["1", "1", "1"], category="Revenue")
    second = _metric("1", "Units", "#", ["2", "2", "2"], category="Revenue")
    assert aggregate([first, second], AXIS).value("1Q2025", "1") == 6


class TestResultHelpers:
    @pytest.fixture()
    def result(self, parsed):
        return aggregate(parsed.records, parsed.period_axis, grouping="month")

    def test_tail(self, result):
        recent = result.tail(2)
        assert recent.groups == ["Mar 2025", "Apr 2025"]
        assert set(recent.table) == {"Mar 2025", "Apr 2025"}
        assert result.tail(0).groups == []

    def test_series(self, result):
        assert result.series("70") == [80, 82, 85, 84]

    def test_to_frame(self, result):
        df = result.to_frame()
        assert list(df.index) == result.groups
        assert df.index.name == "month"
        assert df.loc["Mar 2025", "8"] == 300
        assert pd.api.types.is_float_dtype(df["8"])


class TestRounding:
    @pytest.mark.parametrize(
        "value, expected",
        [(1.995, 2), (2.5, 3), (-9.964, -10), (-0.5, 0), (-1.5, -1), (0.4999, 0)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_scale_currency(self):
        assert scale_currency(1_431_499.0, "$") == 1431
        assert scale_currency(1_431_500.0, "$") == 1432
        assert scale_currency(45.0, "%") == 45.0
        assert scale_currency(None, "$") is None


def test_tail_does_not_share_policies(parsed):
    result = aggregate(parsed.records, parsed.period_axis)
    recent = result.tail(1)
    recent.policy_used["8"] = AggregationPolicy.AVERAGE
    assert result.policy_used["8"] is AggregationPolicy.SUM
