"""Shared fixtures: a small metrics export covering the awkward cell formats."""

import pytest

from tenx_dashboard.loaders import parse_metrics_csv

SAMPLE_CSV = "\n".join([
    "uid,Metric Group,Metric Category,Metric Type,Metric Name,Unit,1/1/2025,2/1/2025,3/1/2025,4/1/2025,,",
    '8,Accounting,Income Statement,Income,Total Revenue,$,"$100,000 ","$200,000 ","$300,000 ","$400,000 ",,',
    "21,Accounting,Income Statement,Gross Margin,GM %,%,10%,20%,30%,40%,,",
    '40,Accounting,Balance Sheet,Assets,Cash Balance,$,"$1,000,000 ","$1,100,000 ","$1,250,000 ","$1,300,000 ",,',
    '33,Accounting,Income Statement,Net Income,Net Income,$,($5),"$2,000 ",$0 ,"($9,964)",,',
    "70,People,Workforce,Headcount,Total Employees,#,80,82,85,84,,",
    "",
    "99,Notes,Partial,Row,Incomplete",
    "",
])


@pytest.fixture()
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture()
def parsed(sample_csv):
    return parse_metrics_csv(sample_csv, source="sample")
