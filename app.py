"""
10X Business Metrics — Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from tenx_dashboard.config import COMPANY_NAME, get_latest_csv_path
from tenx_dashboard.dashboard import (
    get_metrics_overview,
    get_monthly_summary,
    get_policy_table,
    get_quarterly_summary,
)
from tenx_dashboard.kpis import calc_percentage_change, format_thousands, get_axis_title
from tenx_dashboard.loaders import format_month, load_metrics_csv, parse_metrics_csv
from tenx_dashboard.loaders.utils import is_period_key
from tenx_dashboard.models import AggregationPolicy
from tenx_dashboard.simulator import generate_metrics_csv

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="10X Business Metrics",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

SERIES_COLORS = [
    "#4bc0c0", "#ff6384", "#36a2eb", "#ffce56", "#9966ff", "#ff9f40",
    "#4bc064", "#ff6347", "#c9cbcf", "#008080", "#dc143c", "#00008b",
]


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------
@st.cache_data
def load_metrics():
    csv_path = get_latest_csv_path()
    if csv_path.exists():
        return load_metrics_csv(csv_path)
    return parse_metrics_csv(generate_metrics_csv(), source="simulated data")


parsed = load_metrics()
units = {r.uid: r.unit for r in parsed.records}
names = {r.uid: r.name for r in parsed.records}

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(COMPANY_NAME)
st.sidebar.markdown("Business Metrics Dashboard")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["Quarterly Highlights", "Monthly Trends", "Metric Explorer", "Raw Data"],
)

st.sidebar.divider()
st.sidebar.caption(f"Data: {parsed.source}")
if parsed.skipped_rows:
    st.sidebar.warning(f"{len(parsed.skipped_rows)} incomplete row(s) skipped")


def metric_card(label: str, value, previous, unit: str):
    change = calc_percentage_change(value, previous)
    st.metric(
        label,
        format_thousands(value, unit) or "N/A",
        delta=f"{change:+.1f}%" if change is not None else None,
    )


# ===========================================================================
# PAGE: Quarterly Highlights
# ===========================================================================
if page == "Quarterly Highlights":
    st.title("Quarterly Highlights")
    st.caption("Currency in thousands of dollars")

    policy_df = get_policy_table(parsed)
    with st.expander("Aggregation settings"):
        edited = st.data_editor(
            policy_df,
            column_config={
                "aggregation": st.column_config.SelectboxColumn(
                    "Aggregation",
                    options=[p.value for p in AggregationPolicy],
                ),
            },
            disabled=["uid", "name", "unit"],
            hide_index=True,
            use_container_width=True,
        )
    overrides = {
        row["uid"]: row["aggregation"]
        for _, row in edited.iterrows()
        if row["aggregation"] != policy_df.loc[policy_df["uid"] == row["uid"], "aggregation"].iloc[0]
    }

    summary = get_quarterly_summary(parsed, overrides=overrides)
    quarters = summary["groups"]

    if not quarters:
        st.warning("No quarterly data available.")
    else:
        latest, prior = quarters[-1], quarters[-2] if len(quarters) > 1 else None
        headline = [o for o in summary["metric_options"] if o["unit"] == "$"][:6]

        cols = st.columns(3)
        for i, option in enumerate(headline):
            with cols[i % 3]:
                metric_card(
                    option["name"],
                    summary["table"][latest].get(option["uid"]),
                    summary["table"][prior].get(option["uid"]) if prior else None,
                    option["unit"],
                )

        st.divider()
        st.subheader("Quarter-by-quarter")
        table = pd.DataFrame(summary["table"]).reindex(columns=quarters)
        table.insert(0, "metric", [names[uid] for uid in table.index])
        table.insert(1, "aggregation", [summary["policy_used"][uid] for uid in table.index])
        st.dataframe(table, use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Monthly Trends
# ===========================================================================
elif page == "Monthly Trends":
    st.title("Monthly Trends")

    months = [p for p in parsed.period_axis if is_period_key(p)]
    if not months:
        st.warning("No monthly data available.")
    else:
        start, end = st.select_slider(
            "Months",
            options=months,
            value=(months[max(0, len(months) - 12)], months[-1]),
            format_func=format_month,
        )
        summary = get_monthly_summary(parsed, start=start, end=end)

        selected = st.multiselect(
            "Metrics",
            options=list(names),
            default=list(names)[:3],
            format_func=lambda uid: names[uid],
        )

        fig = go.Figure()
        for i, uid in enumerate(selected):
            fig.add_trace(go.Scatter(
                x=summary["groups"],
                y=[summary["table"][m].get(uid) for m in summary["groups"]],
                name=names[uid],
                mode="lines+markers",
                line=dict(color=SERIES_COLORS[i % len(SERIES_COLORS)], width=2),
            ))
        fig.update_layout(
            height=450,
            yaxis_title=get_axis_title(names[selected[0]], units[selected[0]]) if selected else "",
            plot_bgcolor="rgba(0,0,0,0)",
        )
        st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Metric Explorer
# ===========================================================================
elif page == "Metric Explorer":
    st.title("Metric Explorer")

    overview = get_metrics_overview(parsed)
    tree = overview["hierarchical_tree"]

    col1, col2, col3 = st.columns(3)
    with col1:
        group = st.selectbox("Group", list(tree))
    with col2:
        category = st.selectbox("Category", list(tree.get(group, {})))
    with col3:
        mtype = st.selectbox("Type", list(tree.get(group, {}).get(category, {})))

    leaves = tree.get(group, {}).get(category, {}).get(mtype, {})
    summary = get_quarterly_summary(parsed)
    for name, leaf in leaves.items():
        st.subheader(name)
        uid = leaf["uid"]
        fig = go.Figure(go.Bar(
            x=summary["groups"],
            y=[summary["table"][q].get(uid) for q in summary["groups"]],
            marker_color="#36a2eb",
        ))
        fig.update_layout(
            height=300,
            yaxis_title=get_axis_title(name, leaf["unit"]),
            plot_bgcolor="rgba(0,0,0,0)",
        )
        st.plotly_chart(fig, use_container_width=True)

    if overview["shadowed_uids"]:
        st.info(f"Metrics hidden by duplicate names: {', '.join(overview['shadowed_uids'])}")


# ===========================================================================
# PAGE: Raw Data
# ===========================================================================
elif page == "Raw Data":
    st.title("Raw Data")

    overview = get_metrics_overview(parsed)
    header, *body = overview["rows"]
    raw = pd.DataFrame(body, columns=["metric", *header[1:]])
    st.dataframe(raw, use_container_width=True, hide_index=True)

    if parsed.skipped_rows:
        st.subheader("Skipped rows")
        st.dataframe(
            pd.DataFrame([
                {"line": s.line_number, "reason": s.reason, "fields": ", ".join(s.fields)}
                for s in parsed.skipped_rows
            ]),
            use_container_width=True,
            hide_index=True,
        )
