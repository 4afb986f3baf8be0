"""
10X Business Metrics — ingestion and aggregation backend

Turns the monthly "10X Business Metrics" CSV export into a normalized
metric catalog and month/quarter/year aggregates for the dashboard,
chat assistant, and report drafting pages.

To point at a new export:
    Update config.LATEST_CSV_FILENAME, or set the TENX_METRICS_CSV
    environment variable to the file path.

To connect to Streamlit/Dash:
    Load with loaders.load_metrics_csv(path), then call
    dashboard.get_quarterly_summary(parsed) or get_monthly_summary(parsed)
    for plain dicts suitable for cards, charts, and tables.

To pin how a metric rolls up:
    Add its uid to config.AGGREGATION_POLICY_REGISTRY with "sum",
    "average", or "end-of-period". Request-level overrides still win.
"""
