"""Tab 1: Capacity Dashboard: team totals, trends and risk findings."""

import streamlit as st
import pandas as pd

from data.session_store import get_engine, get_records, is_data_loaded
from components.metrics_cards import render_metric_row, render_risk_card, status_label, render_alert_card
from components.charts import utilization_trend_chart, utilization_donut
from components.tables import render_risk_table
from config.defaults import DEFAULT_TREND_PERIODS
from models.period import trailing_periods


def render(sidebar_state):
    """Render the Capacity Dashboard tab."""
    st.header("Capacity Dashboard")

    if not is_data_loaded():
        st.info("No data loaded. Please upload data in the Admin & Governance tab.")
        return
    if not sidebar_state.team_id:
        st.info("Select a team in the sidebar.")
        return

    engine = get_engine()
    records = get_records()
    team_id = sidebar_state.team_id

    col_t, col_r = st.columns(2)
    with col_t:
        include_trends = st.toggle("Show trends", value=True, key="dash_trends")
    with col_r:
        include_risks = st.toggle("Show risks", value=True, key="dash_risks")

    period = sidebar_state.period
    periods = trailing_periods(
        period.start, period.days, engine.rule_config.get("trend_periods", DEFAULT_TREND_PERIODS),
    )
    metrics = engine.aggregate(
        team_id,
        periods=periods,
        as_of=sidebar_state.as_of,
        include_trends=include_trends,
        include_risks=include_risks,
    )

    st.caption(
        f"{metrics.team_name} · {metrics.period_start:%b %d} - {metrics.period_end:%b %d, %Y} · "
        f"{metrics.total_teammates} teammate{'s' if metrics.total_teammates != 1 else ''}"
    )

    # --- KPI Metrics ---
    render_metric_row([
        {"label": "Base Capacity", "value": f"{metrics.total_base_capacity:,.0f}h"},
        {"label": "Available", "value": f"{metrics.total_available_capacity:,.0f}h",
         "delta": f"{metrics.total_available_capacity - metrics.total_base_capacity:+,.0f}h",
         "delta_color": "normal"},
        {"label": "Allocated to Team", "value": f"{metrics.total_allocated_capacity:,.0f}h"},
        {"label": "Avg Utilization", "value": f"{metrics.average_utilization:.1f}%",
         "delta": status_label(metrics.capacity_status), "delta_color": "off"},
    ])
    render_metric_row([
        {"label": "Upcoming Leave Days", "value": str(metrics.upcoming_leave_days)},
        {"label": "Upcoming Holidays", "value": str(metrics.upcoming_holiday_days)},
        {"label": "Risk Findings", "value": str(len(metrics.risk_factors)) if include_risks else "-"},
        {"label": "Data Warnings", "value": str(len(metrics.data_quality_warnings))},
    ])

    names = {tid: t.name for tid, t in records.teammates.items()}
    for w in metrics.data_quality_warnings:
        render_alert_card(f"{names.get(w.teammate_id, w.teammate_id)}: {w.message}", "warning")

    if metrics.total_teammates == 0:
        st.info("No active allocations on this team yet. Add teammates in the Team Allocations tab.")

    st.divider()

    # --- Charts ---
    col1, col2 = st.columns([3, 2])
    with col1:
        if include_trends and metrics.capacity_trends:
            st.plotly_chart(utilization_trend_chart(metrics.capacity_trends), use_container_width=True)
        else:
            st.caption("Trends hidden.")
    with col2:
        st.plotly_chart(
            utilization_donut(metrics.total_allocated_capacity, metrics.total_available_capacity),
            use_container_width=True,
        )

    if include_trends and metrics.capacity_trends:
        with st.expander("Trend data", expanded=False):
            trend_df = pd.DataFrame([{
                "Period": t.period,
                "Start": t.period_start,
                "End": t.period_end,
                "Planned (h)": t.planned_capacity,
                "Actual (h)": t.actual_capacity,
                "Utilization %": t.utilization_percentage,
            } for t in metrics.capacity_trends])
            st.dataframe(trend_df, use_container_width=True)

    # --- Risks ---
    if include_risks:
        st.divider()
        st.subheader("Risk Findings")
        if not metrics.risk_factors:
            st.success("No risks detected for this period.")
            return

        for finding in metrics.risk_factors:
            render_risk_card(finding, names)

        risk_df = pd.DataFrame([{
            "Severity": f.severity,
            "Type": f.type,
            "Description": f.description,
            "Impacted": ", ".join(names.get(t, t) for t in f.impacted_teammates),
        } for f in metrics.risk_factors])
        with st.expander("Risk table", expanded=False):
            render_risk_table(risk_df)
            st.download_button("Export Risks (CSV)", risk_df.to_csv(index=False), "risks.csv", "text/csv")
