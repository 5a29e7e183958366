"""Tab 3: Teammate Capacity: itemized breakdown of one teammate's hours."""

import streamlit as st
import pandas as pd

from components.charts import allocation_split_bar, capacity_breakdown_waterfall
from components.metrics_cards import render_alert_card, render_metric_row, role_label, status_label
from data.session_store import find_audit_entries, get_engine, get_records, is_data_loaded
from engine.metrics_aggregator import classify_capacity_status


def render(sidebar_state):
    """Render the Teammate Capacity tab."""
    st.header("Teammate Capacity")

    if not is_data_loaded():
        st.info("No data loaded. Please upload data in the Admin & Governance tab.")
        return

    engine = get_engine()
    records = get_records()
    teammates = sorted(records.teammates.values(), key=lambda t: t.name)
    if not teammates:
        st.info("No teammates loaded.")
        return

    col_f1, col_f2 = st.columns([2, 1])
    with col_f1:
        search = st.text_input("Search teammate", "", key="bd_search")
    with col_f2:
        show_inactive = st.checkbox("Include inactive", value=False, key="bd_inactive")

    options = [
        t for t in teammates
        if (show_inactive or t.is_active)
        and (not search or search.lower() in t.name.lower() or search.lower() in t.email.lower())
    ]
    if not options:
        st.info("No teammates match the current filters.")
        return

    by_id = {t.teammate_id: t for t in options}
    teammate_id = st.selectbox(
        "Teammate", list(by_id.keys()),
        format_func=lambda x: f"{by_id[x].name} ({role_label(by_id[x].role)})",
        key="bd_teammate",
    )
    teammate = by_id[teammate_id]
    bd = engine.compute_breakdown(teammate_id, sidebar_state.period)
    total_pct = bd.total_allocation_percentage

    render_metric_row([
        {"label": "Base", "value": f"{bd.base_hours:g}h"},
        {"label": "Deducted", "value": f"{bd.deducted_hours:g}h"},
        {"label": "Available", "value": f"{bd.available_hours:g}h"},
        {"label": "Allocated", "value": f"{total_pct:g}%",
         "delta": status_label(classify_capacity_status(total_pct, engine.rule_config)), "delta_color": "off"},
    ])
    if teammate.secondary_roles:
        st.caption("Also covers: " + ", ".join(role_label(r) for r in teammate.secondary_roles))

    for w in bd.warnings:
        render_alert_card(w.message, "warning")

    col1, col2 = st.columns([3, 2])
    with col1:
        st.plotly_chart(capacity_breakdown_waterfall(bd), use_container_width=True)
    with col2:
        st.markdown("**How this was calculated:**")
        for step in bd.explanation_steps:
            st.markdown(f"- {step}")

    if bd.allocations:
        team_names = {tid: t.name for tid, t in records.teams.items()}
        st.plotly_chart(allocation_split_bar(bd, team_names), use_container_width=True)
        st.dataframe(pd.DataFrame([{
            "Team": team_names.get(a.team_id, a.team_id),
            "Allocation %": a.allocation_percentage,
            "Allocated (h)": a.allocated_hours,
            "Utilization %": round(a.utilization_percentage, 1),
        } for a in bd.allocations]), use_container_width=True)
    else:
        st.info(f"{teammate.name} has no active allocations.")

    # --- Deduction detail ---
    tab_leave, tab_hol, tab_adj = st.tabs(["Leave", "Holidays", "Adjustments"])
    with tab_leave:
        if bd.leaves:
            st.dataframe(pd.DataFrame([{
                "Type": lv.leave_type,
                "From": lv.start_date,
                "To": lv.end_date,
                "Hours in period": lv.hours,
                "Note": lv.description,
            } for lv in bd.leaves]), use_container_width=True)
        else:
            st.caption("No leave in this period.")
    with tab_hol:
        if bd.holidays:
            st.dataframe(pd.DataFrame([{
                "Holiday": h.holiday_name,
                "Date": h.holiday_date,
                "Hours": h.hours,
            } for h in bd.holidays]), use_container_width=True)
        else:
            st.caption("No working-day holidays in this period.")
    with tab_adj:
        if bd.adjustments:
            st.caption(f"Meetings: {bd.meeting_hours:g}h · Other adjustments: {bd.custom_adjustment_hours:g}h")
            st.dataframe(pd.DataFrame([{
                "Type": a.adjustment_type,
                "Hours in period": a.hours,
                "Description": a.description,
            } for a in bd.adjustments]), use_container_width=True)
        else:
            st.caption("No adjustments in this period.")

    history = find_audit_entries(teammate_id=teammate_id)
    if history:
        with st.expander(f"Allocation history ({len(history)})", expanded=False):
            st.dataframe(pd.DataFrame([{
                "Timestamp": e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "Action": e.action,
                "Team": records.team_name(e.team_id) if e.team_id else "",
                "Old %": e.old_value,
                "New %": e.new_value,
                "Rationale": e.rationale,
            } for e in reversed(history)]), use_container_width=True)
