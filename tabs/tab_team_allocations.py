"""Tab 2: Team Allocations: who is on the team, and adding, changing or removing them."""

import streamlit as st
import pandas as pd

from config.defaults import AVAILABLE_TEAMMATE_SORT_KEYS, ROLES
from components.charts import team_allocation_bar
from components.metrics_cards import role_label, status_label
from components.tables import render_status_table
from data.session_store import get_engine, get_records, is_data_loaded, pop_flash, set_flash
from engine.errors import CapacityEngineError, CapacityExceededError

SORT_LABELS = {
    "remaining_allocation_percentage": "Remaining %",
    "available_hours": "Available hours",
    "name": "Name",
}


def _leave_summary(leaves) -> str:
    if not leaves:
        return ""
    return "; ".join(f"{lv.leave_type.title()} {lv.start_date:%b %d}-{lv.end_date:%b %d}" for lv in leaves)


def _show_engine_error(exc: CapacityEngineError):
    """Inline error with the structured payload underneath."""
    if isinstance(exc, CapacityExceededError):
        st.error(exc.message, icon="⛔")
    else:
        st.error(exc.message)
    with st.expander("Error details", expanded=False):
        st.json(exc.to_dict())


def _render_current_allocations(engine, sidebar_state):
    team_id = sidebar_state.team_id
    rows = engine.team_allocations(team_id, sidebar_state.period, as_of=sidebar_state.as_of)
    if not rows:
        st.info("No one is allocated to this team yet.")
        return rows

    table = pd.DataFrame([{
        "Teammate": r.teammate_name,
        "Role": role_label(r.teammate_role),
        "Allocation %": r.allocation_percentage,
        "Base (h)": r.base_capacity,
        "Available (h)": r.available_hours,
        "Allocated (h)": r.allocated_hours,
        "Utilization %": round(r.current_utilization, 1),
        "Upcoming Leave": _leave_summary(r.upcoming_leaves),
        "Updated": r.updated_at.strftime("%Y-%m-%d %H:%M") if r.updated_at else "",
    } for r in rows])
    st.dataframe(table, use_container_width=True)
    st.plotly_chart(team_allocation_bar(rows), use_container_width=True)

    csv = table.to_csv(index=False)
    st.download_button("Export Allocations (CSV)", csv, f"allocations_{team_id}.csv", "text/csv")
    return rows


def _render_edit_controls(engine, sidebar_state, rows):
    team_id = sidebar_state.team_id
    if not rows:
        return

    st.subheader("Change or Remove")
    by_id = {r.teammate_id: r for r in rows}
    col1, col2 = st.columns([2, 1])
    with col1:
        teammate_id = st.selectbox(
            "Teammate",
            list(by_id.keys()),
            format_func=lambda x: by_id[x].teammate_name,
            key="edit_alloc_teammate",
        )
    current = by_id[teammate_id]
    with col2:
        new_pct = st.number_input(
            "New allocation %", min_value=0.0, max_value=100.0,
            value=float(current.allocation_percentage), step=5.0, key="edit_alloc_pct",
        )
    rationale = st.text_input("Rationale", key="edit_alloc_rationale")

    col_u, col_r = st.columns(2)
    with col_u:
        if st.button("Update Allocation", type="primary", key="btn_update_alloc"):
            try:
                remaining = engine.update(
                    teammate_id, team_id, new_pct, period=sidebar_state.period, rationale=rationale,
                )
            except CapacityEngineError as exc:
                _show_engine_error(exc)
            else:
                set_flash(f"{current.teammate_name} now at {new_pct:g}%. {remaining:g}% remaining.")
                st.rerun()
    with col_r:
        if st.button("Remove from Team", type="secondary", key="btn_remove_alloc"):
            engine.remove(teammate_id, team_id, rationale=rationale)
            set_flash(f"{current.teammate_name} removed.")
            st.rerun()


def _render_available(engine, sidebar_state):
    team_id = sidebar_state.team_id
    st.subheader("Add Teammates")

    col_f1, col_f2, col_f3, col_f4 = st.columns(4)
    with col_f1:
        search = st.text_input("Search name or email", "", key="avail_search")
    with col_f2:
        role = st.selectbox("Role", ["All"] + ROLES, format_func=lambda r: r if r == "All" else role_label(r),
                            key="avail_role")
    with col_f3:
        min_hours = st.number_input("Min available hours", min_value=0.0, value=0.0, step=4.0, key="avail_min_hours")
    with col_f4:
        max_alloc = st.slider("Max current allocation %", 0, 100, 100, step=5, key="avail_max_alloc")

    col_s1, col_s2 = st.columns(2)
    with col_s1:
        sort_by = st.selectbox("Sort by", AVAILABLE_TEAMMATE_SORT_KEYS, format_func=SORT_LABELS.get,
                               key="avail_sort")
    with col_s2:
        descending = st.toggle("Descending", value=sort_by != "name", key="avail_desc")

    candidates = engine.available_teammates(
        team_id,
        sidebar_state.period,
        search=search or None,
        role=None if role == "All" else role,
        min_available_hours=min_hours or None,
        max_allocation_percentage=max_alloc,
        sort_by=sort_by,
        descending=descending,
        as_of=sidebar_state.as_of,
    )
    if not candidates:
        st.info("No teammates with free capacity match the current filters.")
        return

    table = pd.DataFrame([{
        "Teammate": c.name,
        "Role": role_label(c.role),
        "Available (h)": c.available_hours,
        "Allocated %": c.total_allocation_percentage,
        "Remaining %": c.remaining_allocation_percentage,
        "Status": c.capacity_status,
        "Current Teams": ", ".join(f"{a.team_name} ({a.allocation_percentage:g}%)" for a in c.current_allocations),
        "Upcoming Leave": _leave_summary(c.upcoming_leaves),
    } for c in candidates])
    render_status_table(table)

    by_id = {c.teammate_id: c for c in candidates}
    mode = st.radio("Add mode", ["Single", "Bulk"], horizontal=True, key="add_mode")

    if mode == "Single":
        col1, col2 = st.columns([2, 1])
        with col1:
            teammate_id = st.selectbox(
                "Teammate", list(by_id.keys()),
                format_func=lambda x: f"{by_id[x].name} ({status_label(by_id[x].capacity_status)})",
                key="add_alloc_teammate",
            )
        with col2:
            pct = st.number_input(
                "Allocation %", min_value=0.0, max_value=100.0,
                value=float(by_id[teammate_id].suggested_allocation), step=5.0, key="add_alloc_pct",
            )
        rationale = st.text_input("Rationale", key="add_alloc_rationale")
        if st.button("Assign to Team", type="primary", key="btn_assign"):
            try:
                remaining = engine.assign(
                    teammate_id, team_id, pct, period=sidebar_state.period, rationale=rationale,
                )
            except CapacityEngineError as exc:
                _show_engine_error(exc)
            else:
                set_flash(f"{by_id[teammate_id].name} assigned at {pct:g}%. {remaining:g}% remaining.")
                st.rerun()
    else:
        picked = st.multiselect(
            "Teammates", list(by_id.keys()), format_func=lambda x: by_id[x].name, key="bulk_pick",
        )
        if picked:
            bulk_df = pd.DataFrame([{
                "Teammate ID": tid,
                "Teammate": by_id[tid].name,
                "Allocation %": by_id[tid].suggested_allocation,
            } for tid in picked])
            edited = st.data_editor(
                bulk_df, disabled=["Teammate ID", "Teammate"], num_rows="fixed",
                use_container_width=True, key="bulk_editor",
            )
            rationale = st.text_input("Rationale", key="bulk_rationale")
            if st.button("Assign All", type="primary", key="btn_bulk_assign"):
                requests = [(row["Teammate ID"], float(row["Allocation %"])) for _, row in edited.iterrows()]
                result = engine.bulk_assign(team_id, requests, rationale=rationale, period=sidebar_state.period)
                if result.all_succeeded:
                    st.success(f"All {len(result.items)} teammates assigned.")
                else:
                    st.warning(f"{len(result.succeeded)} assigned, {len(result.failed)} rejected.")
                st.dataframe(pd.DataFrame([{
                    "Teammate": by_id[item.teammate_id].name,
                    "Requested %": item.requested_percentage,
                    "Result": "Assigned" if item.succeeded else "Rejected",
                    "Remaining %": item.remaining_percentage,
                    "Error": item.error_message or "",
                } for item in result.items]), use_container_width=True)


def render(sidebar_state):
    """Render the Team Allocations tab."""
    st.header("Team Allocations")

    if not is_data_loaded():
        st.info("No data loaded. Please upload data in the Admin & Governance tab.")
        return
    if not sidebar_state.team_id:
        st.info("Select a team in the sidebar.")
        return

    engine = get_engine()
    st.caption(f"Team: **{get_records().team_name(sidebar_state.team_id)}**")

    flash = pop_flash()
    if flash:
        level, message = flash
        getattr(st, level)(message)

    rows = _render_current_allocations(engine, sidebar_state)
    st.divider()
    _render_edit_controls(engine, sidebar_state, rows)
    st.divider()
    _render_available(engine, sidebar_state)
