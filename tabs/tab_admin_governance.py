"""Tab 4: Admin & Governance: data upload, rule config, ledger snapshot, audit trail."""

import streamlit as st
import pandas as pd
from datetime import date

from config.defaults import LEAVE_STATUSES, default_rule_config
from config.logger import get_logger
from components.tables import render_import_report
from data.loader import (
    SHEET_ALIASES, apply_allocations, build_record_store, load_file, load_multi_sheet_excel,
)
from data.sample_data import generate_sample_frames
from data.session_store import (
    add_audit_entry, get_audit_log, get_engine, get_import_report, get_ledger, get_records,
    get_rule_config, is_data_loaded, set_data_loaded, set_import_report, set_records, set_rule_config,
)
from data.validator import validate_workbook
from engine.errors import CapacityEngineError

logger = get_logger(__name__)

CSV_LABELS = {
    "teammates": "Teammates *",
    "teams": "Teams *",
    "allocations": "Allocations",
    "leaves": "Leaves",
    "calendars": "Holiday Calendars",
    "holidays": "Holidays",
    "holiday_assignments": "Holiday Assignments",
    "adjustments": "Adjustments",
    "role_requirements": "Role Requirements",
}


def _load_and_validate(frames):
    """Validate, build the record store and push allocations through the ledger."""
    result = validate_workbook(frames)
    if not result.is_valid:
        for e in result.errors:
            st.error(e)
        return False

    for w in result.warnings:
        st.warning(w)

    records = build_record_store(frames)
    set_records(records)
    set_data_loaded(True)

    report = []
    if frames.get("allocations") is not None:
        report = apply_allocations(get_engine(), frames["allocations"])
    set_import_report(report)

    add_audit_entry(
        "upload", "all_data", "", f"{len(records.teammates)} teammates, {len(records.teams)} teams",
        rationale="Data upload",
    )

    loaded = sum(1 for r in report if r["Status"] == "Loaded")
    st.success(
        f"Data loaded: {len(records.teammates)} teammates, {len(records.teams)} teams, "
        f"{len(records.leaves)} leave records, {loaded} allocations"
    )

    # --- Immediate health check ---
    st.divider()
    st.subheader("Data Health Check")
    ledger = get_ledger()
    active = [t for t in records.teammates.values() if t.is_active]
    unallocated = [t for t in active if ledger.total_percentage(t.teammate_id) == 0]
    full = [t for t in active if ledger.remaining_percentage(t.teammate_id) == 0]
    missing_base = [t for t in active if t.base_capacity_hours is None]

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Active Teammates", f"{len(active):,}")
    col2.metric("Fully Allocated", f"{len(full):,}")
    col3.metric("Unallocated", f"{len(unallocated):,}")
    col4.metric("Missing Base Capacity", f"{len(missing_base):,}")

    rejected = len(report) - loaded
    if rejected:
        st.error(f"{rejected} allocation row{'s were' if rejected != 1 else ' was'} rejected. See the import report below.")
    if missing_base:
        st.warning(
            f"No base capacity recorded for {', '.join(t.name for t in missing_base)}. "
            "They count as 0 hours until fixed at the source."
        )
    return True


def _render_upload():
    st.subheader("Data Upload")

    upload_mode = st.radio(
        "Upload mode",
        ["Single Excel workbook", "Separate CSV files"],
        horizontal=True,
        key="upload_mode",
    )

    if upload_mode == "Single Excel workbook":
        st.caption(
            "Upload one `.xlsx` file. **Teammates** and **Teams** sheets are required; "
            "Allocations, Leaves, Holiday Calendars, Holidays, Holiday Assignments, Adjustments "
            "and Role Requirements are optional (names are matched case-insensitively)."
        )
        single_file = st.file_uploader("Excel workbook", type=["xlsx"], key="upload_single")

        col_upload, col_sample = st.columns(2)
        with col_upload:
            if st.button("Upload & Validate", type="primary", key="btn_upload_single"):
                if single_file:
                    try:
                        _load_and_validate(load_multi_sheet_excel(single_file))
                    except (ValueError, KeyError, CapacityEngineError) as e:
                        logger.exception("Workbook upload failed")
                        st.error(f"Error loading file: {e}")
                else:
                    st.warning("Please upload an Excel file.")
        with col_sample:
            if st.button("Load Sample Data", key="btn_sample_single"):
                _load_and_validate(generate_sample_frames(date.today()))

    else:
        uploads = {}
        keys = list(SHEET_ALIASES.keys())
        for row_start in range(0, len(keys), 3):
            cols = st.columns(3)
            for col, key in zip(cols, keys[row_start:row_start + 3]):
                with col:
                    uploads[key] = st.file_uploader(CSV_LABELS[key], type=["csv", "xlsx"], key=f"upload_{key}")

        col_upload, col_sample = st.columns(2)
        with col_upload:
            if st.button("Upload & Validate", type="primary", key="btn_upload_multi"):
                if uploads["teammates"] and uploads["teams"]:
                    try:
                        frames = {k: load_file(f) for k, f in uploads.items() if f is not None}
                        _load_and_validate(frames)
                    except (ValueError, KeyError, CapacityEngineError) as e:
                        logger.exception("CSV upload failed")
                        st.error(f"Error loading files: {e}")
                else:
                    st.warning("Teammates and Teams files are required.")
        with col_sample:
            if st.button("Load Sample Data", key="btn_sample_multi"):
                _load_and_validate(generate_sample_frames(date.today()))

    report = get_import_report()
    if report:
        with st.expander("Allocation import report", expanded=False):
            render_import_report(pd.DataFrame(report))


def _render_rules():
    st.subheader("Rule Configuration")
    config = get_rule_config()
    defaults = default_rule_config()

    col1, col2 = st.columns(2)
    with col1:
        period_days = st.number_input(
            "Default period length (days)", min_value=1, max_value=90,
            value=int(config.get("period_days", defaults["period_days"])), key="cfg_period_days",
        )
        trend_periods = st.number_input(
            "Trend periods", min_value=1, max_value=24,
            value=int(config.get("trend_periods", defaults["trend_periods"])), key="cfg_trend_periods",
        )
        hours_per_day = st.number_input(
            "Default hours per day", min_value=1.0, max_value=24.0,
            value=float(config.get("default_hours_per_day", defaults["default_hours_per_day"])),
            step=0.5, key="cfg_hours_per_day",
        )
        counted = st.multiselect(
            "Leave statuses that reduce capacity", LEAVE_STATUSES,
            default=list(config.get("counted_leave_statuses", defaults["counted_leave_statuses"])),
            key="cfg_counted_statuses",
        )
        skip_weekends = st.checkbox(
            "Ignore holidays on weekends",
            value=config.get("skip_weekend_holidays", defaults["skip_weekend_holidays"]),
            key="cfg_skip_weekends",
        )
    with col2:
        at_capacity = st.slider(
            "At-capacity threshold %", 50.0, 100.0,
            float(config.get("at_capacity_threshold", defaults["at_capacity_threshold"])),
            step=5.0, key="cfg_at_capacity",
        )
        over_allocated = st.slider(
            "Over-allocated threshold %", 50.0, 150.0,
            float(config.get("over_allocated_threshold", defaults["over_allocated_threshold"])),
            step=5.0, key="cfg_over_allocated",
        )
        window = st.number_input(
            "Upcoming leave window (days)", min_value=1, max_value=90,
            value=int(config.get("upcoming_leave_window_days", defaults["upcoming_leave_window_days"])),
            key="cfg_leave_window",
        )
        leave_threshold = st.slider(
            "Upcoming leave threshold (share of available hours)", 0.05, 1.0,
            float(config.get("upcoming_leave_threshold", defaults["upcoming_leave_threshold"])),
            step=0.05, key="cfg_leave_threshold",
        )
        zero_util = st.number_input(
            "Utilization when no hours are available %", min_value=0.0, max_value=200.0,
            value=float(config.get("zero_available_utilization", defaults["zero_available_utilization"])),
            key="cfg_zero_util",
        )

    col_save, col_reset = st.columns(2)
    with col_save:
        if st.button("Save Rule Configuration", key="btn_save_rules"):
            if at_capacity > over_allocated:
                st.error("At-capacity threshold cannot exceed the over-allocated threshold.")
            else:
                new_config = {
                    "default_hours_per_day": hours_per_day,
                    "period_days": int(period_days),
                    "trend_periods": int(trend_periods),
                    "counted_leave_statuses": counted,
                    "skip_weekend_holidays": skip_weekends,
                    "zero_available_utilization": zero_util,
                    "over_allocated_threshold": over_allocated,
                    "at_capacity_threshold": at_capacity,
                    "upcoming_leave_window_days": int(window),
                    "upcoming_leave_threshold": leave_threshold,
                }
                set_rule_config(new_config)
                add_audit_entry("config_change", "rule_config", str(config), str(new_config))
                st.success("Rule configuration saved.")
    with col_reset:
        if st.button("Reset to Defaults", key="btn_reset_rules"):
            set_rule_config(defaults)
            add_audit_entry("config_change", "rule_config", str(config), str(defaults), rationale="Reset")
            st.rerun()


def _render_ledger():
    st.subheader("Allocation Ledger")
    ledger = get_ledger()
    records = get_records()
    snapshot = [a for a in ledger.snapshot() if a.is_active]
    if not snapshot:
        st.info("The ledger is empty.")
        return

    ledger_df = pd.DataFrame([{
        "Teammate ID": a.teammate_id,
        "Teammate": records.teammates[a.teammate_id].name if a.teammate_id in records.teammates else a.teammate_id,
        "Team ID": a.team_id,
        "Team": records.team_name(a.team_id),
        "Allocation (%)": a.allocation_percentage,
        "Created": a.created_at.strftime("%Y-%m-%d %H:%M"),
        "Updated": a.updated_at.strftime("%Y-%m-%d %H:%M"),
    } for a in snapshot])
    st.dataframe(ledger_df, use_container_width=True, height=300)

    export_df = ledger_df[["Teammate ID", "Team ID", "Allocation (%)"]]
    st.download_button(
        "Export Ledger (CSV)", export_df.to_csv(index=False), "allocations.csv", "text/csv",
        help="Re-upload as the Allocations sheet to restore this state.",
    )


def _render_audit():
    st.subheader("Audit Trail")

    audit_log = get_audit_log()
    if audit_log:
        audit_data = []
        for entry in reversed(audit_log):
            audit_data.append({
                "Timestamp": entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "Action": entry.action,
                "Teammate": entry.teammate_id or "-",
                "Team": entry.team_id or "-",
                "Field": entry.field_changed,
                "Old Value": entry.old_value[:50],
                "New Value": entry.new_value[:50],
                "Rationale": entry.rationale,
            })
        audit_df = pd.DataFrame(audit_data)
        st.dataframe(audit_df, use_container_width=True, height=300)

        csv = audit_df.to_csv(index=False)
        st.download_button("Export Audit Log (CSV)", csv, "audit_log.csv", "text/csv")
    else:
        st.info("No audit entries yet.")


def render(sidebar_state):
    """Render the Admin & Governance tab."""
    st.header("Admin & Governance")

    _render_upload()
    st.divider()
    _render_rules()
    st.divider()
    if is_data_loaded():
        _render_ledger()
        st.divider()
    _render_audit()
