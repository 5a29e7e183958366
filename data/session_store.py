"""Typed wrapper around st.session_state for application data."""

import streamlit as st
from typing import List, Optional
from datetime import datetime

from config.defaults import default_rule_config
from data.record_store import RecordStore
from engine.allocation_ledger import AllocationLedger
from engine.capacity_engine import CapacityEngine
from models.audit import AuditEntry


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "records": RecordStore(),
        "ledger": AllocationLedger(),
        "audit_log": [],
        "data_loaded": False,
        "import_report": [],
        "rule_config": default_rule_config(),
        "sidebar_state": {
            "team_id": None,
            "as_of": None,
            "period_days": None,
        },
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default
    if "engine" not in st.session_state:
        _rebuild_engine()


def _rebuild_engine():
    # The engine shares the session's ledger and audit list, so they survive a rebuild
    st.session_state["engine"] = CapacityEngine(
        st.session_state["records"],
        ledger=st.session_state["ledger"],
        rule_config=st.session_state["rule_config"],
        audit_log=st.session_state["audit_log"],
    )


# --- Getters ---

def get_engine() -> CapacityEngine:
    return st.session_state["engine"]


def get_records() -> RecordStore:
    return st.session_state.get("records", RecordStore())


def get_ledger() -> AllocationLedger:
    return st.session_state["ledger"]


def get_audit_log() -> List[AuditEntry]:
    return st.session_state.get("audit_log", [])


def get_rule_config() -> dict:
    return st.session_state.get("rule_config", {})


def get_import_report() -> List[dict]:
    return st.session_state.get("import_report", [])


def is_data_loaded() -> bool:
    return st.session_state.get("data_loaded", False)


# --- Setters ---

def set_records(records: RecordStore):
    """Replace upstream records and start from an empty ledger."""
    st.session_state["records"] = records
    st.session_state["ledger"] = AllocationLedger()
    _rebuild_engine()


def set_data_loaded(loaded: bool):
    st.session_state["data_loaded"] = loaded


def set_import_report(report: List[dict]):
    st.session_state["import_report"] = report


def set_rule_config(config: dict):
    st.session_state["rule_config"] = config
    _rebuild_engine()


# --- Flash messages (survive one st.rerun) ---

def set_flash(message: str, level: str = "success"):
    st.session_state["flash"] = (level, message)


def pop_flash() -> Optional[tuple]:
    """Return and clear the pending (level, message), if any."""
    return st.session_state.pop("flash", None)


# --- Audit ---

def add_audit_entry(
    action: str,
    field_changed: str,
    old_value: str,
    new_value: str,
    teammate_id: str = "",
    team_id: str = "",
    rationale: str = "",
):
    """Record a change made outside the engine (uploads, rule edits)."""
    entry = AuditEntry(
        timestamp=datetime.now(),
        action=action,
        teammate_id=teammate_id,
        team_id=team_id,
        field_changed=field_changed,
        old_value=old_value,
        new_value=new_value,
        rationale=rationale,
    )
    st.session_state["audit_log"].append(entry)


def find_audit_entries(teammate_id: Optional[str] = None, team_id: Optional[str] = None) -> List[AuditEntry]:
    return [
        e for e in get_audit_log()
        if (teammate_id is None or e.teammate_id == teammate_id)
        and (team_id is None or e.team_id == team_id)
    ]
