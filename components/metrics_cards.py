"""Reusable KPI metric card widgets."""

import streamlit as st

from config.defaults import ROLE_LABELS
from models.metrics import RiskFinding

SEVERITY_LEVELS = {"CRITICAL": "error", "HIGH": "error", "MEDIUM": "warning", "LOW": "info"}

STATUS_LABELS = {
    "AVAILABLE": "🟢 Available",
    "AT_CAPACITY": "🟡 At capacity",
    "OVER_ALLOCATED": "🔴 Over-allocated",
}


def render_metric_row(metrics: list[dict]):
    """Render a row of metric cards.

    Each metric dict should have: label, value, and optionally delta, delta_color.
    """
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            st.metric(
                label=m["label"],
                value=m["value"],
                delta=m.get("delta"),
                delta_color=m.get("delta_color", "normal"),
            )


def render_alert_card(message: str, level: str = "warning"):
    """Render an alert card with appropriate styling."""
    if level == "error":
        st.error(message, icon="🔴")
    elif level == "warning":
        st.warning(message, icon="🟡")
    else:
        st.info(message, icon="🔵")


def render_risk_card(finding: RiskFinding, names: dict = None):
    """One alert card per risk finding, coloured by severity."""
    names = names or {}
    who = ", ".join(names.get(t, t) for t in finding.impacted_teammates)
    message = f"**{finding.severity} · {finding.type.replace('_', ' ').title()}**: {finding.description}"
    if who:
        message += f" _(Impacted: {who})_"
    render_alert_card(message, SEVERITY_LEVELS.get(finding.severity, "info"))


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, role)
