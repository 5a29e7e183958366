"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd

SEVERITY_STYLES = {
    "CRITICAL": "background-color: #f5b7b1; color: #7b241c; font-weight: bold",
    "HIGH": "background-color: #ffcccc; color: #cc0000; font-weight: bold",
    "MEDIUM": "background-color: #fff3cd; color: #856404; font-weight: bold",
    "LOW": "background-color: #d4edda; color: #155724; font-weight: bold",
}

STATUS_STYLES = {
    "OVER_ALLOCATED": "background-color: #ffcccc; color: #cc0000; font-weight: bold",
    "AT_CAPACITY": "background-color: #fff3cd; color: #856404; font-weight: bold",
    "AVAILABLE": "background-color: #d4edda; color: #155724; font-weight: bold",
}


def _render_coloured(df: pd.DataFrame, column: str, styles: dict):
    if column in df.columns:
        styled = df.style.map(lambda val: styles.get(val, ""), subset=[column])
        st.dataframe(styled, use_container_width=True)
    else:
        st.dataframe(df, use_container_width=True)


def render_risk_table(df: pd.DataFrame, severity_column: str = "Severity"):
    """Render a table with color-coded severities."""
    _render_coloured(df, severity_column, SEVERITY_STYLES)


def render_status_table(df: pd.DataFrame, status_column: str = "Status"):
    """Render a table with color-coded capacity statuses."""
    _render_coloured(df, status_column, STATUS_STYLES)


def render_import_report(df: pd.DataFrame, status_column: str = "Status"):
    """Highlight rejected rows of an allocation import."""
    def color_status(val):
        if val == "Rejected":
            return "color: #cc0000; font-weight: bold"
        elif val == "Loaded":
            return "color: #155724"
        return ""

    if status_column in df.columns:
        styled = df.style.map(color_status, subset=[status_column])
        st.dataframe(styled, use_container_width=True)
    else:
        st.dataframe(df, use_container_width=True)
