"""Global sidebar controls for team, date and period selection."""

import streamlit as st
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from config.defaults import PERIOD_LENGTH_OPTIONS, DEFAULT_PERIOD_DAYS
from data.session_store import get_records, get_rule_config, is_data_loaded
from models.period import Period


@dataclass
class SidebarState:
    team_id: Optional[str]
    as_of: date
    period: Period


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    records = get_records()
    config = get_rule_config()

    with st.sidebar:
        st.title("Team Capacity")
        st.divider()

        # Team selector
        team_names = {tid: t.name for tid, t in sorted(records.teams.items(), key=lambda kv: kv[1].name)}
        team_ids = list(team_names.keys())
        team_id = None
        if team_ids:
            team_id = st.selectbox(
                "Team",
                options=team_ids,
                format_func=lambda x: team_names.get(x, x),
                key="sidebar_team",
            )
        else:
            st.caption("No teams loaded")

        as_of = st.date_input("As of", value=date.today(), key="sidebar_as_of")

        default_days = config.get("period_days", DEFAULT_PERIOD_DAYS)
        options = sorted(set(PERIOD_LENGTH_OPTIONS) | {default_days})
        period_days = st.selectbox(
            "Period length (days)",
            options=options,
            index=options.index(default_days),
            key="sidebar_period_days",
        )
        period = Period(as_of, as_of + timedelta(days=period_days - 1), "Current")
        st.caption(f"Period: {period.start:%b %d} - {period.end:%b %d, %Y}")

        st.divider()

        # Data status indicator
        if is_data_loaded():
            st.success("Data loaded")
            st.caption(f"{len(records.teammates)} teammates · {len(records.teams)} teams")
        else:
            st.warning("No data loaded. Go to the Admin tab")

    st.session_state["sidebar_state"] = {"team_id": team_id, "as_of": as_of, "period_days": period_days}
    return SidebarState(team_id=team_id, as_of=as_of, period=period)
