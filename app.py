"""Team Capacity Allocation Engine: Streamlit entry point."""

import streamlit as st
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from components.sidebar import render_sidebar
from data.session_store import initialize_session_state
from tabs import (
    tab_capacity_dashboard,
    tab_team_allocations,
    tab_teammate_breakdown,
    tab_admin_governance,
)


def main():
    st.set_page_config(
        page_title="Team Capacity",
        page_icon="📅",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    initialize_session_state()
    sidebar_state = render_sidebar()

    tab1, tab2, tab3, tab4 = st.tabs([
        "📊 Capacity Dashboard",
        "👥 Team Allocations",
        "🧮 Teammate Capacity",
        "⚙️ Admin & Governance",
    ])

    with tab1:
        tab_capacity_dashboard.render(sidebar_state)
    with tab2:
        tab_team_allocations.render(sidebar_state)
    with tab3:
        tab_teammate_breakdown.render(sidebar_state)
    with tab4:
        tab_admin_governance.render(sidebar_state)


if __name__ == "__main__":
    main()
