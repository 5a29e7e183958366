"""Plotly chart builders for the capacity dashboard."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import List

from models.capacity import CapacityBreakdown
from models.metrics import CapacityTrendPoint, TeamAllocationView


def utilization_trend_chart(
    trends: List[CapacityTrendPoint],
    title: str = "Capacity Trend",
) -> go.Figure:
    """Planned vs actual hours as bars, utilization as a line on a second axis."""
    df = pd.DataFrame([{
        "Period": t.period,
        "Planned": t.planned_capacity,
        "Actual": t.actual_capacity,
        "Utilization %": t.utilization_percentage,
    } for t in trends])

    fig = go.Figure()
    fig.add_trace(go.Bar(name="Planned (h)", x=df["Period"], y=df["Planned"], marker_color="#4A90D9"))
    fig.add_trace(go.Bar(name="Actual (h)", x=df["Period"], y=df["Actual"], marker_color="#E8734A"))
    fig.add_trace(go.Scatter(
        name="Utilization %", x=df["Period"], y=df["Utilization %"],
        mode="lines+markers", yaxis="y2", line=dict(color="#2E7D32", width=3),
    ))
    fig.update_layout(
        title=title,
        barmode="group",
        yaxis=dict(title="Hours"),
        yaxis2=dict(title="Utilization %", overlaying="y", side="right", range=[0, 120]),
        legend=dict(orientation="h", y=-0.2),
        height=400,
    )
    return fig


def capacity_breakdown_waterfall(bd: CapacityBreakdown) -> go.Figure:
    """Base capacity stepping down through each deduction to available hours."""
    fig = go.Figure(go.Waterfall(
        orientation="v",
        measure=["absolute", "relative", "relative", "relative", "total"],
        x=["Base", "Leave", "Holidays", "Adjustments", "Available"],
        y=[bd.base_hours, -bd.leave_hours, -bd.holiday_hours, -bd.adjustment_hours, bd.available_hours],
        text=[f"{bd.base_hours:g}h", f"-{bd.leave_hours:g}h", f"-{bd.holiday_hours:g}h",
              f"-{bd.adjustment_hours:g}h", f"{bd.available_hours:g}h"],
        decreasing=dict(marker=dict(color="#E8734A")),
        totals=dict(marker=dict(color="#4A90D9")),
        increasing=dict(marker=dict(color="#4A90D9")),
    ))
    fig.update_layout(
        title=f"{bd.teammate_name}: {bd.period_start:%b %d} - {bd.period_end:%b %d}",
        yaxis_title="Hours",
        height=380,
        showlegend=False,
    )
    return fig


def utilization_donut(allocated: float, available: float, title: str = "Team Utilization") -> go.Figure:
    """Donut chart of allocated vs free hours."""
    free = max(0.0, available - allocated)
    fig = go.Figure(data=[go.Pie(
        labels=["Allocated", "Free"],
        values=[allocated, free],
        hole=0.6,
        marker_colors=["#E8734A", "#4A90D9"],
        textinfo="percent+label",
    )])
    fig.update_layout(
        title=title,
        height=350,
        showlegend=True,
        annotations=[dict(text=f"{allocated:.0f}/{available:.0f}h", x=0.5, y=0.5, font_size=16, showarrow=False)],
    )
    return fig


def team_allocation_bar(rows: List[TeamAllocationView], title: str = "Allocated vs Available Hours") -> go.Figure:
    """Per-teammate bars for hours available and hours allocated to this team."""
    df = pd.DataFrame([{
        "Teammate": r.teammate_name,
        "available_hours": r.available_hours,
        "allocated_hours": r.allocated_hours,
    } for r in rows])
    fig = px.bar(
        df, x="Teammate", y=["available_hours", "allocated_hours"],
        barmode="group",
        labels={"value": "Hours", "variable": ""},
        title=title,
        color_discrete_map={"available_hours": "#4A90D9", "allocated_hours": "#E8734A"},
    )
    fig.update_layout(legend_title_text="", height=400)
    return fig


def allocation_split_bar(breakdown: CapacityBreakdown, team_names: dict) -> go.Figure:
    """Horizontal stacked bar of one teammate's allocation percentage per team."""
    fig = go.Figure()
    for share in breakdown.allocations:
        fig.add_trace(go.Bar(
            name=team_names.get(share.team_id, share.team_id),
            x=[share.allocation_percentage],
            y=[breakdown.teammate_name],
            orientation="h",
            text=f"{share.allocation_percentage:g}%",
            textposition="inside",
        ))
    remaining = max(0.0, 100 - breakdown.total_allocation_percentage)
    if remaining > 0:
        fig.add_trace(go.Bar(
            name="Unallocated", x=[remaining], y=[breakdown.teammate_name], orientation="h",
            marker_color="#DDDDDD", text=f"{remaining:g}%", textposition="inside",
        ))
    fig.update_layout(barmode="stack", xaxis=dict(range=[0, 100], title="%"), height=180)
    return fig
