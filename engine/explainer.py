"""Generates human-readable explanations for capacity breakdowns."""

from datetime import date
from typing import List


def explain_breakdown(
    teammate_name: str,
    period_start: date,
    period_end: date,
    base_hours: float,
    base_defaulted: bool,
    leave_hours: float,
    leave_count: int,
    holiday_hours: float,
    holiday_count: int,
    adjustment_hours: float,
    adjustment_count: int,
    raw_available: float,
    available_hours: float,
) -> List[str]:
    """Produce step-by-step explanation for a teammate's available hours."""
    steps = []

    if base_defaulted:
        steps.append(
            f"Step 1 - Base capacity: not recorded for {teammate_name} => treated as 0h"
        )
    else:
        steps.append(
            f"Step 1 - Base capacity: {base_hours:.1f}h for "
            f"{period_start.isoformat()} to {period_end.isoformat()}"
        )

    steps.append(
        f"Step 2 - Leave: {leave_count} leave period{'s' if leave_count != 1 else ''} "
        f"overlapping the window => -{leave_hours:.1f}h"
    )

    steps.append(
        f"Step 3 - Holidays: {holiday_count} working-day holiday{'s' if holiday_count != 1 else ''} "
        f"from team calendars => -{holiday_hours:.1f}h"
    )

    steps.append(
        f"Step 4 - Adjustments: {adjustment_count} adjustment{'s' if adjustment_count != 1 else ''} "
        f"=> -{adjustment_hours:.1f}h"
    )

    steps.append(
        f"Step 5 - Available: {base_hours:.1f}h - {leave_hours:.1f}h - {holiday_hours:.1f}h "
        f"- {adjustment_hours:.1f}h = {raw_available:.1f}h"
    )

    if raw_available < 0:
        steps.append(
            f"Note: Deductions exceed base capacity => clamped to {available_hours:.1f}h available"
        )

    return steps
