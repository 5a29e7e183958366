"""Generate a synthetic dataset for the Team Capacity Allocation Engine."""

import pandas as pd
import random
import os
from datetime import date, timedelta
from typing import Dict, Optional


TEAMS = [
    ("T-PLAT", "Platform", "Core services and infrastructure"),
    ("T-PAY", "Payments", "Checkout and billing"),
    ("T-MOB", "Mobile", "iOS and Android apps"),
    ("T-DATA", "Data", "Pipelines and reporting"),
]

# (id, name, role, secondary roles, base capacity per sprint)
PEOPLE = [
    ("E01", "Priya Nair", "EM", "", 80),
    ("E02", "Marcus Lee", "DEVELOPER", "", 80),
    ("E03", "Sofia Alvarez", "DEVELOPER", "QA", 80),
    ("E04", "Tomasz Kowal", "QA", "", 80),
    ("E05", "Aiko Tanaka", "DESIGNER", "", 64),
    ("E06", "Daniel Okafor", "PM", "", 80),
    ("E07", "Hannah Weiss", "DEVELOPER", "", 80),
    ("E08", "Ravi Menon", "DEVELOPER", "", 72),
    ("E09", "Claire Dubois", "QA", "DEVELOPER", 80),
    ("E10", "Jonas Berg", "EM", "PM", 80),
    ("E11", "Lina Haddad", "DESIGNER", "", 80),
    ("E12", "Owen Price", "DEVELOPER", "", None),
]

# (teammate, team, percentage)
ALLOCATIONS = [
    ("E01", "T-PLAT", 60), ("E01", "T-PAY", 40),
    ("E02", "T-PLAT", 100),
    ("E03", "T-PLAT", 50), ("E03", "T-MOB", 30),
    ("E04", "T-PAY", 70),
    ("E05", "T-MOB", 50), ("E05", "T-PAY", 50),
    ("E06", "T-PAY", 60), ("E06", "T-DATA", 40),
    ("E07", "T-PAY", 100),
    ("E08", "T-MOB", 80),
    ("E09", "T-MOB", 40), ("E09", "T-DATA", 40),
    ("E10", "T-MOB", 50), ("E10", "T-DATA", 50),
    ("E12", "T-DATA", 100),
]

REQUIRED_ROLES = {
    "T-PLAT": ["EM", "DEVELOPER", "QA"],
    "T-PAY": ["EM", "DEVELOPER", "QA", "DESIGNER"],
    "T-MOB": ["DEVELOPER", "QA", "DESIGNER"],
    "T-DATA": ["DEVELOPER", "PM"],
}


def generate_teams_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Team ID": tid, "Team Name": name, "Description": desc} for tid, name, desc in TEAMS
    ])


def generate_teammates_df() -> pd.DataFrame:
    """Twelve teammates across five roles; one has no recorded base capacity."""
    rows = []
    for tid, name, role, secondary, base in PEOPLE:
        first, last = name.lower().split(" ")
        rows.append({
            "Teammate ID": tid,
            "Name": name,
            "Email": f"{first}.{last}@example.com",
            "Role": role,
            "Secondary Roles": secondary,
            "Base Capacity (h)": base,
            "Hours/Day": 8,
            "Active": True,
        })
    return pd.DataFrame(rows)


def generate_allocations_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Teammate ID": t, "Team ID": team, "Allocation (%)": pct} for t, team, pct in ALLOCATIONS
    ])


def generate_leaves_df(today: Optional[date] = None) -> pd.DataFrame:
    """Leave spread around `today` so the upcoming-leave window always has entries."""
    random.seed(42)
    today = today or date.today()
    rows = [
        # Sole EM on Platform goes on vacation inside the upcoming window
        ("E01", "VACATION", today + timedelta(days=5), today + timedelta(days=14), "APPROVED"),
        ("E04", "SICK", today - timedelta(days=2), today, "APPROVED"),
        ("E07", "PERSONAL", today + timedelta(days=3), today + timedelta(days=3), "APPROVED"),
        ("E08", "PLANNED_VACATION", today + timedelta(days=20), today + timedelta(days=27), "PENDING"),
        ("E11", "TRAINING", today + timedelta(days=1), today + timedelta(days=2), "APPROVED"),
        ("E02", "VACATION", today - timedelta(days=30), today - timedelta(days=26), "APPROVED"),
    ]
    for tid in random.sample([p[0] for p in PEOPLE], 3):
        offset = random.randint(-60, -15)
        rows.append((tid, "SICK", today + timedelta(days=offset), today + timedelta(days=offset + 1), "APPROVED"))

    return pd.DataFrame([
        {
            "Leave ID": f"L{i + 1:03d}",
            "Teammate ID": tid,
            "Leave Type": leave_type,
            "Start Date": start,
            "End Date": end,
            "Hours/Day": 8,
            "Status": status,
        }
        for i, (tid, leave_type, start, end, status) in enumerate(rows)
    ])


def generate_calendars_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Calendar ID": "CAL-US", "Calendar Name": "US Holidays", "Region": "US", "Active": True},
        {"Calendar ID": "CAL-EU", "Calendar Name": "EU Holidays", "Region": "EU", "Active": True},
    ])


def generate_holidays_df(today: Optional[date] = None) -> pd.DataFrame:
    today = today or date.today()
    year = today.year
    return pd.DataFrame([
        {"Calendar ID": "CAL-US", "Date": date(year, 1, 1), "Holiday Name": "New Year's Day", "Recurring": True},
        {"Calendar ID": "CAL-US", "Date": date(year, 7, 4), "Holiday Name": "Independence Day", "Recurring": True},
        {"Calendar ID": "CAL-US", "Date": date(year, 12, 25), "Holiday Name": "Christmas Day", "Recurring": True},
        {"Calendar ID": "CAL-EU", "Date": date(year, 1, 1), "Holiday Name": "New Year's Day", "Recurring": True},
        {"Calendar ID": "CAL-EU", "Date": date(year, 5, 1), "Holiday Name": "Labour Day", "Recurring": True},
        {"Calendar ID": "CAL-EU", "Date": date(year, 12, 26), "Holiday Name": "Boxing Day", "Recurring": True},
        {"Calendar ID": "CAL-US", "Date": today + timedelta(days=7), "Holiday Name": "Company Offsite", "Recurring": False},
    ])


def generate_holiday_assignments_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Team ID": "T-PLAT", "Calendar ID": "CAL-US"},
        {"Team ID": "T-PAY", "Calendar ID": "CAL-US"},
        {"Team ID": "T-MOB", "Calendar ID": "CAL-EU"},
        {"Team ID": "T-DATA", "Calendar ID": "CAL-US"},
        {"Team ID": "T-DATA", "Calendar ID": "CAL-EU"},
    ])


def generate_adjustments_df(today: Optional[date] = None) -> pd.DataFrame:
    today = today or date.today()
    return pd.DataFrame([
        {"Adjustment ID": "A001", "Teammate ID": "E01", "Adjustment Type": "INTERVIEW", "Hours": 6,
         "Description": "Hiring loop", "Start Date": None, "End Date": None},
        {"Adjustment ID": "A002", "Teammate ID": "E03", "Adjustment Type": "TRAINING", "Hours": 16,
         "Description": "Security course", "Start Date": today, "End Date": today + timedelta(days=13)},
        {"Adjustment ID": "A003", "Teammate ID": "E06", "Adjustment Type": "ADMIN", "Hours": 4,
         "Description": "Quarterly planning", "Start Date": None, "End Date": None},
    ])


def generate_role_requirements_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Team ID": team, "Role": role} for team, roles in REQUIRED_ROLES.items() for role in roles
    ])


def generate_sample_frames(today: Optional[date] = None) -> Dict[str, pd.DataFrame]:
    """Every sheet keyed by the loader's category names."""
    return {
        "teammates": generate_teammates_df(),
        "teams": generate_teams_df(),
        "allocations": generate_allocations_df(),
        "leaves": generate_leaves_df(today),
        "calendars": generate_calendars_df(),
        "holidays": generate_holidays_df(today),
        "holiday_assignments": generate_holiday_assignments_df(),
        "adjustments": generate_adjustments_df(today),
        "role_requirements": generate_role_requirements_df(),
    }


SHEET_TITLES = {
    "teammates": "Teammates",
    "teams": "Teams",
    "allocations": "Allocations",
    "leaves": "Leaves",
    "calendars": "Holiday Calendars",
    "holidays": "Holidays",
    "holiday_assignments": "Holiday Assignments",
    "adjustments": "Adjustments",
    "role_requirements": "Role Requirements",
}


def generate_sample_csvs(output_dir: str):
    """Write one CSV per sheet to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    for key, df in generate_sample_frames().items():
        df.to_csv(os.path.join(output_dir, f"{key}.csv"), index=False)


def generate_sample_excel(output_dir: str):
    """Write a single multi-tab Excel file with every sheet."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_data.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for key, df in generate_sample_frames().items():
            df.to_excel(writer, sheet_name=SHEET_TITLES[key], index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csvs(out)
    generate_sample_excel(out)
    print("Sample CSV and Excel files generated in sample_files/")
