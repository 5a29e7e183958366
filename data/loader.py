"""File upload parsing: CSV/XLSX sheets into typed records and ledger rows."""

import pandas as pd
from typing import Dict, List, Optional

from config.defaults import DEFAULT_HOURS_PER_DAY
from config.logger import get_logger
from data.record_store import RecordStore
from engine.errors import CapacityEngineError
from models.adjustment import CapacityAdjustment
from models.holiday import Holiday, HolidayAssignment, HolidayCalendar
from models.leave import LeavePeriod
from models.teammate import Team, Teammate

logger = get_logger(__name__)


# --- Cell helpers ---

def _opt(row, col: str, df: pd.DataFrame):
    """Cell value, or None when the column is absent or the cell is blank."""
    if col not in df.columns:
        return None
    val = row.get(col)
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return val


def _to_date(val):
    return pd.to_datetime(val).date()


def _to_bool(val, default: bool = True) -> bool:
    if val is None:
        return default
    if isinstance(val, str):
        return val.strip().lower() in ("true", "yes", "y", "1", "active")
    return bool(val)


def _to_number(val):
    """Plain float for numeric cells (numpy ints are not ints); other values pass through."""
    try:
        return float(val)
    except (TypeError, ValueError):
        return val


def _split_list(val) -> List[str]:
    if val is None:
        return []
    return [p.strip().upper() for p in str(val).split(",") if p.strip()]


# --- Sheet parsers ---

def parse_teammates(df: pd.DataFrame) -> List[Teammate]:
    """Convert a teammates DataFrame into Teammate objects."""
    teammates = []
    for _, row in df.iterrows():
        base = _opt(row, "Base Capacity (h)", df)
        hpd = _opt(row, "Hours/Day", df)
        email = _opt(row, "Email", df)
        teammates.append(Teammate(
            teammate_id=str(row["Teammate ID"]).strip(),
            name=str(row["Name"]).strip(),
            role=str(row["Role"]).strip().upper(),
            base_capacity_hours=float(base) if base is not None else None,
            email=str(email).strip() if email is not None else "",
            hours_per_day=float(hpd) if hpd is not None else None,
            secondary_roles=_split_list(_opt(row, "Secondary Roles", df)),
            is_active=_to_bool(_opt(row, "Active", df)),
        ))
    return teammates


def parse_teams(df: pd.DataFrame) -> List[Team]:
    teams = []
    for _, row in df.iterrows():
        desc = _opt(row, "Description", df)
        teams.append(Team(
            team_id=str(row["Team ID"]).strip(),
            name=str(row["Team Name"]).strip(),
            description=str(desc).strip() if desc is not None else "",
        ))
    return teams


def parse_leaves(df: pd.DataFrame) -> List[LeavePeriod]:
    """Convert a leave DataFrame into LeavePeriod objects.

    Missing Hours/Day falls back to the default working day; missing Status
    is treated as APPROVED.
    """
    leaves = []
    for i, row in df.iterrows():
        hpd = _opt(row, "Hours/Day", df)
        status = _opt(row, "Status", df)
        leave_id = _opt(row, "Leave ID", df)
        desc = _opt(row, "Description", df)
        leaves.append(LeavePeriod(
            teammate_id=str(row["Teammate ID"]).strip(),
            leave_type=str(row["Leave Type"]).strip().upper(),
            start_date=_to_date(row["Start Date"]),
            end_date=_to_date(row["End Date"]),
            hours_per_day=float(hpd) if hpd is not None else DEFAULT_HOURS_PER_DAY,
            status=str(status).strip().upper() if status is not None else "APPROVED",
            leave_id=str(leave_id).strip() if leave_id is not None else f"L{i + 1}",
            description=str(desc).strip() if desc is not None else "",
        ))
    return leaves


def parse_calendars(calendars_df: pd.DataFrame, holidays_df: Optional[pd.DataFrame] = None) -> List[HolidayCalendar]:
    """Build calendars and attach their holidays.

    Holidays referencing an unknown calendar are dropped with a warning.
    """
    calendars = {}
    for _, row in calendars_df.iterrows():
        region = _opt(row, "Region", calendars_df)
        cal = HolidayCalendar(
            calendar_id=str(row["Calendar ID"]).strip(),
            name=str(row["Calendar Name"]).strip(),
            region=str(region).strip() if region is not None else "",
            is_active=_to_bool(_opt(row, "Active", calendars_df)),
        )
        calendars[cal.calendar_id] = cal

    if holidays_df is not None:
        for _, row in holidays_df.iterrows():
            cal_id = str(row["Calendar ID"]).strip()
            cal = calendars.get(cal_id)
            if cal is None:
                logger.warning("Holiday %s references unknown calendar %s", row["Holiday Name"], cal_id)
                continue
            cal.holidays.append(Holiday(
                holiday_date=_to_date(row["Date"]),
                name=str(row["Holiday Name"]).strip(),
                is_recurring=_to_bool(_opt(row, "Recurring", holidays_df), default=False),
            ))
    return list(calendars.values())


def parse_holiday_assignments(df: pd.DataFrame) -> List[HolidayAssignment]:
    return [
        HolidayAssignment(team_id=str(row["Team ID"]).strip(), calendar_id=str(row["Calendar ID"]).strip())
        for _, row in df.iterrows()
    ]


def parse_adjustments(df: pd.DataFrame) -> List[CapacityAdjustment]:
    adjustments = []
    for i, row in df.iterrows():
        start = _opt(row, "Start Date", df)
        end = _opt(row, "End Date", df)
        desc = _opt(row, "Description", df)
        adj_id = _opt(row, "Adjustment ID", df)
        adjustments.append(CapacityAdjustment(
            teammate_id=str(row["Teammate ID"]).strip(),
            adjustment_type=str(row["Adjustment Type"]).strip().upper(),
            hours=float(row["Hours"]),
            description=str(desc).strip() if desc is not None else "",
            start_date=_to_date(start) if start is not None else None,
            end_date=_to_date(end) if end is not None else None,
            adjustment_id=str(adj_id).strip() if adj_id is not None else f"A{i + 1}",
        ))
    return adjustments


def parse_role_requirements(df: pd.DataFrame) -> Dict[str, set]:
    """Team ID -> set of required roles."""
    requirements: Dict[str, set] = {}
    for _, row in df.iterrows():
        team_id = str(row["Team ID"]).strip()
        requirements.setdefault(team_id, set()).add(str(row["Role"]).strip().upper())
    return requirements


def build_record_store(frames: Dict[str, pd.DataFrame]) -> RecordStore:
    """Assemble a RecordStore from category -> DataFrame.

    Only "teammates" and "teams" are required; the other categories are
    optional and default to empty.
    """
    calendars = []
    if frames.get("calendars") is not None:
        calendars = parse_calendars(frames["calendars"], frames.get("holidays"))

    def _maybe(key, parser):
        df = frames.get(key)
        return parser(df) if df is not None else []

    store = RecordStore.from_lists(
        teammates=parse_teammates(frames["teammates"]),
        teams=parse_teams(frames["teams"]),
        leaves=_maybe("leaves", parse_leaves),
        calendars=calendars,
        holiday_assignments=_maybe("holiday_assignments", parse_holiday_assignments),
        adjustments=_maybe("adjustments", parse_adjustments),
        role_requirements=(
            parse_role_requirements(frames["role_requirements"])
            if frames.get("role_requirements") is not None else None
        ),
    )
    logger.info(
        "Loaded %d teammates, %d teams, %d leaves, %d calendars, %d adjustments",
        len(store.teammates), len(store.teams), len(store.leaves),
        len(store.calendars), len(store.adjustments),
    )
    return store


def apply_allocations(engine, df: pd.DataFrame, rationale: str = "Data import") -> List[dict]:
    """Feed allocation rows through engine.assign, one at a time.

    Each row either commits or is rejected on its own, exactly as an
    interactive assignment would be. Returns one report dict per row.
    """
    report = []
    for i, row in df.iterrows():
        teammate_id = str(row["Teammate ID"]).strip()
        team_id = str(row["Team ID"]).strip()
        pct = _to_number(row["Allocation (%)"])
        try:
            remaining = engine.assign(teammate_id, team_id, pct, rationale=rationale)
        except CapacityEngineError as exc:
            report.append({
                "Row": i + 2,
                "Teammate ID": teammate_id,
                "Team ID": team_id,
                "Allocation (%)": pct,
                "Status": "Rejected",
                "Message": exc.message,
            })
        else:
            report.append({
                "Row": i + 2,
                "Teammate ID": teammate_id,
                "Team ID": team_id,
                "Allocation (%)": pct,
                "Status": "Loaded",
                "Message": f"{remaining:g}% remaining",
            })
    rejected = sum(1 for r in report if r["Status"] == "Rejected")
    if rejected:
        logger.warning("Allocation import: %d of %d rows rejected", rejected, len(report))
    return report


def load_file(uploaded_file) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame."""
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


# Expected sheet names for a multi-tab workbook (case-insensitive matching)
SHEET_ALIASES = {
    "teammates": ["teammates", "teammate", "people", "roster", "members"],
    "teams": ["teams", "team", "team master"],
    "allocations": ["allocations", "allocation", "assignments"],
    "leaves": ["leaves", "leave", "leave periods", "time off", "pto"],
    "calendars": ["holiday calendars", "calendars", "calendar"],
    "holidays": ["holidays", "holiday"],
    "holiday_assignments": ["holiday assignments", "calendar assignments", "team calendars"],
    "adjustments": ["adjustments", "capacity adjustments", "adjustment"],
    "role_requirements": ["role requirements", "required roles", "roles needed"],
}

REQUIRED_SHEETS = ["teammates", "teams"]


def _match_sheet(sheet_names: List[str], category: str) -> Optional[str]:
    """Find a sheet name matching the given category, or None."""
    aliases = SHEET_ALIASES[category]
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    return None


def load_multi_sheet_excel(uploaded_file) -> Dict[str, pd.DataFrame]:
    """Load a workbook into category -> DataFrame.

    Sheet names are matched case-insensitively against SHEET_ALIASES.
    Teammates and Teams sheets are required; missing optional sheets are
    simply absent from the result.
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    sheet_names = xl.sheet_names

    frames = {}
    for category in SHEET_ALIASES:
        sheet = _match_sheet(sheet_names, category)
        if sheet is None:
            if category in REQUIRED_SHEETS:
                raise ValueError(
                    f"Could not find a sheet for '{category}'. "
                    f"Expected one of: {SHEET_ALIASES[category]}. "
                    f"Found sheets: {sheet_names}"
                )
            continue
        frames[category] = pd.read_excel(xl, sheet_name=sheet)
    return frames
