"""Schema validation for uploaded data files."""

from dataclasses import dataclass, field
from typing import Dict, List
import pandas as pd

from config.defaults import ADJUSTMENT_TYPES, LEAVE_STATUSES, LEAVE_TYPES, MAX_ALLOCATION_PCT, ROLES


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


TEAMMATE_REQUIRED_COLUMNS = ["Teammate ID", "Name", "Role", "Base Capacity (h)"]
TEAM_REQUIRED_COLUMNS = ["Team ID", "Team Name"]
ALLOCATION_REQUIRED_COLUMNS = ["Teammate ID", "Team ID", "Allocation (%)"]
LEAVE_REQUIRED_COLUMNS = ["Teammate ID", "Leave Type", "Start Date", "End Date"]
CALENDAR_REQUIRED_COLUMNS = ["Calendar ID", "Calendar Name"]
HOLIDAY_REQUIRED_COLUMNS = ["Calendar ID", "Date", "Holiday Name"]
HOLIDAY_ASSIGNMENT_REQUIRED_COLUMNS = ["Team ID", "Calendar ID"]
ADJUSTMENT_REQUIRED_COLUMNS = ["Teammate ID", "Adjustment Type", "Hours"]
ROLE_REQUIREMENT_REQUIRED_COLUMNS = ["Team ID", "Role"]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def _upper(series: pd.Series) -> pd.Series:
    return series.astype(str).str.strip().str.upper()


def _check_vocabulary(df: pd.DataFrame, col: str, allowed: List[str], label: str, result: ValidationResult):
    if col not in df.columns:
        return
    values = _upper(df[col].dropna())
    bad = sorted(set(values) - set(allowed))
    if bad:
        result.is_valid = False
        result.errors.append(f"{label}: Unknown {col} values: {', '.join(bad)}. Allowed: {', '.join(allowed)}")


def _check_dates(df: pd.DataFrame, cols: List[str], label: str, result: ValidationResult):
    for col in cols:
        if col not in df.columns:
            continue
        parsed = pd.to_datetime(df[col], errors="coerce")
        bad = parsed.isna() & df[col].notna()
        if bad.any():
            result.is_valid = False
            result.errors.append(f"{label}: {col} is not a valid date in rows {(df.index[bad] + 2).tolist()}")


def validate_teammates(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, TEAMMATE_REQUIRED_COLUMNS, "Teammates")
    if not result.is_valid:
        return result

    dupes = df.duplicated(subset=["Teammate ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Teammates: Duplicate teammate IDs: {df[dupes]['Teammate ID'].unique().tolist()}")

    _check_vocabulary(df, "Role", ROLES, "Teammates", result)

    base = pd.to_numeric(df["Base Capacity (h)"], errors="coerce")
    if (base < 0).any():
        result.is_valid = False
        result.errors.append("Teammates: Base Capacity (h) cannot be negative.")
    missing_base = base.isna()
    if missing_base.any():
        # Loaded with zero capacity and flagged in every breakdown
        result.warnings.append(
            f"Teammates: No base capacity for {df[missing_base]['Teammate ID'].tolist()}. "
            "They will be treated as 0 hours."
        )

    if "Hours/Day" in df.columns:
        hpd = pd.to_numeric(df["Hours/Day"], errors="coerce")
        if ((hpd <= 0) | (hpd > 24)).any():
            result.is_valid = False
            result.errors.append("Teammates: Hours/Day must be between 0 and 24.")

    return result


def validate_teams(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, TEAM_REQUIRED_COLUMNS, "Teams")
    if not result.is_valid:
        return result

    dupes = df.duplicated(subset=["Team ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"Teams: Duplicate team IDs: {df[dupes]['Team ID'].unique().tolist()}")
    return result


def validate_allocations(df: pd.DataFrame) -> ValidationResult:
    """Row-level checks only; the per-teammate 100% ceiling is enforced at load time."""
    result = _check_required_columns(df, ALLOCATION_REQUIRED_COLUMNS, "Allocations")
    if not result.is_valid:
        return result

    pct = pd.to_numeric(df["Allocation (%)"], errors="coerce")
    bad = pct.isna() | (pct <= 0) | (pct > MAX_ALLOCATION_PCT)
    if bad.any():
        result.warnings.append(
            f"Allocations: Rows {(df.index[bad] + 2).tolist()} are not in (0, {MAX_ALLOCATION_PCT:g}] "
            "and will be rejected."
        )

    dupes = df.duplicated(subset=["Teammate ID", "Team ID"], keep="first")
    if dupes.any():
        result.warnings.append(
            f"Allocations: Rows {(df.index[dupes] + 2).tolist()} repeat an earlier teammate/team pair "
            "and will be rejected."
        )

    totals = pct.where(~bad, 0).groupby(df["Teammate ID"]).sum()
    over = totals[totals > 100]
    if not over.empty:
        result.warnings.append(
            f"Allocations: Totals above 100% for {over.index.tolist()}. Rows past the limit will be rejected."
        )
    return result


def validate_leaves(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, LEAVE_REQUIRED_COLUMNS, "Leaves")
    if not result.is_valid:
        return result

    _check_vocabulary(df, "Leave Type", LEAVE_TYPES, "Leaves", result)
    _check_vocabulary(df, "Status", LEAVE_STATUSES, "Leaves", result)
    _check_dates(df, ["Start Date", "End Date"], "Leaves", result)
    if not result.is_valid:
        return result

    start = pd.to_datetime(df["Start Date"])
    end = pd.to_datetime(df["End Date"])
    backwards = end < start
    if backwards.any():
        result.is_valid = False
        result.errors.append(f"Leaves: End Date before Start Date in rows {(df.index[backwards] + 2).tolist()}")

    if "Hours/Day" in df.columns:
        hpd = pd.to_numeric(df["Hours/Day"], errors="coerce")
        if (hpd < 0).any():
            result.is_valid = False
            result.errors.append("Leaves: Hours/Day cannot be negative.")
    return result


def validate_calendars(calendars_df: pd.DataFrame, holidays_df: pd.DataFrame = None) -> ValidationResult:
    result = _check_required_columns(calendars_df, CALENDAR_REQUIRED_COLUMNS, "Holiday Calendars")
    if not result.is_valid:
        return result

    dupes = calendars_df.duplicated(subset=["Calendar ID"], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(
            f"Holiday Calendars: Duplicate calendar IDs: {calendars_df[dupes]['Calendar ID'].unique().tolist()}"
        )

    if holidays_df is not None:
        result.merge(_check_required_columns(holidays_df, HOLIDAY_REQUIRED_COLUMNS, "Holidays"))
        if not result.is_valid:
            return result
        _check_dates(holidays_df, ["Date"], "Holidays", result)
        known = set(calendars_df["Calendar ID"].astype(str).str.strip())
        unknown = set(holidays_df["Calendar ID"].astype(str).str.strip()) - known
        if unknown:
            result.warnings.append(
                f"Holidays for unknown calendars: {', '.join(sorted(unknown))}. These will be ignored."
            )
    return result


def validate_adjustments(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, ADJUSTMENT_REQUIRED_COLUMNS, "Adjustments")
    if not result.is_valid:
        return result

    _check_vocabulary(df, "Adjustment Type", ADJUSTMENT_TYPES, "Adjustments", result)
    _check_dates(df, ["Start Date", "End Date"], "Adjustments", result)

    hours = pd.to_numeric(df["Hours"], errors="coerce")
    if hours.isna().any():
        result.is_valid = False
        result.errors.append("Adjustments: Hours must be numeric.")
    elif (hours <= 0).any():
        result.warnings.append("Adjustments: Non-positive Hours will be ignored and flagged.")
    return result


def validate_role_requirements(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, ROLE_REQUIREMENT_REQUIRED_COLUMNS, "Role Requirements")
    if not result.is_valid:
        return result
    _check_vocabulary(df, "Role", ROLES, "Role Requirements", result)
    return result


def validate_cross_file(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    """Check that teammate and team IDs match across sheets."""
    result = ValidationResult()
    teammate_ids = set(frames["teammates"]["Teammate ID"].astype(str).str.strip())
    team_ids = set(frames["teams"]["Team ID"].astype(str).str.strip())

    for key, label, outcome in [("allocations", "Allocations", "rejected"), ("leaves", "Leaves", "ignored"),
                                ("adjustments", "Adjustments", "ignored")]:
        df = frames.get(key)
        if df is None or "Teammate ID" not in df.columns:
            continue
        unknown = set(df["Teammate ID"].astype(str).str.strip()) - teammate_ids
        if unknown:
            result.warnings.append(
                f"{label} for unknown teammates: {', '.join(sorted(unknown))}. These will be {outcome}."
            )

    for key, label in [("allocations", "Allocations"), ("holiday_assignments", "Holiday Assignments"),
                       ("role_requirements", "Role Requirements")]:
        df = frames.get(key)
        if df is None or "Team ID" not in df.columns:
            continue
        unknown = set(df["Team ID"].astype(str).str.strip()) - team_ids
        if unknown:
            result.is_valid = False
            result.errors.append(f"{label}: Unknown team IDs: {', '.join(sorted(unknown))}")
    return result


def validate_workbook(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    """Validate every sheet present, then the cross-sheet references."""
    result = ValidationResult()
    for key in ("teammates", "teams"):
        if frames.get(key) is None:
            result.is_valid = False
            result.errors.append(f"Missing required sheet: {key}")
    if not result.is_valid:
        return result

    result.merge(validate_teammates(frames["teammates"]))
    result.merge(validate_teams(frames["teams"]))
    if frames.get("allocations") is not None:
        result.merge(validate_allocations(frames["allocations"]))
    if frames.get("leaves") is not None:
        result.merge(validate_leaves(frames["leaves"]))
    if frames.get("calendars") is not None:
        result.merge(validate_calendars(frames["calendars"], frames.get("holidays")))
    elif frames.get("holidays") is not None:
        result.warnings.append("Holidays sheet present without Holiday Calendars. It will be ignored.")
    if frames.get("holiday_assignments") is not None:
        result.merge(_check_required_columns(
            frames["holiday_assignments"], HOLIDAY_ASSIGNMENT_REQUIRED_COLUMNS, "Holiday Assignments",
        ))
    if frames.get("adjustments") is not None:
        result.merge(validate_adjustments(frames["adjustments"]))
    if frames.get("role_requirements") is not None:
        result.merge(validate_role_requirements(frames["role_requirements"]))

    if result.is_valid:
        result.merge(validate_cross_file(frames))
    return result
