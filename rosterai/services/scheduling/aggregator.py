"""
Data aggregator for scheduling runs.

Collects the bounded input set for one run through a DataStore and normalises
every row into the strict record types of .types, in one place. Employees and
shifts are required; every other collection degrades to empty on failure.
"""

import logging
from datetime import date, datetime, time
from typing import Any, Callable, Optional, TypeVar

from rosterai.db.models.shift_preferences import PreferenceType

from .errors import InputFetchError
from .store import DataStore, Row
from .types import (
    AggregatedData,
    AssignmentRecord,
    ConstraintRecord,
    EmployeeRecord,
    FatigueRuleRecord,
    ForecastRecord,
    PreferenceRecord,
    RunRequest,
    ShiftRecord,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class IntakeError(ValueError):
    """A fetched row could not be normalised."""


def as_id(value: Any) -> Optional[int]:
    """Coerce an id (int or numeric string) to int, None if impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def as_time(value: Any) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _require(value: Optional[T], field_name: str) -> T:
    if value is None:
        raise IntakeError(f"missing or invalid {field_name}")
    return value


# ========== Row intake ==========

def intake_employee(row: Row) -> EmployeeRecord:
    emp_id = _require(as_id(row.get("id")), "id")
    name = row.get("full_name") or row.get("display_name") or f"Employee {emp_id}"
    external_id = row.get("employee_number") or row.get("external_id")
    return EmployeeRecord(
        id=emp_id,
        display_name=str(name),
        external_id=str(external_id) if external_id is not None else None,
        hire_date=as_date(row.get("hire_date")),
    )


def intake_shift(row: Row) -> ShiftRecord:
    shift_id = _require(as_id(row.get("id")), "id")
    name = row.get("name") or f"Shift {shift_id}"
    return ShiftRecord(
        id=shift_id,
        name=str(name),
        code=str(row.get("code") or name),
        start_time=_require(as_time(row.get("start_time")), "start_time"),
        end_time=_require(as_time(row.get("end_time")), "end_time"),
        minimum_hours=_as_float(row.get("minimum_hours")),
        is_overnight=bool(row.get("is_overnight") or False),
    )


def intake_assignment(row: Row) -> AssignmentRecord:
    return AssignmentRecord(
        employee_id=_require(as_id(row.get("employee_id")), "employee_id"),
        shift_id=_require(as_id(row.get("shift_id")), "shift_id"),
        effective_date=_require(as_date(row.get("effective_date")), "effective_date"),
        end_date=as_date(row.get("end_date")),
    )


def intake_preference(row: Row) -> PreferenceRecord:
    raw_type = row.get("preference_type")
    try:
        pref_type = PreferenceType(str(getattr(raw_type, "value", raw_type)).upper())
    except ValueError:
        raise IntakeError(f"unknown preference_type {raw_type!r}")

    day = row.get("day_of_week")
    if day is not None and (not isinstance(day, int) or not 0 <= day <= 6):
        raise IntakeError(f"invalid day_of_week {day!r}")

    return PreferenceRecord(
        employee_id=_require(as_id(row.get("employee_id")), "employee_id"),
        preference_type=pref_type,
        shift_id=as_id(row.get("shift_id")),
        day_of_week=day,
        notes=row.get("notes"),
    )


def intake_constraint(row: Row) -> ConstraintRecord:
    rule = row.get("rule_config") or {}
    if not isinstance(rule, dict):
        raise IntakeError("rule_config must be an object")
    return ConstraintRecord(
        name=str(row.get("name") or row.get("constraint_type") or "constraint"),
        constraint_type=str(_require(row.get("constraint_type"), "constraint_type")),
        is_hard_constraint=bool(row.get("is_hard_constraint") or False),
        rule_config=dict(rule),
    )


def intake_forecast(row: Row) -> ForecastRecord:
    headcount = row.get("required_headcount")
    if headcount is None:
        headcount = 1
    try:
        headcount = int(headcount)
    except (TypeError, ValueError):
        raise IntakeError(f"invalid required_headcount {headcount!r}")
    if headcount < 0:
        raise IntakeError("required_headcount must not be negative")

    return ForecastRecord(
        forecast_date=_require(as_date(row.get("forecast_date")), "forecast_date"),
        required_headcount=headcount,
        shift_id=as_id(row.get("shift_id")),
        department_id=as_id(row.get("department_id")),
        expected_volume=_as_float(row.get("expected_volume")),
        notes=row.get("notes"),
    )


def intake_fatigue_rule(row: Row) -> FatigueRuleRecord:
    consecutive = row.get("max_consecutive_days")
    return FatigueRuleRecord(
        name=str(row.get("name") or "fatigue rule"),
        max_consecutive_days=int(consecutive) if consecutive is not None else None,
        max_weekly_hours=_as_float(row.get("max_weekly_hours")),
        max_shift_hours=_as_float(row.get("max_shift_hours")),
        min_rest_hours=_as_float(row.get("min_rest_hours")),
    )


def _intake_rows(
    rows: list[Row],
    intake: Callable[[Row], T],
    label: str,
    warnings: list[str],
) -> list[T]:
    records = []
    skipped = 0
    for row in rows:
        try:
            records.append(intake(row))
        except (IntakeError, TypeError, ValueError) as e:
            skipped += 1
            logger.warning(f"Skipping malformed {label} row {row.get('id')}: {e}")
    if skipped:
        warnings.append(f"Skipped {skipped} malformed {label} record(s)")
    return records


def _keep_known(records: list[T], is_known: Callable[[T], bool], label: str, warnings: list[str]) -> list[T]:
    kept = [r for r in records if is_known(r)]
    dropped = len(records) - len(kept)
    if dropped:
        logger.warning(f"Dropping {dropped} {label} record(s) that reference unknown employees or shifts")
        warnings.append(f"Dropped {dropped} {label}(s) referencing employees/shifts outside this run")
    return kept


# ========== Aggregation ==========

def _fetch_required(fetch: Callable[[], list[Row]], label: str) -> list[Row]:
    try:
        return fetch()
    except Exception as e:
        logger.error(f"Failed to load {label}: {e}")
        raise InputFetchError(f"Failed to load {label}: {e}") from e


def _fetch_optional(fetch: Callable[[], list[Row]], label: str, warnings: list[str]) -> list[Row]:
    try:
        return fetch()
    except Exception as e:
        logger.warning(f"Failed to load {label}, continuing without them: {e}")
        warnings.append(f"{label.capitalize()} could not be loaded; run used no {label}")
        return []


def aggregate_inputs(store: DataStore, request: RunRequest) -> AggregatedData:
    """
    Load and normalise everything one run needs.

    Raises:
        InputFetchError: employees or shifts could not be loaded, or either is empty
    """
    warnings: list[str] = []
    company_id = request.company_id

    employee_rows = _fetch_required(
        lambda: store.fetch_employees(company_id, request.department_id), "employees"
    )
    shift_rows = _fetch_required(lambda: store.fetch_shifts(company_id), "shifts")

    employees = _intake_rows(employee_rows, intake_employee, "employee", warnings)
    shifts = _intake_rows(shift_rows, intake_shift, "shift", warnings)

    if not employees:
        raise InputFetchError(f"No active employees found for company {company_id}")
    if not shifts:
        raise InputFetchError(f"No active shifts found for company {company_id}")

    employee_ids = {e.id for e in employees}
    shift_ids = {s.id for s in shifts}

    assignment_rows = _fetch_optional(
        lambda: store.fetch_assignments(company_id, request.start_date), "existing assignments", warnings
    )
    preference_rows = _fetch_optional(
        lambda: store.fetch_preferences(company_id, sorted(employee_ids)), "preferences", warnings
    )
    constraint_rows = _fetch_optional(lambda: store.fetch_constraints(company_id), "constraints", warnings)
    forecast_rows = _fetch_optional(
        lambda: store.fetch_forecasts(company_id, request.start_date, request.end_date, request.department_id),
        "demand forecasts",
        warnings,
    )
    fatigue_rows = _fetch_optional(lambda: store.fetch_fatigue_rules(company_id), "fatigue rules", warnings)

    # keep only references into this pass's employee/shift sets
    assignments = _keep_known(
        _intake_rows(assignment_rows, intake_assignment, "assignment", warnings),
        lambda a: a.employee_id in employee_ids and a.shift_id in shift_ids,
        "assignment",
        warnings,
    )
    preferences = _keep_known(
        _intake_rows(preference_rows, intake_preference, "preference", warnings),
        lambda p: p.employee_id in employee_ids and (p.shift_id is None or p.shift_id in shift_ids),
        "preference",
        warnings,
    )
    forecasts = _keep_known(
        _intake_rows(forecast_rows, intake_forecast, "demand forecast", warnings),
        lambda f: f.shift_id is None or f.shift_id in shift_ids,
        "demand forecast",
        warnings,
    )

    logger.info(
        f"Aggregated run {request.run_id}: {len(employees)} employees, {len(shifts)} shifts, "
        f"{len(assignments)} assignments, {len(preferences)} preferences, "
        f"{len(forecasts)} forecasts, {len(warnings)} warnings"
    )

    return AggregatedData(
        employees=employees,
        shifts=shifts,
        existing_assignments=assignments,
        preferences=preferences,
        constraints=_intake_rows(constraint_rows, intake_constraint, "constraint", warnings),
        demand_forecasts=forecasts,
        fatigue_rules=_intake_rows(fatigue_rows, intake_fatigue_rule, "fatigue rule", warnings),
        start_date=request.start_date,
        end_date=request.end_date,
        warnings=warnings,
    )
