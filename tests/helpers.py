"""Builders and fakes shared by the test suite."""

import copy
from datetime import date, time, timedelta
from typing import Any, Optional

from rosterai.db.models.schedule_runs import OptimizationGoal, ScheduleRunStatus
from rosterai.services.scheduling.optimizer import BaseOptimizer
from rosterai.services.scheduling.store import DataStore
from rosterai.services.scheduling.types import (
    AssignmentRecord,
    ConstraintRecord,
    EmployeeRecord,
    FatigueRuleRecord,
    ForecastRecord,
    OptimizerResult,
    OptimizerSummary,
    PreferenceRecord,
    RawRecommendation,
    Recommendation,
    RunRequest,
    SchedulingContext,
    ShiftRecord,
)


# ==================== Rows ====================

def employee_row(emp_id: int, name: str, **extra) -> dict:
    row = {"id": emp_id, "company_id": 1, "full_name": name, "employee_number": f"E{emp_id:03d}",
           "hire_date": date(2020, 1, 1), "employment_status": "ACTIVE"}
    row.update(extra)
    return row


def shift_row(shift_id: int, name: str, start: time, end: time, **extra) -> dict:
    row = {"id": shift_id, "company_id": 1, "name": name, "code": name[:3].upper(),
           "start_time": start, "end_time": end, "minimum_hours": None, "is_overnight": False}
    row.update(extra)
    return row


def make_run(run_id: int, start: date, days: int = 7, status: ScheduleRunStatus = ScheduleRunStatus.PENDING) -> dict:
    return {
        "id": run_id,
        "company_id": 1,
        "department_id": None,
        "start_date": start,
        "end_date": start + timedelta(days=days - 1),
        "optimization_goal": OptimizationGoal.BALANCED,
        "status": status,
        "started_at": None,
        "completed_at": None,
        "error_message": None,
        "error_code": None,
        "ai_model_used": None,
        "total_recommendations": 0,
        "warnings": [],
    }


def run_request(run: dict, **overrides) -> RunRequest:
    fields = dict(
        run_id=run["id"],
        company_id=run["company_id"],
        start_date=run["start_date"],
        end_date=run["end_date"],
        optimization_goal=run["optimization_goal"],
        department_id=run["department_id"],
    )
    fields.update(overrides)
    return RunRequest(**fields)


# ==================== Records / context ====================

MORNING = ShiftRecord(id=10, name="Morning", code="MOR", start_time=time(6, 0), end_time=time(14, 0))
EVENING = ShiftRecord(id=20, name="Evening", code="EVE", start_time=time(14, 0), end_time=time(22, 0))
NIGHT = ShiftRecord(id=30, name="Night", code="NIG", start_time=time(22, 0), end_time=time(6, 0), is_overnight=True)


def make_context(
    start: date,
    days: int = 7,
    employees: Optional[list[EmployeeRecord]] = None,
    shifts: Optional[list[ShiftRecord]] = None,
    goal: OptimizationGoal = OptimizationGoal.BALANCED,
    assignments: tuple[AssignmentRecord, ...] = (),
    preferences: tuple[PreferenceRecord, ...] = (),
    constraints: tuple[ConstraintRecord, ...] = (),
    forecasts: tuple[ForecastRecord, ...] = (),
    fatigue_rules: tuple[FatigueRuleRecord, ...] = (),
) -> SchedulingContext:
    if employees is None:
        employees = [
            EmployeeRecord(id=1, display_name="Alice Smith"),
            EmployeeRecord(id=2, display_name="Bob Jones"),
            EmployeeRecord(id=3, display_name="Cara Lee"),
        ]
    return SchedulingContext(
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        optimization_goal=goal,
        employees=tuple(employees),
        shifts=tuple(shifts if shifts is not None else [MORNING, EVENING]),
        existing_assignments=tuple(assignments),
        preferences=tuple(preferences),
        constraints=tuple(constraints),
        demand_forecasts=tuple(forecasts),
        fatigue_rules=tuple(fatigue_rules),
    )


def raw_rec(employee_id: Any, shift_id: Any, day: Any, **extra) -> RawRecommendation:
    data = {"employee_id": employee_id, "shift_id": shift_id,
            "date": day.isoformat() if isinstance(day, date) else day}
    data.update(extra)
    return RawRecommendation.from_dict(data)


# ==================== Fakes ====================

class FakeStore(DataStore):
    """
    In-memory DataStore. `fail_on` names methods that raise ConnectionError;
    `fail_status_writes` names run statuses whose update_run raises.
    """

    def __init__(self, employees=None, shifts=None, assignments=None, preferences=None,
                 constraints=None, forecasts=None, fatigue_rules=None):
        self.rows = {
            "fetch_employees": list(employees or []),
            "fetch_shifts": list(shifts or []),
            "fetch_assignments": list(assignments or []),
            "fetch_preferences": list(preferences or []),
            "fetch_constraints": list(constraints or []),
            "fetch_forecasts": list(forecasts or []),
            "fetch_fatigue_rules": list(fatigue_rules or []),
        }
        self.runs: dict[int, dict] = {}
        self.recommendations: dict[int, list[Recommendation]] = {}
        self.status_history: dict[int, list[ScheduleRunStatus]] = {}
        self.fail_on: set[str] = set()
        self.fail_status_writes: set[ScheduleRunStatus] = set()
        self.calls: list[str] = []

    def add_run(self, run: dict) -> None:
        self.runs[run["id"]] = dict(run)
        self.status_history[run["id"]] = []

    def _read(self, name: str) -> list[dict]:
        self.calls.append(name)
        if name in self.fail_on:
            raise ConnectionError(f"connection refused during {name}")
        return copy.deepcopy(self.rows[name])

    def fetch_employees(self, company_id, department_id=None):
        return self._read("fetch_employees")

    def fetch_shifts(self, company_id):
        return self._read("fetch_shifts")

    def fetch_assignments(self, company_id, window_start):
        return self._read("fetch_assignments")

    def fetch_preferences(self, company_id, employee_ids):
        return self._read("fetch_preferences")

    def fetch_constraints(self, company_id):
        return self._read("fetch_constraints")

    def fetch_forecasts(self, company_id, start_date, end_date, department_id=None):
        return self._read("fetch_forecasts")

    def fetch_fatigue_rules(self, company_id):
        return self._read("fetch_fatigue_rules")

    def get_run(self, run_id):
        run = self.runs.get(run_id)
        return dict(run) if run else None

    def update_run(self, run_id, **fields):
        self.calls.append("update_run")
        if "update_run" in self.fail_on or fields.get("status") in self.fail_status_writes:
            raise ConnectionError("connection lost while updating run")
        self.runs[run_id].update(fields)
        if "status" in fields:
            self.status_history[run_id].append(fields["status"])

    def insert_recommendations(self, run_id, recommendations):
        self.calls.append("insert_recommendations")
        if "insert_recommendations" in self.fail_on:
            raise ConnectionError("connection lost while inserting")
        self.recommendations.setdefault(run_id, []).extend(recommendations)
        return len(recommendations)


class StubOptimizer(BaseOptimizer):
    """Returns a canned result (or raises a canned error) and records the contexts it saw."""

    def __init__(self, recommendations=None, summary: Optional[OptimizerSummary] = None,
                 error: Optional[Exception] = None):
        self.recommendations = recommendations or []
        self.summary = summary
        self.error = error
        self.contexts: list[SchedulingContext] = []

    def optimize(self, context):
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return OptimizerResult(
            recommendations=list(self.recommendations),
            summary=copy.deepcopy(self.summary) if self.summary else OptimizerSummary(),
        )

    def provider_name(self):
        return "stub/test"


# ==================== Database seeding ====================

def seed_company(db, start: date, status: ScheduleRunStatus = ScheduleRunStatus.PENDING):
    """Three employees (one on leave), two active shifts and one retired shift, one run. Returns the run."""
    from rosterai.db.models import Employees, EmploymentStatus, ScheduleRuns, Shifts

    db.add_all([
        Employees(id=1, company_id=1, full_name="Alice Smith", employment_status=EmploymentStatus.ACTIVE),
        Employees(id=2, company_id=1, full_name="Bob Jones", employment_status=EmploymentStatus.ACTIVE, department_id=5),
        Employees(id=3, company_id=1, full_name="Cara Lee", employment_status=EmploymentStatus.ON_LEAVE),
        Employees(id=4, company_id=2, full_name="Dan Other", employment_status=EmploymentStatus.ACTIVE),
        Shifts(id=10, company_id=1, name="Morning", code="MOR", start_time=time(6, 0), end_time=time(14, 0)),
        Shifts(id=20, company_id=1, name="Evening", code="EVE", start_time=time(14, 0), end_time=time(22, 0)),
        Shifts(id=30, company_id=1, name="Split", code="SPL", start_time=time(10, 0), end_time=time(18, 0), is_active=False),
    ])
    run = ScheduleRuns(company_id=1, start_date=start, end_date=start + timedelta(days=6), status=status)
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def db_recommendation(employee_id: int, shift_id: int, day: date, reasoning: str = "Covers demand") -> Recommendation:
    shift = {10: MORNING, 20: EVENING}[shift_id]
    return Recommendation(
        employee_id=employee_id,
        shift_id=shift_id,
        recommended_date=day,
        start_time=shift.start_time,
        end_time=shift.end_time,
        confidence_score=0.8,
        reasoning=reasoning,
    )
