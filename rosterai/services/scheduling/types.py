"""
Internal data types for the scheduling run pipeline.
Decoupled from SQLAlchemy rows so the context can cross a process or network
boundary unchanged.
"""

from dataclasses import dataclass, field
from datetime import date, time, datetime, timedelta
from typing import Any, Optional

from rosterai.db.models.schedule_runs import OptimizationGoal
from rosterai.db.models.shift_preferences import PreferenceType


def format_time(t: Optional[time]) -> Optional[str]:
    return t.strftime("%H:%M") if t else None


@dataclass(frozen=True)
class EmployeeRecord:
    id: int
    display_name: str
    external_id: Optional[str] = None
    hire_date: Optional[date] = None

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "name": self.display_name,
            "external_id": self.external_id,
            "hire_date": self.hire_date.isoformat() if self.hire_date else None,
        }


@dataclass(frozen=True)
class ShiftRecord:
    id: int
    name: str
    code: str
    start_time: time
    end_time: time
    minimum_hours: Optional[float] = None
    is_overnight: bool = False

    @property
    def crosses_midnight(self) -> bool:
        return self.is_overnight or self.end_time <= self.start_time

    @property
    def duration_hours(self) -> float:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        if self.crosses_midnight:
            end += 24 * 60
        return (end - start) / 60

    def interval_on(self, day: date) -> tuple[datetime, datetime]:
        """Absolute start/end of this shift when worked on `day`."""
        start = datetime.combine(day, self.start_time)
        end = datetime.combine(day, self.end_time)
        if self.crosses_midnight:
            end += timedelta(days=1)
        return start, end

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "minimum_hours": self.minimum_hours,
            "is_overnight": self.is_overnight,
        }


@dataclass(frozen=True)
class AssignmentRecord:
    """An existing (standing) assignment of an employee to a shift template."""
    employee_id: int
    shift_id: int
    effective_date: date
    end_date: Optional[date] = None  # None means open ended

    def active_on(self, day: date) -> bool:
        if day < self.effective_date:
            return False
        return self.end_date is None or day <= self.end_date

    def to_payload(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "shift_id": self.shift_id,
            "effective_date": self.effective_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass(frozen=True)
class PreferenceRecord:
    employee_id: int
    preference_type: PreferenceType
    shift_id: Optional[int] = None  # None = any shift
    day_of_week: Optional[int] = None  # 0-6, None = every day
    notes: Optional[str] = None

    def applies_to(self, shift_id: int, day: date) -> bool:
        if self.shift_id is not None and self.shift_id != shift_id:
            return False
        return self.day_of_week is None or self.day_of_week == day.weekday()

    def to_payload(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "shift_id": self.shift_id,
            "day_of_week": self.day_of_week,
            "preference": self.preference_type.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ConstraintRecord:
    name: str
    constraint_type: str
    is_hard_constraint: bool
    rule_config: dict = field(default_factory=dict)

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "type": self.constraint_type,
            "is_hard_constraint": self.is_hard_constraint,
            "rule": dict(self.rule_config),
        }


@dataclass(frozen=True)
class ForecastRecord:
    forecast_date: date
    required_headcount: int
    shift_id: Optional[int] = None  # None = applies to every shift that day
    department_id: Optional[int] = None
    expected_volume: Optional[float] = None
    notes: Optional[str] = None

    def to_payload(self) -> dict:
        return {
            "date": self.forecast_date.isoformat(),
            "required_headcount": self.required_headcount,
            "shift_id": self.shift_id,
            "department_id": self.department_id,
            "expected_volume": self.expected_volume,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class FatigueRuleRecord:
    name: str
    max_consecutive_days: Optional[int] = None
    max_weekly_hours: Optional[float] = None
    max_shift_hours: Optional[float] = None
    min_rest_hours: Optional[float] = None

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "max_consecutive_days": self.max_consecutive_days,
            "max_weekly_hours": self.max_weekly_hours,
            "max_shift_hours": self.max_shift_hours,
            "min_rest_hours": self.min_rest_hours,
        }


@dataclass(frozen=True)
class RunRequest:
    """Everything one invocation needs, captured once at the top of the workflow."""
    run_id: int
    company_id: int
    start_date: date
    end_date: date
    optimization_goal: OptimizationGoal = OptimizationGoal.BALANCED
    department_id: Optional[int] = None


@dataclass
class AggregatedData:
    """Output of the aggregation pass, already normalised into strict records."""
    employees: list[EmployeeRecord]
    shifts: list[ShiftRecord]
    existing_assignments: list[AssignmentRecord] = field(default_factory=list)
    preferences: list[PreferenceRecord] = field(default_factory=list)
    constraints: list[ConstraintRecord] = field(default_factory=list)
    demand_forecasts: list[ForecastRecord] = field(default_factory=list)
    fatigue_rules: list[FatigueRuleRecord] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SchedulingContext:
    """Immutable snapshot of all inputs for one run."""
    start_date: date
    end_date: date
    optimization_goal: OptimizationGoal
    employees: tuple[EmployeeRecord, ...]
    shifts: tuple[ShiftRecord, ...]
    existing_assignments: tuple[AssignmentRecord, ...] = ()
    preferences: tuple[PreferenceRecord, ...] = ()
    constraints: tuple[ConstraintRecord, ...] = ()
    demand_forecasts: tuple[ForecastRecord, ...] = ()
    fatigue_rules: tuple[FatigueRuleRecord, ...] = ()

    @property
    def dates(self) -> list[date]:
        days = (self.end_date - self.start_date).days + 1
        return [self.start_date + timedelta(days=i) for i in range(max(days, 0))]

    def employee_index(self) -> dict[int, EmployeeRecord]:
        return {e.id: e for e in self.employees}

    def shift_index(self) -> dict[int, ShiftRecord]:
        return {s.id: s for s in self.shifts}

    def to_payload(self) -> dict:
        """Plain JSON-serialisable representation sent to external optimizers."""
        return {
            "date_range": {
                "start_date": self.start_date.isoformat(),
                "end_date": self.end_date.isoformat(),
            },
            "optimization_goal": self.optimization_goal.value,
            "employees": [e.to_payload() for e in self.employees],
            "shifts": [s.to_payload() for s in self.shifts],
            "existing_assignments": [a.to_payload() for a in self.existing_assignments],
            "preferences": [p.to_payload() for p in self.preferences],
            "constraints": [c.to_payload() for c in self.constraints],
            "demand_forecasts": [f.to_payload() for f in self.demand_forecasts],
            "fatigue_rules": [r.to_payload() for r in self.fatigue_rules],
        }


@dataclass
class RawRecommendation:
    """A candidate assignment exactly as an optimizer produced it (unvalidated)."""
    employee_id: Any = None
    shift_id: Any = None
    date: Any = None
    employee_name: Optional[str] = None
    shift_name: Optional[str] = None
    start_time: Any = None
    end_time: Any = None
    confidence_score: Any = None
    reasoning: Any = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "RawRecommendation":
        def pick(*keys):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        return cls(
            employee_id=pick("employee_id", "employeeId"),
            shift_id=pick("shift_id", "shiftId"),
            date=pick("date", "recommended_date", "recommendedDate"),
            employee_name=pick("employee_name", "employeeName"),
            shift_name=pick("shift_name", "shiftName"),
            start_time=pick("start_time", "startTime"),
            end_time=pick("end_time", "endTime"),
            confidence_score=pick("confidence_score", "confidenceScore", "confidence"),
            reasoning=pick("reasoning", "reason"),
            raw=dict(data),
        )


@dataclass
class OptimizerSummary:
    coverage_score: Optional[float] = None
    preference_score: Optional[float] = None
    estimated_weekly_hours: Optional[float] = None
    constraint_violations: Optional[int] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class OptimizerResult:
    recommendations: list[RawRecommendation]
    summary: OptimizerSummary = field(default_factory=OptimizerSummary)


@dataclass(frozen=True)
class Recommendation:
    """A validated assignment recommendation, ready to persist."""
    employee_id: int
    shift_id: int
    recommended_date: date
    start_time: time
    end_time: time
    confidence_score: float
    reasoning: str


@dataclass
class RejectedRecommendation:
    reason: str
    raw: dict


@dataclass
class ValidationResult:
    validated: list[Recommendation] = field(default_factory=list)
    rejected: list[RejectedRecommendation] = field(default_factory=list)


@dataclass
class RunSummary:
    total_recommendations: int = 0
    coverage_score: Optional[float] = None
    preference_score: Optional[float] = None
    estimated_weekly_hours: Optional[float] = None
    constraint_violations: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_recommendations": self.total_recommendations,
            "coverage_score": self.coverage_score,
            "preference_score": self.preference_score,
            "estimated_weekly_hours": self.estimated_weekly_hours,
            "constraint_violations": self.constraint_violations,
            "warnings": list(self.warnings),
        }


@dataclass
class RunOutcome:
    """Result of one orchestrator invocation, shaped for the caller."""
    run_id: int
    success: bool
    status_code: int = 200
    summary: Optional[RunSummary] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def to_response(self) -> dict:
        if not self.success:
            return {"error": self.error_message}
        summary = self.summary or RunSummary()
        return {
            "success": True,
            "run_id": self.run_id,
            "total_recommendations": summary.total_recommendations,
            "summary": summary.to_dict(),
        }
