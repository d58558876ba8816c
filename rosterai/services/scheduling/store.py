"""
Data store abstraction for scheduling runs.

The orchestrator never reaches the database through module level state; it is
handed a DataStore. Read methods return plain row dicts (column name -> value)
which the aggregator normalises; write methods are scoped by run id.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, inspect, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rosterai.db.models.employees import Employees, EmploymentStatus
from rosterai.db.models.shifts import Shifts
from rosterai.db.models.shift_assignments import EmployeeShiftAssignments
from rosterai.db.models.shift_preferences import EmployeeShiftPreferences
from rosterai.db.models.scheduling_constraints import SchedulingConstraints
from rosterai.db.models.demand_forecasts import DemandForecasts
from rosterai.db.models.fatigue_rules import FatigueRules
from rosterai.db.models.schedule_runs import ScheduleRuns
from rosterai.db.models.schedule_recommendations import ScheduleRecommendations

from .errors import PersistenceError, RunNotFoundError
from .types import Recommendation


logger = logging.getLogger(__name__)

Row = dict[str, Any]


class DataStore(ABC):
    """Read inputs for a run and write its results."""

    @abstractmethod
    def fetch_employees(self, company_id: int, department_id: Optional[int] = None) -> list[Row]:
        """Active employees of the company, optionally scoped to a department."""
        ...

    @abstractmethod
    def fetch_shifts(self, company_id: int) -> list[Row]:
        """Active shift templates of the company."""
        ...

    @abstractmethod
    def fetch_assignments(self, company_id: int, window_start: date) -> list[Row]:
        """Assignments not already expired before the window (end_date null or >= start)."""
        ...

    @abstractmethod
    def fetch_preferences(self, company_id: int, employee_ids: list[int]) -> list[Row]:
        ...

    @abstractmethod
    def fetch_constraints(self, company_id: int) -> list[Row]:
        ...

    @abstractmethod
    def fetch_forecasts(
        self, company_id: int, start_date: date, end_date: date, department_id: Optional[int] = None
    ) -> list[Row]:
        ...

    @abstractmethod
    def fetch_fatigue_rules(self, company_id: int) -> list[Row]:
        ...

    @abstractmethod
    def get_run(self, run_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    def update_run(self, run_id: int, **fields: Any) -> None:
        """Persist run fields (status, timestamps, summary). Raises PersistenceError."""
        ...

    @abstractmethod
    def insert_recommendations(self, run_id: int, recommendations: list[Recommendation]) -> int:
        """Insert validated recommendations tagged with the run id. Raises PersistenceError."""
        ...


def _row_to_dict(obj) -> Row:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class SqlAlchemyDataStore(DataStore):
    """DataStore backed by a SQLAlchemy session. Each write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def _select_rows(self, stmt, label: str) -> list[Row]:
        try:
            return [_row_to_dict(r) for r in self.db.execute(stmt).scalars().all()]
        except SQLAlchemyError:
            # postgres refuses every later statement until the failed transaction is rolled back
            self.db.rollback()
            logger.warning(f"Query for {label} failed, session rolled back")
            raise

    def fetch_employees(self, company_id: int, department_id: Optional[int] = None) -> list[Row]:
        stmt = select(Employees).where(
            and_(
                Employees.company_id == company_id,
                Employees.employment_status == EmploymentStatus.ACTIVE,
            )
        )
        if department_id is not None:
            stmt = stmt.where(Employees.department_id == department_id)
        return self._select_rows(stmt.order_by(Employees.full_name, Employees.id), "employees")

    def fetch_shifts(self, company_id: int) -> list[Row]:
        stmt = select(Shifts).where(
            and_(
                Shifts.company_id == company_id,
                Shifts.is_active == True,
            )
        ).order_by(Shifts.start_time, Shifts.id)
        return self._select_rows(stmt, "shifts")

    def fetch_assignments(self, company_id: int, window_start: date) -> list[Row]:
        stmt = select(EmployeeShiftAssignments).where(
            and_(
                EmployeeShiftAssignments.company_id == company_id,
                or_(
                    EmployeeShiftAssignments.end_date.is_(None),
                    EmployeeShiftAssignments.end_date >= window_start,
                ),
            )
        ).order_by(EmployeeShiftAssignments.effective_date, EmployeeShiftAssignments.id)
        return self._select_rows(stmt, "assignments")

    def fetch_preferences(self, company_id: int, employee_ids: list[int]) -> list[Row]:
        if not employee_ids:
            return []

        stmt = select(EmployeeShiftPreferences).where(
            and_(
                EmployeeShiftPreferences.company_id == company_id,
                EmployeeShiftPreferences.employee_id.in_(employee_ids),
                EmployeeShiftPreferences.is_active == True,
            )
        ).order_by(EmployeeShiftPreferences.id)
        return self._select_rows(stmt, "preferences")

    def fetch_constraints(self, company_id: int) -> list[Row]:
        stmt = select(SchedulingConstraints).where(
            and_(
                SchedulingConstraints.company_id == company_id,
                SchedulingConstraints.is_active == True,
            )
        ).order_by(SchedulingConstraints.priority, SchedulingConstraints.id)
        return self._select_rows(stmt, "constraints")

    def fetch_forecasts(
        self, company_id: int, start_date: date, end_date: date, department_id: Optional[int] = None
    ) -> list[Row]:
        stmt = select(DemandForecasts).where(
            and_(
                DemandForecasts.company_id == company_id,
                DemandForecasts.forecast_date >= start_date,
                DemandForecasts.forecast_date <= end_date,
            )
        )
        if department_id is not None:
            stmt = stmt.where(
                or_(
                    DemandForecasts.department_id.is_(None),
                    DemandForecasts.department_id == department_id,
                )
            )
        stmt = stmt.order_by(DemandForecasts.forecast_date, DemandForecasts.id)
        return self._select_rows(stmt, "demand forecasts")

    def fetch_fatigue_rules(self, company_id: int) -> list[Row]:
        stmt = select(FatigueRules).where(
            and_(
                FatigueRules.company_id == company_id,
                FatigueRules.is_active == True,
            )
        ).order_by(FatigueRules.id)
        return self._select_rows(stmt, "fatigue rules")

    def get_run(self, run_id: int) -> Optional[Row]:
        try:
            run = self.db.get(ScheduleRuns, run_id)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return _row_to_dict(run) if run else None

    def update_run(self, run_id: int, **fields: Any) -> None:
        # clear a transaction left aborted by a failed read
        self.db.rollback()
        try:
            run = self.db.get(ScheduleRuns, run_id)
            if run is None:
                raise RunNotFoundError(f"Schedule run {run_id} not found")
            for key, value in fields.items():
                setattr(run, key, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to update schedule run {run_id}: {e}") from e

    def insert_recommendations(self, run_id: int, recommendations: list[Recommendation]) -> int:
        rows = [
            ScheduleRecommendations(
                schedule_run_id=run_id,
                employee_id=rec.employee_id,
                shift_id=rec.shift_id,
                recommended_date=rec.recommended_date,
                start_time=rec.start_time,
                end_time=rec.end_time,
                confidence_score=rec.confidence_score,
                reasoning=rec.reasoning,
            )
            for rec in recommendations
        ]
        self.db.rollback()
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to save recommendations for run {run_id}: {e}") from e
        return len(rows)
