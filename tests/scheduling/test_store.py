import sqlite3
from datetime import date, time

import pytest
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError

from rosterai.db.models import (
    DemandForecasts,
    EmployeeShiftAssignments,
    EmployeeShiftPreferences,
    FatigueRules,
    PreferenceType,
    ScheduleRecommendations,
    ScheduleRuns,
    ScheduleRunStatus,
    SchedulingConstraints,
)
from rosterai.services.scheduling.errors import RunNotFoundError
from rosterai.services.scheduling.heuristic_optimizer import HeuristicOptimizer
from rosterai.services.scheduling.orchestrator import generate_schedule
from rosterai.services.scheduling.store import SqlAlchemyDataStore
from rosterai.services.scheduling.types import RunRequest

from conftest import get_test_monday
from helpers import db_recommendation, seed_company


@pytest.fixture
def seeded(db):
    run = seed_company(db, get_test_monday())
    return SqlAlchemyDataStore(db), run


class TestReads:
    def test_only_active_employees_of_company(self, seeded):
        store, _ = seeded
        rows = store.fetch_employees(1)
        assert [r["id"] for r in rows] == [1, 2]

    def test_department_scope(self, seeded):
        store, _ = seeded
        assert [r["id"] for r in store.fetch_employees(1, department_id=5)] == [2]

    def test_only_active_shifts(self, seeded):
        store, _ = seeded
        rows = store.fetch_shifts(1)
        assert [r["id"] for r in rows] == [10, 20]
        assert rows[0]["start_time"] == time(6, 0)

    def test_assignments_expired_before_window_are_skipped(self, seeded, db):
        store, _ = seeded
        monday = get_test_monday()
        db.add_all([
            EmployeeShiftAssignments(company_id=1, employee_id=1, shift_id=10, effective_date=date(2024, 1, 1), end_date=None),
            EmployeeShiftAssignments(company_id=1, employee_id=2, shift_id=20, effective_date=date(2024, 1, 1), end_date=date(2025, 1, 1)),
            EmployeeShiftAssignments(company_id=1, employee_id=2, shift_id=10, effective_date=date(2025, 1, 1), end_date=monday),
        ])
        db.commit()

        rows = store.fetch_assignments(1, monday)

        assert sorted((r["employee_id"], r["shift_id"]) for r in rows) == [(1, 10), (2, 10)]

    def test_preferences_filtered_by_employee_and_active(self, seeded, db):
        store, _ = seeded
        db.add_all([
            EmployeeShiftPreferences(company_id=1, employee_id=1, shift_id=10, preference_type=PreferenceType.PREFERRED),
            EmployeeShiftPreferences(company_id=1, employee_id=2, preference_type=PreferenceType.UNAVAILABLE, day_of_week=6),
            EmployeeShiftPreferences(company_id=1, employee_id=1, shift_id=20, preference_type=PreferenceType.AVOID, is_active=False),
        ])
        db.commit()

        assert [r["employee_id"] for r in store.fetch_preferences(1, [1])] == [1]
        assert len(store.fetch_preferences(1, [1, 2])) == 2
        assert store.fetch_preferences(1, []) == []

    def test_constraints_forecasts_and_fatigue_rules(self, seeded, db):
        store, _ = seeded
        monday = get_test_monday()
        db.add_all([
            SchedulingConstraints(company_id=1, name="Weekly cap", constraint_type="max_weekly_hours",
                                  is_hard_constraint=True, rule_config={"value": 32}),
            SchedulingConstraints(company_id=1, name="Old", constraint_type="max_shift_hours",
                                  rule_config={"value": 6}, is_active=False),
            DemandForecasts(company_id=1, forecast_date=monday, shift_id=10, required_headcount=2),
            DemandForecasts(company_id=1, forecast_date=date(2025, 3, 1), required_headcount=4),
            DemandForecasts(company_id=1, forecast_date=monday, department_id=9, required_headcount=3),
            FatigueRules(company_id=1, name="Default", max_consecutive_days=5, min_rest_hours=11),
        ])
        db.commit()

        constraints = store.fetch_constraints(1)
        assert [c["name"] for c in constraints] == ["Weekly cap"]
        assert constraints[0]["rule_config"] == {"value": 32}

        forecasts = store.fetch_forecasts(1, monday, date(2025, 1, 26))
        assert len(forecasts) == 2
        scoped = store.fetch_forecasts(1, monday, date(2025, 1, 26), department_id=5)
        assert [f["required_headcount"] for f in scoped] == [2]

        assert [r["name"] for r in store.fetch_fatigue_rules(1)] == ["Default"]


class TestWrites:
    def test_get_run(self, seeded):
        store, run = seeded
        row = store.get_run(run.id)
        assert row["status"] == ScheduleRunStatus.PENDING
        assert row["start_date"] == get_test_monday()
        assert store.get_run(999) is None

    def test_update_run(self, seeded, db):
        store, run = seeded

        store.update_run(run.id, status=ScheduleRunStatus.RUNNING, warnings=["one"])

        db.refresh(run)
        assert run.status == ScheduleRunStatus.RUNNING
        assert run.warnings == ["one"]

    def test_update_missing_run(self, seeded):
        store, _ = seeded
        with pytest.raises(RunNotFoundError):
            store.update_run(999, status=ScheduleRunStatus.FAILED)

    def test_insert_recommendations_tags_run(self, seeded, db):
        store, run = seeded
        monday = get_test_monday()

        written = store.insert_recommendations(run.id, [
            db_recommendation(1, 10, monday),
            db_recommendation(2, 20, monday),
        ])

        rows = db.query(ScheduleRecommendations).all()
        assert written == 2
        assert {r.schedule_run_id for r in rows} == {run.id}
        assert all(r.is_accepted is None for r in rows)


@pytest.fixture
def aborting_engine(engine):
    """Make sqlite refuse statements after a failure until rollback, as postgres does."""
    state = {"aborted": False}

    @event.listens_for(engine, "handle_error")
    def mark_aborted(context):
        state["aborted"] = True

    @event.listens_for(engine, "before_cursor_execute")
    def refuse_while_aborted(conn, cursor, statement, parameters, context, executemany):
        if state["aborted"]:
            raise sqlite3.OperationalError("current transaction is aborted, commands ignored until end of transaction block")

    @event.listens_for(engine, "rollback")
    def clear_aborted(conn):
        state["aborted"] = False

    return engine


class TestFailedReads:
    def _request(self, run):
        return RunRequest(run_id=run.id, company_id=1, start_date=run.start_date, end_date=run.end_date)

    def _run_row(self, db, run_id):
        db.expire_all()
        return db.get(ScheduleRuns, run_id)

    def test_optional_read_failure_does_not_poison_later_writes(self, aborting_engine, db):
        run = seed_company(db, get_test_monday())
        request = self._request(run)
        db.execute(text("ALTER TABLE demand_forecasts RENAME TO demand_forecasts_gone"))
        db.commit()

        outcome = generate_schedule(db, request, HeuristicOptimizer())

        assert outcome.success
        row = self._run_row(db, request.run_id)
        assert row.status == ScheduleRunStatus.COMPLETED
        assert any("Demand forecasts could not be loaded" in w for w in row.warnings)

    def test_required_read_failure_still_marks_run_failed(self, aborting_engine, db):
        run = seed_company(db, get_test_monday())
        request = self._request(run)
        db.execute(text("ALTER TABLE employees RENAME COLUMN full_name TO display_name"))
        db.commit()

        outcome = generate_schedule(db, request, HeuristicOptimizer())

        assert not outcome.success
        row = self._run_row(db, request.run_id)
        assert row.status == ScheduleRunStatus.FAILED
        assert row.error_code == "input_fetch_failed"
        assert row.completed_at is not None

    def test_failed_get_run_leaves_session_usable(self, aborting_engine, seeded, db):
        store, run = seeded
        run_id = run.id
        db.execute(text("ALTER TABLE schedule_runs RENAME COLUMN warnings TO notes"))
        db.commit()

        with pytest.raises(SQLAlchemyError):
            store.get_run(run_id)

        assert [r["id"] for r in store.fetch_employees(1)] == [1, 2]
