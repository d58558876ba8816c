import pytest
from datetime import timedelta

from rosterai.db.models.schedule_runs import ScheduleRunStatus
from rosterai.services.scheduling.errors import (
    InvalidRunTransition,
    OptimizerCapacityError,
    RunNotFoundError,
    RunRequestMismatch,
)
from rosterai.services.scheduling.run_state import RunStateMachine, can_transition
from rosterai.services.scheduling.types import RunSummary

from conftest import get_test_monday
from helpers import FakeStore, make_run, run_request


class TestTransitions:
    def test_allowed(self):
        assert can_transition(ScheduleRunStatus.PENDING, ScheduleRunStatus.RUNNING)
        assert can_transition(ScheduleRunStatus.RUNNING, ScheduleRunStatus.COMPLETED)
        assert can_transition(ScheduleRunStatus.RUNNING, ScheduleRunStatus.FAILED)
        assert can_transition(ScheduleRunStatus.COMPLETED, ScheduleRunStatus.APPLIED)

    def test_forbidden(self):
        assert not can_transition(ScheduleRunStatus.PENDING, ScheduleRunStatus.COMPLETED)
        assert not can_transition(ScheduleRunStatus.FAILED, ScheduleRunStatus.RUNNING)
        assert not can_transition(ScheduleRunStatus.COMPLETED, ScheduleRunStatus.FAILED)


class TestRunStateMachine:
    def test_load_missing_run(self, fake_store):
        with pytest.raises(RunNotFoundError):
            RunStateMachine(fake_store, 404).load()

    def test_load_rejects_non_pending(self, fake_store):
        fake_store.add_run(make_run(2, get_test_monday(), status=ScheduleRunStatus.COMPLETED))

        with pytest.raises(InvalidRunTransition):
            RunStateMachine(fake_store, 2).load()

    def test_load_accepts_matching_request(self, fake_store):
        row = RunStateMachine(fake_store, 1).load(run_request(fake_store.runs[1]))
        assert row["id"] == 1

    def test_load_rejects_request_for_another_window(self, fake_store):
        monday = get_test_monday()
        request = run_request(fake_store.runs[1], company_id=2, start_date=monday + timedelta(days=7))

        with pytest.raises(RunRequestMismatch) as exc:
            RunStateMachine(fake_store, 1).load(request)

        assert exc.value.status_code == 409
        assert "company_id 2 != 1" in exc.value.message
        assert "start_date" in exc.value.message
        assert fake_store.runs[1]["status"] == ScheduleRunStatus.PENDING

    def test_happy_path(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()
        machine.start()
        machine.complete(RunSummary(total_recommendations=3, coverage_score=90.0), "stub/test")

        run = fake_store.runs[1]
        assert fake_store.status_history[1] == [ScheduleRunStatus.RUNNING, ScheduleRunStatus.COMPLETED]
        assert run["started_at"] is not None
        assert run["completed_at"] is not None
        assert run["total_recommendations"] == 3
        assert run["ai_model_used"] == "stub/test"

    def test_complete_requires_running(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()

        with pytest.raises(InvalidRunTransition):
            machine.complete(RunSummary())

    def test_fail_records_message_and_code(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()
        machine.start()

        message, code = machine.fail(OptimizerCapacityError())

        run = fake_store.runs[1]
        assert run["status"] == ScheduleRunStatus.FAILED
        assert run["error_code"] == "optimizer_rate_limited"
        assert "Rate limits exceeded" in run["error_message"]
        assert (message, code) == (run["error_message"], run["error_code"])

    def test_fail_wraps_unexpected_errors(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()

        message, code = machine.fail(KeyError("employee_id"))

        assert message.startswith("Unexpected error:")
        assert code == "scheduling_error"

    def test_fail_never_raises(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()
        fake_store.fail_on.add("update_run")

        machine.fail(RuntimeError("boom"))

        assert fake_store.runs[1]["status"] == ScheduleRunStatus.PENDING

    def test_fail_is_noop_once_terminal(self, fake_store):
        machine = RunStateMachine(fake_store, 1)
        machine.load()
        machine.start()
        machine.complete(RunSummary())

        machine.fail(RuntimeError("late"))

        assert fake_store.status_history[1][-1] == ScheduleRunStatus.COMPLETED
        assert fake_store.runs[1]["error_message"] is None
