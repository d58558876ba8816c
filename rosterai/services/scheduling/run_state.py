"""
Run state machine for schedule runs.

    pending -> running -> completed -> applied
       |          |
       +----------+-----> failed

A terminal state is written at most once per invocation. fail() never raises.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from rosterai.db.models.schedule_runs import OptimizationGoal, ScheduleRunStatus

from .errors import InvalidRunTransition, RunNotFoundError, RunRequestMismatch, describe_error
from .store import DataStore, Row
from .types import RunRequest, RunSummary


logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    ScheduleRunStatus.PENDING: {ScheduleRunStatus.RUNNING, ScheduleRunStatus.FAILED},
    ScheduleRunStatus.RUNNING: {ScheduleRunStatus.COMPLETED, ScheduleRunStatus.FAILED},
    ScheduleRunStatus.COMPLETED: {ScheduleRunStatus.APPLIED},
    ScheduleRunStatus.FAILED: set(),
    ScheduleRunStatus.APPLIED: set(),
}

TERMINAL_STATES = {ScheduleRunStatus.COMPLETED, ScheduleRunStatus.FAILED, ScheduleRunStatus.APPLIED}


def can_transition(current: ScheduleRunStatus, target: ScheduleRunStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RunStateMachine:
    """Tracks and persists the status of one schedule run through a DataStore."""

    def __init__(self, store: DataStore, run_id: int, status: Optional[ScheduleRunStatus] = None):
        self.store = store
        self.run_id = run_id
        self.status = ScheduleRunStatus(status) if status is not None else None

    def load(self, request: Optional[RunRequest] = None) -> Row:
        """
        Read the run and check it can be started with `request`.

        Raises:
            RunNotFoundError: no run with this id
            InvalidRunTransition: run is not pending
            RunRequestMismatch: request company, window, department or goal differ from the run
        """
        row = self.store.get_run(self.run_id)
        if row is None:
            raise RunNotFoundError(f"Schedule run {self.run_id} not found")

        self.status = ScheduleRunStatus(row["status"])
        if self.status != ScheduleRunStatus.PENDING:
            raise InvalidRunTransition(
                f"Schedule run {self.run_id} is {self.status.value}, only pending runs can be started"
            )
        if request is not None:
            _check_request(row, request)
        return row

    def _transition(self, target: ScheduleRunStatus, **fields) -> None:
        if self.status is not None and not can_transition(self.status, target):
            raise InvalidRunTransition(
                f"Schedule run {self.run_id} cannot move from {self.status.value} to {target.value}"
            )
        self.store.update_run(self.run_id, status=target, **fields)
        logger.info(f"Schedule run {self.run_id}: {self.status.value if self.status else '?'} -> {target.value}")
        self.status = target

    def start(self) -> None:
        self._transition(ScheduleRunStatus.RUNNING, started_at=_now(), error_message=None, error_code=None)

    def complete(self, summary: RunSummary, model_used: Optional[str] = None) -> None:
        self._transition(
            ScheduleRunStatus.COMPLETED,
            completed_at=_now(),
            ai_model_used=model_used,
            **summary.to_dict(),
        )

    def fail(self, error: BaseException, model_used: Optional[str] = None) -> tuple[str, str]:
        """
        Record the run as failed. Best effort: a failure to persist is logged, not raised.

        Returns:
            (error_message, error_code) recorded for the run
        """
        message, code = describe_error(error)

        if self.status in TERMINAL_STATES:
            logger.warning(
                f"Schedule run {self.run_id} already {self.status.value}, not recording failure: {message}"
            )
            return message, code

        fields = {"completed_at": _now(), "error_message": message, "error_code": code}
        if model_used:
            fields["ai_model_used"] = model_used

        try:
            self.store.update_run(self.run_id, status=ScheduleRunStatus.FAILED, **fields)
            self.status = ScheduleRunStatus.FAILED
            logger.info(f"Schedule run {self.run_id} failed: [{code}] {message}")
        except Exception as e:
            logger.error(f"Could not record failure of schedule run {self.run_id}: {e} (original error: {message})")

        return message, code


def _check_request(row: Row, request: RunRequest) -> None:
    expected = {
        "company_id": row["company_id"],
        "start_date": row["start_date"],
        "end_date": row["end_date"],
        "department_id": row.get("department_id"),
        "optimization_goal": OptimizationGoal(row["optimization_goal"]).value,
    }
    actual = {
        "company_id": request.company_id,
        "start_date": request.start_date,
        "end_date": request.end_date,
        "department_id": request.department_id,
        "optimization_goal": OptimizationGoal(request.optimization_goal).value,
    }
    mismatched = [name for name in expected if expected[name] != actual[name]]
    if mismatched:
        details = ", ".join(f"{name} {actual[name]} != {expected[name]}" for name in mismatched)
        raise RunRequestMismatch(f"Schedule run {request.run_id} was created with different parameters: {details}")
