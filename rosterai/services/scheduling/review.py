"""
Review of completed runs.
Accept / reject individual recommendations, apply the accepted ones as shift
assignments, sweep runs stuck in running, delete runs.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rosterai.core.config import settings
from rosterai.db.models.schedule_recommendations import ScheduleRecommendations
from rosterai.db.models.schedule_runs import ScheduleRuns, ScheduleRunStatus
from rosterai.db.models.shift_assignments import EmployeeShiftAssignments

from .errors import (
    InvalidRunTransition,
    PersistenceError,
    ReviewError,
    RunNotFoundError,
    StaleRunError,
)
from .run_state import RunStateMachine, can_transition
from .store import SqlAlchemyDataStore


logger = logging.getLogger(__name__)


def _get_reviewable(db: Session, recommendation_id: int) -> ScheduleRecommendations:
    rec = db.get(ScheduleRecommendations, recommendation_id)
    if not rec:
        raise ReviewError(f"Recommendation {recommendation_id} not found", status_code=404)
    if rec.run.status != ScheduleRunStatus.COMPLETED:
        raise InvalidRunTransition(
            f"Recommendations of a {rec.run.status.value} run cannot be reviewed"
        )
    return rec


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to {what}: {e}") from e


def accept_recommendation(db: Session, recommendation_id: int) -> ScheduleRecommendations:
    rec = _get_reviewable(db, recommendation_id)
    rec.is_accepted = True
    rec.rejection_reason = None
    rec.reviewed_at = datetime.now(timezone.utc)
    _commit(db, f"accept recommendation {recommendation_id}")
    db.refresh(rec)
    return rec


def reject_recommendation(
    db: Session, recommendation_id: int, reason: Optional[str] = None
) -> ScheduleRecommendations:
    rec = _get_reviewable(db, recommendation_id)
    rec.is_accepted = False
    rec.rejection_reason = reason
    rec.reviewed_at = datetime.now(timezone.utc)
    _commit(db, f"reject recommendation {recommendation_id}")
    db.refresh(rec)
    return rec


def apply_accepted_recommendations(db: Session, run_id: int) -> tuple[ScheduleRuns, int]:
    """
    Turn the accepted recommendations of a completed run into shift assignments.

    Each becomes a one-day, non-primary EmployeeShiftAssignments row that
    links back to its recommendation. The run moves to applied.

    Returns:
        (run, number of assignments created)
    """
    run = db.get(ScheduleRuns, run_id)
    if not run:
        raise RunNotFoundError(f"Schedule run {run_id} not found")
    if not can_transition(run.status, ScheduleRunStatus.APPLIED):
        raise InvalidRunTransition(f"Schedule run {run_id} is {run.status.value}, only completed runs can be applied")

    accepted = db.execute(
        select(ScheduleRecommendations).where(
            and_(
                ScheduleRecommendations.schedule_run_id == run_id,
                ScheduleRecommendations.is_accepted == True,
            )
        ).order_by(ScheduleRecommendations.recommended_date, ScheduleRecommendations.id)
    ).scalars().all()

    if not accepted:
        raise ReviewError(f"Schedule run {run_id} has no accepted recommendations to apply")

    for rec in accepted:
        db.add(
            EmployeeShiftAssignments(
                company_id=run.company_id,
                employee_id=rec.employee_id,
                shift_id=rec.shift_id,
                effective_date=rec.recommended_date,
                end_date=rec.recommended_date,
                is_primary=False,
                notes=f"AI generated - {rec.reasoning}",
                recommendation_id=rec.id,
            )
        )

    run.status = ScheduleRunStatus.APPLIED
    run.applied_at = datetime.now(timezone.utc)
    _commit(db, f"apply schedule run {run_id}")
    db.refresh(run)

    logger.info(f"Applied {len(accepted)} accepted recommendations of schedule run {run_id}")
    return run, len(accepted)


def reconcile_stuck_runs(db: Session, older_than_minutes: Optional[int] = None) -> list[int]:
    """Mark runs left in running (crashed worker, killed process) as failed. Returns their ids."""
    minutes = older_than_minutes if older_than_minutes is not None else settings.STUCK_RUN_MINUTES
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes)

    stuck = db.execute(
        select(ScheduleRuns).where(
            and_(
                ScheduleRuns.status == ScheduleRunStatus.RUNNING,
                or_(ScheduleRuns.started_at.is_(None), ScheduleRuns.started_at < cutoff),
            )
        ).order_by(ScheduleRuns.id)
    ).scalars().all()

    store = SqlAlchemyDataStore(db)
    failed = []
    for run in stuck:
        machine = RunStateMachine(store, run.id, status=ScheduleRunStatus.RUNNING)
        machine.fail(StaleRunError(f"Run did not finish within {minutes} minutes and was marked failed"))
        if machine.status == ScheduleRunStatus.FAILED:
            failed.append(run.id)

    if failed:
        logger.warning(f"Reconciled {len(failed)} stuck schedule runs: {failed}")
    return failed


def delete_run(db: Session, run_id: int) -> None:
    """Delete a run and, by cascade, its recommendations. Running runs are kept."""
    run = db.get(ScheduleRuns, run_id)
    if not run:
        raise RunNotFoundError(f"Schedule run {run_id} not found")
    if run.status == ScheduleRunStatus.RUNNING:
        raise InvalidRunTransition(f"Schedule run {run_id} is running and cannot be deleted")

    db.delete(run)
    _commit(db, f"delete schedule run {run_id}")
    logger.info(f"Deleted schedule run {run_id}")
