from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from rosterai.api.deps import get_db, get_data_store, get_schedule_optimizer
from rosterai.core.config import settings
from rosterai.db.models.schedule_runs import ScheduleRuns, ScheduleRunStatus
from rosterai.db.models.schedule_recommendations import ScheduleRecommendations
from rosterai.schemas.schedule_runs import (
    ScheduleRunCreate,
    ScheduleRunResponse,
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    ApplyRunResponse,
    ReconcileResponse,
)
from rosterai.schemas.schedule_recommendations import ScheduleRecommendationResponse
from rosterai.services.scheduling.optimizer import BaseOptimizer
from rosterai.services.scheduling.orchestrator import ScheduleOrchestrator
from rosterai.services.scheduling.review import apply_accepted_recommendations, delete_run, reconcile_stuck_runs
from rosterai.services.scheduling.store import DataStore


router = APIRouter(prefix="/schedule-runs", tags=["schedule-runs"])


@router.post("", response_model=ScheduleRunResponse, status_code=status.HTTP_201_CREATED)
def create_schedule_run(
    payload: ScheduleRunCreate,
    db: Session = Depends(get_db),
):
    """Create a pending run; pass its id to /generate"""
    run = ScheduleRuns(
        company_id=payload.company_id,
        department_id=payload.department_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        optimization_goal=payload.optimization_goal,
        status=ScheduleRunStatus.PENDING,
        warnings=[],
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


@router.post("/generate", response_model=GenerateScheduleResponse)
def generate_schedule_run(
    payload: GenerateScheduleRequest,
    store: DataStore = Depends(get_data_store),
    optimizer: BaseOptimizer = Depends(get_schedule_optimizer),
):
    """Execute a pending run to completion. Errors come back as {"error": message}"""
    outcome = ScheduleOrchestrator(store, optimizer).run(payload.to_run_request())
    if not outcome.success:
        return JSONResponse(status_code=outcome.status_code, content=outcome.to_response())
    return outcome.to_response()


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile_schedule_runs(
    older_than_minutes: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    """Fail runs stuck in running longer than older_than_minutes (default STUCK_RUN_MINUTES)"""
    return {"failed_run_ids": reconcile_stuck_runs(db, older_than_minutes)}


@router.get("", response_model=List[ScheduleRunResponse])
def list_schedule_runs(
    company_id: int,
    limit: int = Query(settings.RUN_HISTORY_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Latest runs of a company, newest first"""
    return (
        db.query(ScheduleRuns)
        .filter(ScheduleRuns.company_id == company_id)
        .order_by(ScheduleRuns.created_at.desc(), ScheduleRuns.id.desc())
        .limit(limit)
        .all()
    )


@router.get("/{run_id}", response_model=ScheduleRunResponse)
def get_schedule_run(run_id: int, db: Session = Depends(get_db)):
    run = db.query(ScheduleRuns).filter(ScheduleRuns.id == run_id).first()
    if not run:
        raise HTTPException(status_code=404, detail="Schedule run not found")
    return run


@router.get("/{run_id}/recommendations", response_model=List[ScheduleRecommendationResponse])
def list_run_recommendations(run_id: int, db: Session = Depends(get_db)):
    run = db.query(ScheduleRuns).filter(ScheduleRuns.id == run_id).first()
    if not run:
        raise HTTPException(status_code=404, detail="Schedule run not found")

    return (
        db.query(ScheduleRecommendations)
        .filter(ScheduleRecommendations.schedule_run_id == run_id)
        .order_by(
            ScheduleRecommendations.recommended_date,
            ScheduleRecommendations.start_time,
            ScheduleRecommendations.id,
        )
        .all()
    )


@router.post("/{run_id}/apply", response_model=ApplyRunResponse)
def apply_schedule_run(run_id: int, db: Session = Depends(get_db)):
    """Create shift assignments from the run's accepted recommendations"""
    run, created = apply_accepted_recommendations(db, run_id)
    return ApplyRunResponse(
        run_id=run.id,
        status=run.status,
        applied_at=run.applied_at,
        assignments_created=created,
    )


@router.delete("/{run_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule_run(run_id: int, db: Session = Depends(get_db)):
    delete_run(db, run_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
