from pydantic import BaseModel, model_validator
from datetime import date, datetime
from typing import List, Optional
from rosterai.db.models.schedule_runs import ScheduleRunStatus, OptimizationGoal
from rosterai.services.scheduling.types import RunRequest


class ScheduleRunBase(BaseModel):
    company_id: int
    start_date: date
    end_date: date
    department_id: Optional[int] = None
    optimization_goal: OptimizationGoal = OptimizationGoal.BALANCED

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ScheduleRunCreate(ScheduleRunBase):
    pass


class GenerateScheduleRequest(ScheduleRunBase):
    run_id: int

    def to_run_request(self) -> RunRequest:
        return RunRequest(
            run_id=self.run_id,
            company_id=self.company_id,
            start_date=self.start_date,
            end_date=self.end_date,
            optimization_goal=self.optimization_goal,
            department_id=self.department_id,
        )


class RunSummaryResponse(BaseModel):
    total_recommendations: int
    coverage_score: Optional[float] = None
    preference_score: Optional[float] = None
    estimated_weekly_hours: Optional[float] = None
    constraint_violations: int = 0
    warnings: List[str] = []


class GenerateScheduleResponse(BaseModel):
    success: bool
    run_id: int
    total_recommendations: int
    summary: RunSummaryResponse


class ScheduleRunResponse(ScheduleRunBase):
    id: int
    status: ScheduleRunStatus
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    applied_at: Optional[datetime]
    error_message: Optional[str]
    error_code: Optional[str]
    ai_model_used: Optional[str]
    total_recommendations: int
    coverage_score: Optional[float]
    preference_score: Optional[float]
    estimated_weekly_hours: Optional[float]
    constraint_violations: int
    warnings: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplyRunResponse(BaseModel):
    run_id: int
    status: ScheduleRunStatus
    applied_at: Optional[datetime]
    assignments_created: int


class ReconcileResponse(BaseModel):
    failed_run_ids: List[int]
