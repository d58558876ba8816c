from pydantic import BaseModel
from datetime import date, datetime, time
from typing import Optional


class ScheduleRecommendationResponse(BaseModel):
    id: int
    schedule_run_id: int
    employee_id: int
    shift_id: int
    recommended_date: date
    start_time: time
    end_time: time
    confidence_score: float
    reasoning: str
    is_accepted: Optional[bool]
    rejection_reason: Optional[str]
    reviewed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class RejectRecommendationRequest(BaseModel):
    reason: Optional[str] = None
