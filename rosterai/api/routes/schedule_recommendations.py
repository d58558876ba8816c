from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rosterai.api.deps import get_db
from rosterai.schemas.schedule_recommendations import ScheduleRecommendationResponse, RejectRecommendationRequest
from rosterai.services.scheduling.review import accept_recommendation, reject_recommendation

router = APIRouter(prefix="/schedule-recommendations", tags=["schedule-recommendations"])


@router.patch("/{recommendation_id}/accept", response_model=ScheduleRecommendationResponse)
def accept_schedule_recommendation(recommendation_id: int, db: Session = Depends(get_db)):
    return accept_recommendation(db, recommendation_id)


@router.patch("/{recommendation_id}/reject", response_model=ScheduleRecommendationResponse)
def reject_schedule_recommendation(
    recommendation_id: int,
    payload: Optional[RejectRecommendationRequest] = None,
    db: Session = Depends(get_db),
):
    """Reject with an optional reason"""
    reason = payload.reason if payload else None
    return reject_recommendation(db, recommendation_id, reason)
