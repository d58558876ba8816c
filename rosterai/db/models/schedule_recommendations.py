from typing import Optional
from datetime import date, datetime, time
from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, Text, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rosterai.db.database import Base


class ScheduleRecommendations(Base):
    __tablename__ = "schedule_recommendations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_run_id: Mapped[int] = mapped_column(Integer, ForeignKey("schedule_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    shift_id: Mapped[int] = mapped_column(Integer, ForeignKey("shifts.id"), nullable=False)
    recommended_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    reasoning: Mapped[str] = mapped_column(Text, nullable=False)

    # review (null = not yet reviewed)
    is_accepted: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    run: Mapped["ScheduleRuns"] = relationship(back_populates="recommendations")

    __table_args__ = (
        UniqueConstraint("schedule_run_id", "employee_id", "shift_id", "recommended_date", name="uq_recommendation_per_run"),
    )
