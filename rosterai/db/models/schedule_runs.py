from typing import Optional, List
from enum import Enum
from datetime import date, datetime
from sqlalchemy import Date, DateTime, Float, Integer, String, Text, Enum as SQLEnum, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rosterai.db.database import Base, JSONVariant


class ScheduleRunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    APPLIED = "applied"


class OptimizationGoal(str, Enum):
    COST = "cost"
    COVERAGE = "coverage"
    PREFERENCE = "preference"
    BALANCED = "balanced"


class ScheduleRuns(Base):
    __tablename__ = "schedule_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    department_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    optimization_goal: Mapped[OptimizationGoal] = mapped_column(SQLEnum(OptimizationGoal, name="optimization_goal_enum"), nullable=False, default=OptimizationGoal.BALANCED)
    status: Mapped[ScheduleRunStatus] = mapped_column(SQLEnum(ScheduleRunStatus, name="schedule_run_status_enum"), nullable=False, default=ScheduleRunStatus.PENDING, index=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    applied_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ai_model_used: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # summary
    total_recommendations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    coverage_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    preference_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_weekly_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    constraint_violations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    warnings: Mapped[list] = mapped_column(JSONVariant, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    recommendations: Mapped[List["ScheduleRecommendations"]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_schedule_runs_company_created", "company_id", "created_at"),
    )
