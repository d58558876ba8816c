from typing import Optional
from datetime import datetime, time
from sqlalchemy import Boolean, DateTime, Float, Integer, String, Time, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from rosterai.db.database import Base


class Shifts(Base):
    """Shift templates (the catalog a run assigns employees to)."""
    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    minimum_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_overnight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_shifts_company_code", "company_id", "code"),
    )
