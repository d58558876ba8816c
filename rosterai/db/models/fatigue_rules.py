from typing import Optional
from datetime import datetime
from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rosterai.db.database import Base


class FatigueRules(Base):
    __tablename__ = "fatigue_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    max_consecutive_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_weekly_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_shift_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    min_rest_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
