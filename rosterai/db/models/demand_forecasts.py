from typing import Optional
from datetime import date, datetime
from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, Text, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from rosterai.db.database import Base


class DemandForecasts(Base):
    __tablename__ = "demand_forecasts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    department_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    shift_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("shifts.id"), nullable=True)  # null = every shift that day
    forecast_date: Mapped[date] = mapped_column(Date, nullable=False)
    required_headcount: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    expected_volume: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_forecasts_company_date", "company_id", "forecast_date"),
    )
