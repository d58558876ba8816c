from typing import Optional
from enum import Enum
from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from rosterai.db.database import Base


class PreferenceType(str, Enum):
    PREFERRED = "PREFERRED"
    AVOID = "AVOID"
    UNAVAILABLE = "UNAVAILABLE"


class EmployeeShiftPreferences(Base):
    __tablename__ = "employee_shift_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    shift_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("shifts.id"), nullable=True)  # null = any shift
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 0-6, null = every day
    preference_type: Mapped[PreferenceType] = mapped_column(SQLEnum(PreferenceType, name="preference_type_enum"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, server_default=func.now(), onupdate=func.now())
