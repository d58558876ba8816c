from datetime import datetime
from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rosterai.db.database import Base, JSONVariant


class SchedulingConstraints(Base):
    __tablename__ = "scheduling_constraints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # e.g. max_weekly_hours, max_consecutive_days, min_rest_hours, max_shift_hours
    constraint_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_hard_constraint: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rule_config: Mapped[dict] = mapped_column(JSONVariant, nullable=False, default=dict)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
