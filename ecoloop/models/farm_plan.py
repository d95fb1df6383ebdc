from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecoloop.core.enums import CycleType, PlanStatus, determine_cycle_type

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FarmPlan(Base):
    __tablename__ = "farm_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    plan_name: Mapped[str] = mapped_column(String)

    # Planning input
    budget: Mapped[float] = mapped_column(Float)
    space_m2: Mapped[float] = mapped_column(Float)
    experience_level: Mapped[str] = mapped_column(String)
    duration_days: Mapped[int] = mapped_column(Integer)

    # From the calculator's recommendation
    recommended_flock_size: Mapped[int] = mapped_column(Integer)

    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String, default=PlanStatus.ACTIVE.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    tasks: Mapped[List["DailyTask"]] = relationship(
        back_populates="farm_plan",
        cascade="all, delete-orphan",
    )
    generation_marker: Mapped[Optional["TaskGenerationMarker"]] = relationship(
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<FarmPlan id={self.id!r} name={self.plan_name!r}>"

    @property
    def cycle_type(self) -> CycleType:
        return determine_cycle_type(self.duration_days)
