from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .farm_plan import FarmPlan, _utcnow


class TaskTemplate(Base):
    __tablename__ = "task_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    day_number: Mapped[int] = mapped_column(Integer)  # 1 = first day of the cycle
    category: Mapped[str] = mapped_column(String)
    is_critical: Mapped[bool] = mapped_column(Boolean, default=False)
    duration_type: Mapped[str] = mapped_column(String, index=True)  # CycleType value
    # NULL = applies to every experience level
    experience_level: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    topic: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    title: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text)
    estimated_duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<TaskTemplate id={self.id!r} day={self.day_number!r} title={self.title!r}>"


class DailyTask(Base):
    __tablename__ = "daily_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    farm_plan_id: Mapped[int] = mapped_column(
        ForeignKey("farm_plans.id", ondelete="CASCADE"), index=True
    )
    # NULL for synthesized rows (beginner double checks)
    template_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("task_templates.id", ondelete="SET NULL"), nullable=True
    )
    day_number: Mapped[int] = mapped_column(Integer)
    scheduled_date: Mapped[date] = mapped_column(Date, index=True)
    title: Mapped[str] = mapped_column(String)
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String)
    is_critical: Mapped[bool] = mapped_column(Boolean, default=False)

    # Only these four change after generation
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    photo_ref: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    farm_plan: Mapped[FarmPlan] = relationship(back_populates="tasks")
    template: Mapped[Optional[TaskTemplate]] = relationship()

    def __repr__(self) -> str:
        return f"<DailyTask id={self.id!r} day={self.day_number!r} title={self.title!r}>"

    @property
    def estimated_duration_minutes(self) -> Optional[int]:
        return self.template.estimated_duration_minutes if self.template else None


class TaskGenerationMarker(Base):
    """One row per plan whose tasks were generated; the primary key is the guard."""
    __tablename__ = "task_generation_markers"

    farm_plan_id: Mapped[int] = mapped_column(
        ForeignKey("farm_plans.id", ondelete="CASCADE"), primary_key=True
    )
    generated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    task_count: Mapped[int] = mapped_column(Integer)
