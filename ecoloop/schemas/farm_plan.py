from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ecoloop.core.enums import ExperienceLevel, PlanStatus
from ecoloop.schemas.planning import PlanningInput, Recommendation
from ecoloop.schemas.task import TaskStatistics


class FarmPlanCreate(PlanningInput):
    plan_name: str = Field(min_length=1)
    notes: Optional[str] = None


class FarmPlanUpdate(BaseModel):
    plan_name: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    status: Optional[PlanStatus] = None

    model_config = ConfigDict(extra="forbid")


class FarmPlanRead(BaseModel):
    id: int
    user_id: str
    plan_name: str
    budget: float
    space_m2: float
    experience_level: ExperienceLevel
    duration_days: int
    recommended_flock_size: int
    start_date: date
    end_date: date
    status: PlanStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FarmPlanListItem(FarmPlanRead):
    total_tasks: int = 0
    completed_tasks: int = 0
    progress_percentage: int = 0


class FarmPlanCreated(BaseModel):
    farm_plan: FarmPlanRead
    recommendation: Recommendation
    tasks_generated: bool
    tasks_count: int


class FarmPlanDetail(BaseModel):
    farm_plan: FarmPlanRead
    task_statistics: TaskStatistics
    # None when the stored inputs no longer support a flock
    recommendation: Optional[Recommendation] = None
