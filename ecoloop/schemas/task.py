from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- Generation ----------

class GeneratedTask(BaseModel):
    """A dated task produced by the generator, not persisted yet."""
    farm_plan_id: int
    template_id: Optional[int] = None
    day_number: int
    scheduled_date: date
    title: str
    description: str
    category: str
    is_critical: bool = False
    completed: bool = False
    completed_at: Optional[datetime] = None
    photo_ref: Optional[str] = None
    notes: Optional[str] = None


class DailyTaskRead(BaseModel):
    id: int
    farm_plan_id: int
    template_id: Optional[int] = None
    day_number: int
    scheduled_date: date
    title: str
    description: str
    category: str
    is_critical: bool
    completed: bool
    completed_at: Optional[datetime] = None
    photo_ref: Optional[str] = None
    notes: Optional[str] = None
    estimated_duration_minutes: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ---------- Query views ----------

class TaskDay(BaseModel):
    day_number: int
    scheduled_date: date
    tasks: List[DailyTaskRead]


class TaskCalendar(BaseModel):
    total_tasks: int
    completed_tasks: int
    critical_tasks: int
    upcoming_tasks: int
    days: List[TaskDay]


class TodaysTasks(BaseModel):
    today: date
    tasks: List[DailyTaskRead]
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    critical_tasks: int


class UpcomingTasks(BaseModel):
    window_days: int
    tasks: List[DailyTaskRead]
    count: int


class TaskStatistics(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    critical_tasks: int = 0
    completed_critical_tasks: int = 0
    overdue_tasks: int = 0
    today_pending_tasks: int = 0
    completion_percentage: int = 0
    critical_completion_percentage: int = 0


class CategoryStats(BaseModel):
    category: str
    total: int
    completed: int


class TaskStatisticsReport(BaseModel):
    overall_statistics: TaskStatistics
    category_breakdown: List[CategoryStats]


class TaskOverview(TaskCalendar):
    statistics: TaskStatistics


class GenerationResult(BaseModel):
    generated_count: int
    task_summary: TaskCalendar


# ---------- Mutations ----------

class TaskCompleteRequest(BaseModel):
    notes: Optional[str] = None
    photo_ref: Optional[str] = None


class TaskNotesUpdate(BaseModel):
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class TaskPhotoAttach(BaseModel):
    photo_ref: str = Field(min_length=1)
