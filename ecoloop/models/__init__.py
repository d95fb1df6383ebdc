from .base import Base
from .farm_plan import FarmPlan
from .task import DailyTask, TaskGenerationMarker, TaskTemplate

__all__ = ["Base", "FarmPlan", "DailyTask", "TaskGenerationMarker", "TaskTemplate"]
