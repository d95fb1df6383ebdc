"""
Task generation engine.

Expands a catalog of day-keyed task templates into the dated, personalized
calendar of one farm plan, and derives the read views (by day, today,
upcoming, statistics) from the resulting task rows.

Nothing here touches the database: the catalog is passed in and the generated
tasks are returned to the caller (see ``task_service`` for persistence).
"""
import math
from collections import OrderedDict
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ecoloop.core.enums import (
    CycleType,
    ExperienceLevel,
    TaskCategory,
    TipTopic,
    determine_cycle_type,
)
from ecoloop.core.errors import NoTemplatesFound
from ecoloop.core.logging import get_logger
from ecoloop.schemas.task import (
    CategoryStats,
    DailyTaskRead,
    GeneratedTask,
    TaskCalendar,
    TaskDay,
    TaskStatistics,
    TodaysTasks,
    UpcomingTasks,
)

logger = get_logger(module="task_generator")

FLOCK_SIZE_PLACEHOLDER = "{flock_size}"
DOUBLE_CHECK_MAX_DAY = 7

BEGINNER_TIPS: Dict[TipTopic, str] = {
    TipTopic.TEMPERATURE: "Tip: use a reliable thermometer and check several spots in the house.",
    TipTopic.FEEDING: "Tip: spread the feed evenly so the birds do not compete for it.",
    TipTopic.CLEANING: "Tip: wear gloves and disinfect your hands after handling.",
    TipTopic.VACCINATION: "Tip: follow the doses strictly and ask a vet when in doubt.",
}

# Used when a template has no topic tag; checked in this order
TIP_KEYWORDS: Dict[TipTopic, str] = {
    TipTopic.TEMPERATURE: "temperature",
    TipTopic.FEEDING: "feed",
    TipTopic.CLEANING: "clean",
    TipTopic.VACCINATION: "vaccin",
}


def _value(field: Any) -> Any:
    return field.value if isinstance(field, Enum) else field


def _sort_key(task: Any):
    # day, then critical first, then insertion/id order
    return task.day_number, not task.is_critical, getattr(task, "id", None) or 0


class TaskGenerator:
    """
    Turns a farm plan and a template catalog into dated tasks.

    Args:
        tips: beginner tips by topic; defaults to ``BEGINNER_TIPS``.
    """

    def __init__(self, tips: Optional[Dict[TipTopic, str]] = None):
        self.tips = BEGINNER_TIPS if tips is None else tips

    def generate_tasks(self, farm_plan: Any, catalog: Iterable[Any]) -> List[GeneratedTask]:
        """
        ``farm_plan`` needs ``id``, ``duration_days``, ``experience_level``,
        ``start_date`` and ``recommended_flock_size``; catalog entries need the
        ``TaskTemplate`` fields.

        Raises:
            NoTemplatesFound: nothing in the catalog matches the plan's cycle.
        """
        cycle_type = determine_cycle_type(farm_plan.duration_days)
        level = ExperienceLevel(farm_plan.experience_level)

        templates = self.select_templates(catalog, cycle_type, level)
        if not templates:
            raise NoTemplatesFound(cycle_type.value, level.value)

        personalized = self.personalize(templates, level, farm_plan.recommended_flock_size)
        tasks = self.schedule(personalized, farm_plan)

        logger.info(
            "Tasks generated",
            farm_plan_id=farm_plan.id,
            cycle_type=cycle_type.value,
            templates=len(templates),
            tasks=len(tasks),
        )
        return tasks

    # ---------- selection ----------

    def select_templates(
        self,
        catalog: Iterable[Any],
        cycle_type: CycleType,
        experience_level: ExperienceLevel,
    ) -> List[Any]:
        for_cycle = [t for t in catalog if t.duration_type == cycle_type]

        selected = [
            t for t in for_cycle
            if t.experience_level is None or t.experience_level == experience_level
        ]
        if not selected:
            selected = [t for t in for_cycle if t.experience_level is None]

        return sorted(selected, key=lambda t: (t.day_number, not t.is_critical))

    # ---------- personalization ----------

    def personalize(
        self,
        templates: Sequence[Any],
        experience_level: ExperienceLevel,
        flock_size: Optional[int],
    ) -> List[Dict[str, Any]]:
        beginner = experience_level == ExperienceLevel.BEGINNER
        personalized: List[Dict[str, Any]] = []

        for template in templates:
            description = self.adjust_description(template, experience_level, flock_size)
            personalized.append(
                {
                    "template_id": template.id,
                    "day_number": template.day_number,
                    "title": template.title,
                    "description": description,
                    "category": _value(template.category),
                    "is_critical": bool(template.is_critical),
                }
            )

            if (
                beginner
                and template.is_critical
                and template.category == TaskCategory.MONITORING
                and template.day_number <= DOUBLE_CHECK_MAX_DAY
            ):
                personalized.append(
                    {
                        "template_id": None,
                        "day_number": template.day_number,
                        "title": f"Double check - {template.title}",
                        "description": (
                            "Extra verification recommended for beginners: "
                            f"{self.fill_flock_size(template.description, flock_size)}"
                        ),
                        "category": _value(template.category),
                        "is_critical": False,
                    }
                )

        return personalized

    @staticmethod
    def fill_flock_size(description: str, flock_size: Optional[int]) -> str:
        if not description or not flock_size:
            return description
        return description.replace(FLOCK_SIZE_PLACEHOLDER, str(flock_size))

    def adjust_description(
        self,
        template: Any,
        experience_level: ExperienceLevel,
        flock_size: Optional[int],
    ) -> str:
        description = self.fill_flock_size(template.description, flock_size)
        if not description or experience_level != ExperienceLevel.BEGINNER:
            return description

        for topic in self.tip_topics(getattr(template, "topic", None), description):
            tip = self.tips.get(topic)
            if tip:
                description += f"\n\n{tip}"
        return description

    @staticmethod
    def tip_topics(topic: Optional[str], description: str) -> List[TipTopic]:
        if topic:
            try:
                tagged = TipTopic(topic)
            except ValueError:
                logger.warning("Unknown template topic ignored", topic=topic)
                return []
            return [] if tagged == TipTopic.NONE else [tagged]
        lowered = description.lower()
        return [t for t, keyword in TIP_KEYWORDS.items() if keyword in lowered]

    # ---------- scheduling ----------

    def schedule(self, personalized: Sequence[Dict[str, Any]], farm_plan: Any) -> List[GeneratedTask]:
        tasks = [
            GeneratedTask(
                farm_plan_id=farm_plan.id,
                scheduled_date=farm_plan.start_date + timedelta(days=item["day_number"] - 1),
                **item,
            )
            for item in personalized
            if item["day_number"] <= farm_plan.duration_days
        ]
        # sorted() is stable: critical-first and double-check order survive
        return sorted(tasks, key=lambda t: t.day_number)


# ---------- query views ----------

def percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def tasks_by_day(tasks: Iterable[Any], today: date) -> TaskCalendar:
    ordered = sorted(tasks, key=_sort_key)
    days: "OrderedDict[int, TaskDay]" = OrderedDict()

    for task in ordered:
        if task.day_number not in days:
            days[task.day_number] = TaskDay(
                day_number=task.day_number,
                scheduled_date=task.scheduled_date,
                tasks=[],
            )
        days[task.day_number].tasks.append(DailyTaskRead.model_validate(task))

    return TaskCalendar(
        total_tasks=len(ordered),
        completed_tasks=sum(1 for t in ordered if t.completed),
        critical_tasks=sum(1 for t in ordered if t.is_critical),
        upcoming_tasks=sum(1 for t in ordered if not t.completed and t.scheduled_date >= today),
        days=list(days.values()),
    )


def todays_tasks(tasks: Iterable[Any], today: date) -> TodaysTasks:
    selected = sorted(
        (t for t in tasks if t.scheduled_date == today),
        key=lambda t: (not t.is_critical, t.id or 0),
    )
    return TodaysTasks(
        today=today,
        tasks=[DailyTaskRead.model_validate(t) for t in selected],
        total_tasks=len(selected),
        completed_tasks=sum(1 for t in selected if t.completed),
        pending_tasks=sum(1 for t in selected if not t.completed),
        critical_tasks=sum(1 for t in selected if t.is_critical),
    )


def upcoming_tasks(tasks: Iterable[Any], today: date, window_days: int = 7) -> UpcomingTasks:
    until = today + timedelta(days=window_days)
    selected = sorted(
        (t for t in tasks if not t.completed and today <= t.scheduled_date <= until),
        key=lambda t: (t.scheduled_date, not t.is_critical, t.id or 0),
    )
    return UpcomingTasks(
        window_days=window_days,
        tasks=[DailyTaskRead.model_validate(t) for t in selected],
        count=len(selected),
    )


def compute_statistics(tasks: Iterable[Any], today: date) -> TaskStatistics:
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    critical = sum(1 for t in tasks if t.is_critical)
    completed_critical = sum(1 for t in tasks if t.is_critical and t.completed)

    return TaskStatistics(
        total_tasks=total,
        completed_tasks=completed,
        critical_tasks=critical,
        completed_critical_tasks=completed_critical,
        overdue_tasks=sum(1 for t in tasks if not t.completed and t.scheduled_date < today),
        today_pending_tasks=sum(1 for t in tasks if not t.completed and t.scheduled_date == today),
        completion_percentage=percentage(completed, total),
        critical_completion_percentage=percentage(completed_critical, critical),
    )


def category_breakdown(tasks: Iterable[Any]) -> List[CategoryStats]:
    totals: Dict[str, List[int]] = {}
    for task in tasks:
        counts = totals.setdefault(task.category, [0, 0])
        counts[0] += 1
        if task.completed:
            counts[1] += 1

    return [
        CategoryStats(category=category, total=total, completed=done)
        for category, (total, done) in sorted(totals.items())
    ]
