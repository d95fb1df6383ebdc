from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ecoloop.core.config import settings
from ecoloop.core.errors import AlreadyCompleted, AlreadyGenerated, NotFoundOrForbidden
from ecoloop.core.logging import get_logger
from ecoloop.models.farm_plan import FarmPlan
from ecoloop.models.task import DailyTask, TaskGenerationMarker, TaskTemplate
from ecoloop.schemas.task import (
    TaskCalendar,
    TaskOverview,
    TaskStatistics,
    TaskStatisticsReport,
    TodaysTasks,
    UpcomingTasks,
)
from ecoloop.services import task_generator
from ecoloop.services.task_generator import TaskGenerator

logger = get_logger(module="task_service")


# ---------- catalog ----------

def list_templates(db: Session, cycle_type: Optional[str] = None) -> List[TaskTemplate]:
    query = db.query(TaskTemplate)
    if cycle_type is not None:
        query = query.filter(TaskTemplate.duration_type == cycle_type)
    return query.order_by(TaskTemplate.day_number, TaskTemplate.id).all()


# ---------- generation ----------

def has_tasks(db: Session, farm_plan_id: int) -> bool:
    if db.get(TaskGenerationMarker, farm_plan_id) is not None:
        return True
    return (
        db.query(DailyTask.id)
        .filter(DailyTask.farm_plan_id == farm_plan_id)
        .first()
        is not None
    )


def generate_tasks_for_plan(
    db: Session,
    farm_plan: FarmPlan,
    generator: Optional[TaskGenerator] = None,
) -> List[DailyTask]:
    """
    Generates and stores the task calendar of ``farm_plan``, at most once.

    The marker row and the tasks are committed together; a concurrent
    generation for the same plan fails on the marker's primary key.

    Raises:
        AlreadyGenerated: the plan already has tasks.
        NoTemplatesFound: the catalog has nothing for the plan's cycle.
    """
    if has_tasks(db, farm_plan.id):
        logger.warning("Task generation refused, tasks exist", farm_plan_id=farm_plan.id)
        raise AlreadyGenerated(farm_plan.id)

    generator = generator or TaskGenerator()
    catalog = list_templates(db, farm_plan.cycle_type.value)
    generated = generator.generate_tasks(farm_plan, catalog)

    rows = [DailyTask(**task.model_dump()) for task in generated]
    db.add(TaskGenerationMarker(farm_plan_id=farm_plan.id, task_count=len(rows)))
    db.add_all(rows)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent task generation lost the race", farm_plan_id=farm_plan.id)
        raise AlreadyGenerated(farm_plan.id)

    for row in rows:
        db.refresh(row)

    logger.info(
        "Tasks stored in service",
        farm_plan_id=farm_plan.id,
        tasks_count=len(rows),
    )
    return rows


# ---------- queries ----------

def get_tasks(db: Session, farm_plan_id: int) -> List[DailyTask]:
    return (
        db.query(DailyTask)
        .filter(DailyTask.farm_plan_id == farm_plan_id)
        .order_by(DailyTask.day_number, DailyTask.is_critical.desc(), DailyTask.id)
        .all()
    )


def get_task_calendar(db: Session, farm_plan_id: int, today: Optional[date] = None) -> TaskCalendar:
    return task_generator.tasks_by_day(get_tasks(db, farm_plan_id), today or date.today())


def get_task_overview(db: Session, farm_plan_id: int, today: Optional[date] = None) -> TaskOverview:
    today = today or date.today()
    tasks = get_tasks(db, farm_plan_id)
    calendar = task_generator.tasks_by_day(tasks, today)
    return TaskOverview(
        **calendar.model_dump(),
        statistics=task_generator.compute_statistics(tasks, today),
    )


def get_todays_tasks(db: Session, farm_plan_id: int, today: Optional[date] = None) -> TodaysTasks:
    today = today or date.today()
    tasks = (
        db.query(DailyTask)
        .filter(DailyTask.farm_plan_id == farm_plan_id, DailyTask.scheduled_date == today)
        .all()
    )
    return task_generator.todays_tasks(tasks, today)


def get_upcoming_tasks(
    db: Session,
    farm_plan_id: int,
    today: Optional[date] = None,
    window_days: Optional[int] = None,
) -> UpcomingTasks:
    window = window_days if window_days is not None else settings.UPCOMING_WINDOW_DAYS
    return task_generator.upcoming_tasks(
        get_tasks(db, farm_plan_id), today or date.today(), window
    )


def get_statistics(db: Session, farm_plan_id: int, today: Optional[date] = None) -> TaskStatistics:
    return task_generator.compute_statistics(get_tasks(db, farm_plan_id), today or date.today())


def get_statistics_report(
    db: Session,
    farm_plan_id: int,
    today: Optional[date] = None,
) -> TaskStatisticsReport:
    tasks = get_tasks(db, farm_plan_id)
    return TaskStatisticsReport(
        overall_statistics=task_generator.compute_statistics(tasks, today or date.today()),
        category_breakdown=task_generator.category_breakdown(tasks),
    )


# ---------- mutations ----------

def get_owned_task(db: Session, task_id: int, actor_id: str) -> DailyTask:
    """
    Raises NotFoundOrForbidden both when the task is missing and when its
    plan belongs to someone else.
    """
    task = (
        db.query(DailyTask)
        .join(FarmPlan, DailyTask.farm_plan_id == FarmPlan.id)
        .filter(DailyTask.id == task_id, FarmPlan.user_id == actor_id)
        .first()
    )
    if not task:
        raise NotFoundOrForbidden("Task not found", task_id=task_id)
    return task


def complete_task(
    db: Session,
    task_id: int,
    actor_id: str,
    notes: Optional[str] = None,
    photo_ref: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DailyTask:
    task = get_owned_task(db, task_id, actor_id)
    if task.completed:
        logger.warning("Task already completed", task_id=task_id)
        raise AlreadyCompleted(task_id)

    values = {
        "completed": True,
        "completed_at": now or datetime.now(timezone.utc),
    }
    if notes is not None:
        values["notes"] = notes
    if photo_ref is not None:
        values["photo_ref"] = photo_ref

    # Conditional write: only one of two racing completions matches the row
    result = db.execute(
        update(DailyTask)
        .where(DailyTask.id == task_id, DailyTask.completed == False)  # noqa: E712
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.warning("Task completed concurrently", task_id=task_id)
        raise AlreadyCompleted(task_id)

    db.commit()
    db.refresh(task)

    logger.info(
        "Task completed in service",
        task_id=task_id,
        farm_plan_id=task.farm_plan_id,
    )
    return task


def annotate_task(db: Session, task_id: int, actor_id: str, notes: Optional[str]) -> DailyTask:
    task = get_owned_task(db, task_id, actor_id)
    task.notes = notes
    db.add(task)
    db.commit()
    db.refresh(task)

    logger.info("Task notes updated in service", task_id=task_id)
    return task


def attach_photo(db: Session, task_id: int, actor_id: str, photo_ref: str) -> DailyTask:
    task = get_owned_task(db, task_id, actor_id)
    task.photo_ref = photo_ref
    db.add(task)
    db.commit()
    db.refresh(task)

    logger.info("Task photo attached in service", task_id=task_id, photo_ref=photo_ref)
    return task
