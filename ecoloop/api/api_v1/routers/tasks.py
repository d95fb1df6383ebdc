from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ecoloop.api.deps import get_current_user_id, get_task_generator
from ecoloop.core.errors import (
    AlreadyCompleted,
    AlreadyGenerated,
    NoTemplatesFound,
    NotFoundOrForbidden,
)
from ecoloop.core.logging import get_logger
from ecoloop.db import get_db
from ecoloop.models.farm_plan import FarmPlan
from ecoloop.schemas.task import (
    DailyTaskRead,
    GenerationResult,
    TaskCompleteRequest,
    TaskNotesUpdate,
    TaskOverview,
    TaskPhotoAttach,
    TaskStatisticsReport,
    TodaysTasks,
    UpcomingTasks,
)
from ecoloop.services import farm_plan_service, task_service
from ecoloop.services.task_generator import TaskGenerator

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = get_logger(module="tasks")


# ---------- internal helpers ----------

def _owned_plan(db: Session, user_id: str, farm_plan_id: int) -> FarmPlan:
    plan = farm_plan_service.get_farm_plan(db=db, user_id=user_id, farm_plan_id=farm_plan_id)
    if not plan:
        logger.warning("Farm plan not found", farm_plan_id=farm_plan_id, user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Farm plan not found",
        )
    return plan


def _task_not_found(task_id: int) -> HTTPException:
    logger.warning("Task not found", task_id=task_id)
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


# ---------- per plan ----------

@router.post(
    "/plans/{farm_plan_id}/generate",
    response_model=GenerationResult,
    status_code=status.HTTP_201_CREATED,
)
def generate_tasks(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    generator: TaskGenerator = Depends(get_task_generator),
    user_id: str = Depends(get_current_user_id),
):
    plan = _owned_plan(db, user_id, farm_plan_id)
    try:
        tasks = task_service.generate_tasks_for_plan(db, plan, generator)
    except AlreadyGenerated:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tasks have already been generated for this plan",
        )
    except NoTemplatesFound as exc:
        logger.error(
            "No task templates for plan",
            farm_plan_id=farm_plan_id,
            error=str(exc),
            context=exc.context,
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    logger.info("Tasks generated", farm_plan_id=farm_plan_id, tasks_count=len(tasks))
    return GenerationResult(
        generated_count=len(tasks),
        task_summary=task_service.get_task_calendar(db, farm_plan_id),
    )


@router.get("/plans/{farm_plan_id}", response_model=TaskOverview)
def get_plan_tasks(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    _owned_plan(db, user_id, farm_plan_id)
    overview = task_service.get_task_overview(db, farm_plan_id)
    logger.info("Tasks retrieved", farm_plan_id=farm_plan_id, tasks_count=overview.total_tasks)
    return overview


@router.get("/plans/{farm_plan_id}/today", response_model=TodaysTasks)
def get_todays_tasks(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    _owned_plan(db, user_id, farm_plan_id)
    return task_service.get_todays_tasks(db, farm_plan_id)


@router.get("/plans/{farm_plan_id}/upcoming", response_model=UpcomingTasks)
def get_upcoming_tasks(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    _owned_plan(db, user_id, farm_plan_id)
    return task_service.get_upcoming_tasks(db, farm_plan_id)


@router.get("/plans/{farm_plan_id}/statistics", response_model=TaskStatisticsReport)
def get_statistics(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    _owned_plan(db, user_id, farm_plan_id)
    return task_service.get_statistics_report(db, farm_plan_id)


# ---------- per task ----------

@router.post("/{task_id}/complete", response_model=DailyTaskRead)
def complete_task(
    task_id: int,
    payload: Optional[TaskCompleteRequest] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    payload = payload or TaskCompleteRequest()
    try:
        task = task_service.complete_task(
            db,
            task_id,
            user_id,
            notes=payload.notes,
            photo_ref=payload.photo_ref,
        )
    except NotFoundOrForbidden:
        raise _task_not_found(task_id)
    except AlreadyCompleted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Task already completed",
        )

    logger.info("Task completed", task_id=task_id, user_id=user_id)
    return task


@router.put("/{task_id}", response_model=DailyTaskRead)
def update_task_notes(
    task_id: int,
    payload: TaskNotesUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        task = task_service.annotate_task(db, task_id, user_id, payload.notes)
    except NotFoundOrForbidden:
        raise _task_not_found(task_id)

    logger.info("Task notes updated", task_id=task_id)
    return task


@router.post("/{task_id}/photo", response_model=DailyTaskRead)
def attach_photo(
    task_id: int,
    payload: TaskPhotoAttach,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        task = task_service.attach_photo(db, task_id, user_id, payload.photo_ref)
    except NotFoundOrForbidden:
        raise _task_not_found(task_id)

    logger.info("Task photo attached", task_id=task_id)
    return task
