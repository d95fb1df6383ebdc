from datetime import date, timedelta
from typing import List, Optional, Tuple, Union

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ecoloop.core.enums import PlanStatus
from ecoloop.core.errors import EcoLoopError
from ecoloop.core.logging import get_logger
from ecoloop.models.farm_plan import FarmPlan
from ecoloop.models.task import DailyTask
from ecoloop.schemas.farm_plan import (
    FarmPlanCreate,
    FarmPlanCreated,
    FarmPlanDetail,
    FarmPlanListItem,
    FarmPlanRead,
    FarmPlanUpdate,
)
from ecoloop.schemas.planning import InsufficientResources, PlanningInput, Recommendation
from ecoloop.services import task_service
from ecoloop.services.calculator import FarmCalculator
from ecoloop.services.task_generator import TaskGenerator, percentage

logger = get_logger(module="farm_plan_service")


def _planning_input(plan: FarmPlan) -> PlanningInput:
    return PlanningInput(
        budget=plan.budget,
        space_m2=plan.space_m2,
        experience_level=plan.experience_level,
        duration_days=plan.duration_days,
    )


def create_farm_plan(
    db: Session,
    user_id: str,
    plan_in: FarmPlanCreate,
    calculator: Optional[FarmCalculator] = None,
    generator: Optional[TaskGenerator] = None,
    start_date: Optional[date] = None,
) -> Union[FarmPlanCreated, InsufficientResources]:
    """
    Computes the recommendation, stores the plan and tries to generate its
    tasks. A failed generation is logged and reported, the plan is kept.
    """
    calculator = calculator or FarmCalculator()
    recommendation = calculator.compute_recommendation(
        PlanningInput(**plan_in.model_dump(include=set(PlanningInput.model_fields)))
    )
    if not recommendation.success:
        return recommendation

    start = start_date or date.today()
    db_obj = FarmPlan(
        user_id=user_id,
        plan_name=plan_in.plan_name,
        budget=plan_in.budget,
        space_m2=plan_in.space_m2,
        experience_level=plan_in.experience_level.value,
        duration_days=plan_in.duration_days,
        recommended_flock_size=recommendation.flock_size,
        start_date=start,
        end_date=start + timedelta(days=plan_in.duration_days),
        status=PlanStatus.ACTIVE.value,
        notes=plan_in.notes,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)

    logger.info(
        "Farm plan created in service",
        farm_plan_id=db_obj.id,
        user_id=user_id,
        flock_size=db_obj.recommended_flock_size,
    )

    tasks_count = 0
    tasks_generated = False
    try:
        tasks = task_service.generate_tasks_for_plan(db, db_obj, generator)
        tasks_count = len(tasks)
        tasks_generated = True
    except EcoLoopError as exc:
        logger.warning(
            "Task generation failed, farm plan kept",
            farm_plan_id=db_obj.id,
            error=str(exc),
            context=exc.context,
        )

    return FarmPlanCreated(
        farm_plan=FarmPlanRead.model_validate(db_obj),
        recommendation=recommendation,
        tasks_generated=tasks_generated,
        tasks_count=tasks_count,
    )


def get_farm_plan(db: Session, user_id: str, farm_plan_id: int) -> Optional[FarmPlan]:
    plan = (
        db.query(FarmPlan)
        .filter(FarmPlan.id == farm_plan_id, FarmPlan.user_id == user_id)
        .first()
    )
    # The not found is logged by the router
    return plan


def list_farm_plans(
    db: Session,
    user_id: str,
    skip: int = 0,
    limit: int = 100,
) -> List[FarmPlanListItem]:
    completed = func.sum(case((DailyTask.completed, 1), else_=0))
    rows: List[Tuple[FarmPlan, int, Optional[int]]] = (
        db.query(FarmPlan, func.count(DailyTask.id), completed)
        .outerjoin(DailyTask, DailyTask.farm_plan_id == FarmPlan.id)
        .filter(FarmPlan.user_id == user_id)
        .group_by(FarmPlan.id)
        .order_by(FarmPlan.created_at.desc(), FarmPlan.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    items = []
    for plan, total, done in rows:
        done = done or 0
        items.append(
            FarmPlanListItem(
                **FarmPlanRead.model_validate(plan).model_dump(),
                total_tasks=total,
                completed_tasks=done,
                progress_percentage=percentage(done, total),
            )
        )
    return items


def get_farm_plan_detail(
    db: Session,
    user_id: str,
    farm_plan_id: int,
    calculator: Optional[FarmCalculator] = None,
    today: Optional[date] = None,
) -> Optional[FarmPlanDetail]:
    plan = get_farm_plan(db, user_id, farm_plan_id)
    if not plan:
        return None

    calculator = calculator or FarmCalculator()
    recommendation = calculator.compute_recommendation(_planning_input(plan))

    return FarmPlanDetail(
        farm_plan=FarmPlanRead.model_validate(plan),
        task_statistics=task_service.get_statistics(db, plan.id, today),
        recommendation=recommendation if isinstance(recommendation, Recommendation) else None,
    )


def update_farm_plan(
    db: Session,
    user_id: str,
    farm_plan_id: int,
    plan_in: FarmPlanUpdate,
) -> Optional[FarmPlan]:
    db_obj = get_farm_plan(db, user_id, farm_plan_id)
    if not db_obj:
        logger.warning(
            "Update of missing farm plan in service",
            farm_plan_id=farm_plan_id,
        )
        return None

    update_data = plan_in.model_dump(exclude_unset=True, mode="json")
    for field, value in update_data.items():
        if value is None and field != "notes":
            continue
        setattr(db_obj, field, value)

    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)

    logger.info(
        "Farm plan updated in service",
        farm_plan_id=farm_plan_id,
    )

    return db_obj


def delete_farm_plan(db: Session, user_id: str, farm_plan_id: int) -> bool:
    db_obj = get_farm_plan(db, user_id, farm_plan_id)
    if not db_obj:
        logger.warning(
            "Delete of missing farm plan in service",
            farm_plan_id=farm_plan_id,
        )
        return False

    # Tasks and the generation marker go with it (cascade)
    db.delete(db_obj)
    db.commit()

    logger.info(
        "Farm plan deleted in service",
        farm_plan_id=farm_plan_id,
    )

    return True
