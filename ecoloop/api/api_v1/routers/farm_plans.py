from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ecoloop.api.deps import get_calculator, get_current_user_id, get_task_generator
from ecoloop.core.logging import get_logger
from ecoloop.db import get_db
from ecoloop.schemas.farm_plan import (
    FarmPlanCreate,
    FarmPlanCreated,
    FarmPlanDetail,
    FarmPlanListItem,
    FarmPlanRead,
    FarmPlanUpdate,
)
from ecoloop.schemas.planning import InsufficientResources, PlanningInput, Recommendation
from ecoloop.services import farm_plan_service
from ecoloop.services.calculator import FarmCalculator
from ecoloop.services.task_generator import TaskGenerator

router = APIRouter(prefix="/farm-plans", tags=["farm-plans"])
logger = get_logger(module="farm_plans")


def _insufficient(result: InsufficientResources) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=result.model_dump(),
    )


@router.post(
    "/calculate",
    response_model=Recommendation,
    responses={400: {"model": InsufficientResources}},
)
def calculate(
    planning_in: PlanningInput,
    calculator: FarmCalculator = Depends(get_calculator),
    user_id: str = Depends(get_current_user_id),
):
    result = calculator.compute_recommendation(planning_in)
    if not result.success:
        logger.warning("Insufficient resources for plan", user_id=user_id)
        return _insufficient(result)

    logger.info(
        "Recommendation calculated",
        user_id=user_id,
        flock_size=result.flock_size,
        cycle_type=result.cycle_type.value,
    )
    return result


@router.post(
    "/",
    response_model=FarmPlanCreated,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": InsufficientResources}},
)
def create_farm_plan(
    plan_in: FarmPlanCreate,
    db: Session = Depends(get_db),
    calculator: FarmCalculator = Depends(get_calculator),
    generator: TaskGenerator = Depends(get_task_generator),
    user_id: str = Depends(get_current_user_id),
):
    result = farm_plan_service.create_farm_plan(
        db=db,
        user_id=user_id,
        plan_in=plan_in,
        calculator=calculator,
        generator=generator,
    )
    if isinstance(result, InsufficientResources):
        logger.warning("Farm plan refused, insufficient resources", user_id=user_id)
        return _insufficient(result)

    logger.info(
        "Farm plan created",
        farm_plan_id=result.farm_plan.id,
        tasks_count=result.tasks_count,
    )
    return result


@router.get("/", response_model=List[FarmPlanListItem])
def list_farm_plans(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    plans = farm_plan_service.list_farm_plans(db=db, user_id=user_id, skip=skip, limit=limit)
    logger.info(
        "Listing farm plans",
        user_id=user_id,
        skip=skip,
        limit=limit,
        plans_count=len(plans),
    )
    return plans


@router.get("/{farm_plan_id}", response_model=FarmPlanDetail)
def get_farm_plan(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    calculator: FarmCalculator = Depends(get_calculator),
    user_id: str = Depends(get_current_user_id),
):
    detail = farm_plan_service.get_farm_plan_detail(
        db=db, user_id=user_id, farm_plan_id=farm_plan_id, calculator=calculator
    )
    if not detail:
        logger.warning("Farm plan not found", farm_plan_id=farm_plan_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Farm plan not found",
        )

    logger.info(
        "Farm plan retrieved",
        farm_plan_id=farm_plan_id,
    )
    return detail


@router.patch("/{farm_plan_id}", response_model=FarmPlanRead)
def update_farm_plan(
    farm_plan_id: int,
    plan_in: FarmPlanUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    plan = farm_plan_service.update_farm_plan(
        db=db, user_id=user_id, farm_plan_id=farm_plan_id, plan_in=plan_in
    )
    if not plan:
        logger.warning("Update of missing farm plan", farm_plan_id=farm_plan_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Farm plan not found",
        )

    logger.info(
        "Farm plan updated",
        farm_plan_id=farm_plan_id,
    )
    return plan


@router.delete("/{farm_plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_farm_plan(
    farm_plan_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    deleted = farm_plan_service.delete_farm_plan(db=db, user_id=user_id, farm_plan_id=farm_plan_id)
    if not deleted:
        logger.warning("Delete of missing farm plan", farm_plan_id=farm_plan_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Farm plan not found",
        )

    logger.info(
        "Farm plan deleted",
        farm_plan_id=farm_plan_id,
    )
