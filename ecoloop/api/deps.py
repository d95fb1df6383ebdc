from typing import Optional

from fastapi import Header, HTTPException, status

from ecoloop.core.market import get_market_tables
from ecoloop.services.calculator import FarmCalculator
from ecoloop.services.task_generator import TaskGenerator


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # Set by the authenticating gateway in front of the API
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user",
        )
    return x_user_id


def get_calculator() -> FarmCalculator:
    return FarmCalculator(get_market_tables())


def get_task_generator() -> TaskGenerator:
    return TaskGenerator()
