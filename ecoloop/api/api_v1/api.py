# ecoloop/api/api_v1/api.py
from fastapi import APIRouter

from ecoloop.api.api_v1.routers import (
    farm_plans,
    tasks,
)

api_router = APIRouter()

api_router.include_router(farm_plans.router)
api_router.include_router(tasks.router)
