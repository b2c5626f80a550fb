from fastapi import APIRouter

from . import daily_summary, health

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(daily_summary.router)
