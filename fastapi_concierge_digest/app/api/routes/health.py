from fastapi import APIRouter, Depends

from app.api import deps
from app.core.scheduler import DailySummaryScheduler

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/ping")
async def ping(
    scheduler: DailySummaryScheduler | None = Depends(deps.get_summary_scheduler),
) -> dict[str, str]:
    running = scheduler is not None and scheduler.running
    return {"status": "ok", "daily_summary": "running" if running else "stopped"}
