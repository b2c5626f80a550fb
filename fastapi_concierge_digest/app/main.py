import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.core.config import settings
from app.core.scheduler import DailySummaryScheduler

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.state.summary_scheduler = None


@app.on_event("startup")
def _startup() -> None:
    if not settings.daily_summary_enabled:
        logger.info("일일 요약 스케줄러 비활성화 상태 (DAILY_SUMMARY_ENABLED=false)")
        return
    scheduler = DailySummaryScheduler()
    scheduler.start()
    app.state.summary_scheduler = scheduler


@app.on_event("shutdown")
def _shutdown() -> None:
    scheduler = app.state.summary_scheduler
    if scheduler is not None:
        scheduler.stop()
        app.state.summary_scheduler = None

@app.get("/", tags=["health"])
async def root() -> dict[str, str]:
    return {"message": f"{settings.app_name} ready"}
