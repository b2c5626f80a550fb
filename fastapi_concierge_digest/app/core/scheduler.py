from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.schemas.daily_summary import SchedulerStatus, SummaryPassResult
from app.services.email_service import EmailClient, ResendEmailClient
from app.tasks.daily_summary import run_daily_summary_pass

logger = logging.getLogger(__name__)
JOB_ID = "daily_summary"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DailySummaryScheduler:
    """
    일일 요약 스케줄러. 컴포지션 루트(app.main)에서 생성/보관한다.

    start() 는 이미 실행 중이면 아무것도 하지 않고, stop() 은 여러 번 호출해도 안전하다.
    stop() 이후에는 새 패스를 시작하지 않는다 (진행 중인 패스는 끝까지 진행).
    """

    def __init__(
        self,
        *,
        interval_seconds: int | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
        email_client: EmailClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.interval_seconds = interval_seconds or settings.daily_summary_interval_seconds
        self.session_factory = session_factory
        self.email_client = email_client or ResendEmailClient()
        self.clock = clock
        self.last_tick_at: datetime | None = None
        self.last_result: SummaryPassResult | None = None
        self._scheduler: BackgroundScheduler | None = None
        self._lock = threading.Lock()
        # stop() 직후 start() 로 새 스케줄러가 생겨도 패스가 겹치지 않게 한다
        self._run_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        with self._lock:
            if self._scheduler is not None:
                logger.info("일일 요약 스케줄러가 이미 실행 중입니다.")
                return

            scheduler = BackgroundScheduler(timezone="UTC")
            scheduler.add_job(
                self._tick,
                IntervalTrigger(seconds=self.interval_seconds),
                id=JOB_ID,
                max_instances=1,
                replace_existing=True,
                coalesce=True,
            )
            scheduler.start()
            self._scheduler = scheduler
        logger.info("일일 요약 스케줄러 시작 (interval=%ss)", self.interval_seconds)

    def stop(self) -> None:
        with self._lock:
            scheduler = self._scheduler
            self._scheduler = None
        if scheduler is None:
            return
        scheduler.shutdown(wait=False)
        logger.info("일일 요약 스케줄러 종료")

    def run_once(self) -> SummaryPassResult | None:
        """
        틱 1회. 어떤 예외도 밖으로 내보내지 않는다.

        이전 패스가 아직 진행 중이면 건너뛰고 None 을 돌려준다.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("이전 일일 요약 패스가 진행 중이라 이번 틱을 건너뜁니다.")
            return None
        try:
            now = self.clock()
            self.last_tick_at = now
            try:
                result = run_daily_summary_pass(
                    session_factory=self.session_factory,
                    email_client=self.email_client,
                    now=now,
                )
            except Exception:  # noqa: BLE001
                logger.exception("일일 요약 틱 처리 실패 (now=%s)", now.isoformat())
                return None
            self.last_result = result
            return result
        finally:
            self._run_lock.release()

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.running,
            interval_seconds=self.interval_seconds,
            last_tick_at=self.last_tick_at,
            last_result=self.last_result,
        )

    def _tick(self) -> None:
        if not self.running:
            return
        self.run_once()
