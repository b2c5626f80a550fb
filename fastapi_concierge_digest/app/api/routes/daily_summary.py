from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.api import deps
from app.core.config import settings
from app.core.roles import DEFAULT_WRITE_ROLES
from app.core.scheduler import DailySummaryScheduler
from app.db.session import get_db
from app.schemas.daily_summary import SchedulerStatus, SendNowRequest, SendNowResponse
from app.services.daily_summary_service import build_daily_summary, send_summary_now
from app.services.email_service import EmailClient
from app.services.recipient_service import RecipientConfigError, resolve_timezone

router = APIRouter(prefix="/daily-summary", tags=["daily-summary"])


@router.post("/send-now", response_model=SendNowResponse)
def send_now_endpoint(
    payload: SendNowRequest,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(deps.get_email_client),
    current_user: deps.AuthenticatedUser = Depends(deps.require_roles(DEFAULT_WRITE_ROLES)),
):
    """
    스케줄과 무관하게 일일 요약을 즉시 발송한다. 발송 기록은 갱신하지 않는다.
    """
    deps.ensure_tenant_access(current_user, payload.tenant_id)
    try:
        result = send_summary_now(
            db,
            destination=payload.email,
            tenant_id=payload.tenant_id,
            display_name=payload.user_name,
            timezone_name=payload.timezone,
            email_client=email_client,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SendNowResponse(sent=result.success, message_id=result.message_id, error=result.error)


@router.get("/preview", response_class=HTMLResponse)
def preview_endpoint(
    tenant_id: int,
    timezone: str | None = Query(default=None, description="IANA 시간대"),
    user_name: str | None = Query(default=None, max_length=255),
    db: Session = Depends(get_db),
    current_user: deps.AuthenticatedUser = Depends(deps.require_roles(DEFAULT_WRITE_ROLES)),
):
    """발송 없이 렌더링 결과만 돌려준다."""
    deps.ensure_tenant_access(current_user, tenant_id)
    try:
        tz = resolve_timezone(timezone)
    except RecipientConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        rendered = build_daily_summary(
            db,
            tenant_id=tenant_id,
            display_name=user_name or current_user.user.full_name,
            tz=tz,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return HTMLResponse(content=rendered.html)


@router.get("/scheduler", response_model=SchedulerStatus)
def scheduler_status_endpoint(
    scheduler: DailySummaryScheduler | None = Depends(deps.get_summary_scheduler),
    current_user: deps.AuthenticatedUser = Depends(deps.require_roles(DEFAULT_WRITE_ROLES)),
):
    if scheduler is None:
        return SchedulerStatus(
            running=False,
            interval_seconds=settings.daily_summary_interval_seconds,
        )
    return scheduler.status()
