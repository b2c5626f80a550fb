from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from enum import Enum

from sqlalchemy.orm import Session

from app.models.domain import Tenant
from app.schemas.daily_summary import RenderedSummary
from app.services.activity_service import collect_daily_activity
from app.services.due_check_service import evaluate_due
from app.services.email_service import EmailClient, EmailSendResult
from app.services.recipient_service import SummaryRecipient, resolve_timezone
from app.services.summary_ledger import record_summary_sent
from app.services.summary_renderer import render_daily_summary

logger = logging.getLogger(__name__)


class SummaryOutcome(str, Enum):
    NOT_DUE = "NOT_DUE"
    SENT = "SENT"
    SEND_FAILED = "SEND_FAILED"
    LEDGER_CONFLICT = "LEDGER_CONFLICT"


def process_recipient(
    db: Session,
    recipient: SummaryRecipient,
    *,
    now: datetime,
    email_client: EmailClient,
) -> SummaryOutcome:
    """
    수신자 1명에 대한 판정 → 집계 → 렌더링 → 발송 → 기록.

    발송 실패 시 기록을 남기지 않으므로 같은 현지 날짜의 다음 틱에서 다시 시도된다.
    집계 조회 오류는 호출자에게 전달된다.
    """
    check = evaluate_due(recipient, now)
    if not check.due:
        logger.debug(
            "일일 요약 발송 대상 아님 (user_id=%s, reason=%s, local=%s)",
            recipient.user_id,
            check.reason.value,
            check.local_now.strftime("%Y-%m-%d %H:%M"),
        )
        return SummaryOutcome.NOT_DUE

    logger.info(
        "일일 요약 발송 시작 (user_id=%s, local=%s %s)",
        recipient.user_id,
        check.local_now.strftime("%Y-%m-%d %H:%M"),
        recipient.timezone_name,
    )
    rendered = build_daily_summary(
        db,
        tenant_id=recipient.tenant_id,
        display_name=recipient.display_name,
        tz=recipient.timezone,
        now=now,
    )
    result = email_client.send(recipient.email, rendered.subject, rendered.html)
    if not result.success:
        logger.warning(
            "일일 요약 발송 실패, 다음 틱에서 재시도 (user_id=%s): %s",
            recipient.user_id,
            result.error,
        )
        return SummaryOutcome.SEND_FAILED

    recorded = record_summary_sent(
        db,
        recipient.preference_id,
        check.local_date,
        expected_previous=recipient.last_sent_local_date,
        sent_at=_as_utc(now),
    )
    if not recorded:
        return SummaryOutcome.LEDGER_CONFLICT
    logger.info(
        "일일 요약 발송 완료 (user_id=%s, local_date=%s, message_id=%s)",
        recipient.user_id,
        check.local_date,
        result.message_id,
    )
    return SummaryOutcome.SENT


def build_daily_summary(
    db: Session,
    *,
    tenant_id: int,
    display_name: str,
    tz: tzinfo,
    now: datetime | None = None,
) -> RenderedSummary:
    tenant = db.get(Tenant, tenant_id)
    if not tenant:
        raise ValueError("테넌트를 찾을 수 없습니다.")

    current = _as_utc(now or datetime.now(timezone.utc))
    activity = collect_daily_activity(db, tenant_id, now=current)
    return render_daily_summary(
        activity,
        display_name=display_name,
        company_name=tenant.company_name or tenant.name,
        report_date=current.astimezone(tz).date(),
        tz=tz,
    )


def send_summary_now(
    db: Session,
    *,
    destination: str,
    tenant_id: int,
    email_client: EmailClient,
    display_name: str | None = None,
    timezone_name: str | None = None,
    now: datetime | None = None,
) -> EmailSendResult:
    """
    스케줄과 무관하게 즉시 요약을 발송한다 (관리자 미리보기/강제 발송).

    발송 기록(last_daily_summary_local_date)은 건드리지 않는다.
    """
    tz = resolve_timezone(timezone_name)
    rendered = build_daily_summary(
        db,
        tenant_id=tenant_id,
        display_name=display_name or "Test User",
        tz=tz,
        now=now,
    )
    logger.info("일일 요약 즉시 발송 (to=%s, tenant_id=%s)", destination, tenant_id)
    return email_client.send(destination, rendered.subject, rendered.html)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
