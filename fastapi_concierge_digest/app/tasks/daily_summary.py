from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.schemas.daily_summary import SummaryPassResult
from app.services.daily_summary_service import SummaryOutcome, process_recipient
from app.services.email_service import EmailClient, ResendEmailClient
from app.services.recipient_service import load_summary_recipients

logger = logging.getLogger(__name__)


def run_daily_summary_pass(
    *,
    session_factory: Callable[[], Session] = SessionLocal,
    email_client: EmailClient | None = None,
    now: datetime | None = None,
) -> SummaryPassResult:
    """활성화된 모든 수신자에 대해 1회 판정/발송. 수신자별 오류는 격리된다."""
    client = email_client or ResendEmailClient()
    current = now or datetime.now(timezone.utc)

    session = session_factory()
    try:
        recipients = load_summary_recipients(session)
    finally:
        session.close()

    result = SummaryPassResult(checked=len(recipients))
    for recipient in recipients:
        session = session_factory()
        try:
            outcome = process_recipient(session, recipient, now=current, email_client=client)
        except Exception:  # noqa: BLE001
            session.rollback()
            result.failed += 1
            logger.exception(
                "일일 요약 처리 실패 (user_id=%s, tenant_id=%s)",
                recipient.user_id,
                recipient.tenant_id,
            )
            continue
        finally:
            session.close()

        if outcome is SummaryOutcome.NOT_DUE:
            continue
        result.due += 1
        if outcome is SummaryOutcome.SENT:
            result.sent += 1
        elif outcome is SummaryOutcome.SEND_FAILED:
            result.failed += 1
        else:
            result.conflicts += 1

    if result.due or result.failed:
        logger.info(
            "일일 요약 처리 완료 (checked=%s, due=%s, sent=%s, failed=%s, conflicts=%s)",
            result.checked,
            result.due,
            result.sent,
            result.failed,
            result.conflicts,
        )
    return result
