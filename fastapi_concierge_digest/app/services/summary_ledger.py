from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.domain import UserNotificationPreference

logger = logging.getLogger(__name__)


def get_last_sent_local_date(db: Session, preference_id: int) -> str | None:
    return db.scalar(
        select(UserNotificationPreference.last_daily_summary_local_date).where(
            UserNotificationPreference.id == preference_id
        )
    )


def record_summary_sent(
    db: Session,
    preference_id: int,
    local_date: str,
    *,
    expected_previous: str | None,
    sent_at: datetime | None = None,
) -> bool:
    """
    발송 성공 후 현지 날짜를 기록한다 (compare-and-set).

    저장된 값이 expected_previous 와 같을 때만 갱신한다. 다른 프로세스가 먼저
    기록했으면 False 를 돌려주고 아무것도 바꾸지 않는다.
    """
    if expected_previous == local_date:
        return False

    column = UserNotificationPreference.last_daily_summary_local_date
    guard = column.is_(None) if expected_previous is None else column == expected_previous
    result = db.execute(
        update(UserNotificationPreference)
        .where(UserNotificationPreference.id == preference_id, guard)
        .values(
            last_daily_summary_local_date=local_date,
            last_daily_summary_sent_at=sent_at or datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if result.rowcount != 1:
        logger.warning(
            "일일 요약 발송 기록 충돌 (preference_id=%s, local_date=%s, expected=%s, stored=%s)",
            preference_id,
            local_date,
            expected_previous,
            get_last_sent_local_date(db, preference_id),
        )
        return False
    return True
