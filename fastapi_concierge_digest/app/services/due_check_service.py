from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from app.core.weekdays import local_weekday
from app.services.recipient_service import SummaryRecipient


class DueCheckReason(str, Enum):
    DUE = "DUE"
    WEEKDAY_EXCLUDED = "WEEKDAY_EXCLUDED"
    ALREADY_SENT = "ALREADY_SENT"
    TOO_EARLY = "TOO_EARLY"


@dataclass(frozen=True)
class DueCheckResult:
    due: bool
    reason: DueCheckReason
    local_now: datetime
    local_date: str


def evaluate_due(recipient: SummaryRecipient, now: datetime) -> DueCheckResult:
    """
    현재 시각 기준으로 수신자에게 일일 요약을 보내야 하는지 판정한다.

    - 시각 비교는 "설정 시각 이상" 조건 (정확히 일치 X).
    - 중복 방지는 현지 날짜 문자열 비교로만 한다 (instant 비교 X).
    """
    local_now = to_local(now, recipient)
    local_date = local_now.date().isoformat()

    if local_weekday(local_now) not in recipient.weekdays:
        return DueCheckResult(False, DueCheckReason.WEEKDAY_EXCLUDED, local_now, local_date)

    if recipient.last_sent_local_date == local_date:
        return DueCheckResult(False, DueCheckReason.ALREADY_SENT, local_now, local_date)

    if local_now.replace(tzinfo=None).time() < recipient.delivery_time:
        return DueCheckResult(False, DueCheckReason.TOO_EARLY, local_now, local_date)

    return DueCheckResult(True, DueCheckReason.DUE, local_now, local_date)


def to_local(now: datetime, recipient: SummaryRecipient) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(recipient.timezone)
