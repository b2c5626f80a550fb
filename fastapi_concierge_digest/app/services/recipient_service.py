from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.codes import TenantStatus
from app.core.config import settings
from app.core.weekdays import format_weekdays, parse_weekdays
from app.models.domain import Tenant, User, UserNotificationPreference

logger = logging.getLogger(__name__)


class RecipientConfigError(ValueError):
    """수신자 설정 오류 (이메일 누락, 잘못된 요일/시간대 등)."""


@dataclass(frozen=True)
class SummaryRecipient:
    preference_id: int
    user_id: int
    tenant_id: int
    email: str
    display_name: str
    delivery_time: time
    weekdays: frozenset[int]
    timezone: ZoneInfo
    last_sent_local_date: str | None = None

    @property
    def timezone_name(self) -> str:
        return self.timezone.key


def load_summary_recipients(db: Session) -> list[SummaryRecipient]:
    """
    일일 요약이 활성화된 모든 수신자를 조회한다.

    시간 필터링은 하지 않는다. 설정 오류가 있는 수신자는 경고 로그 후 제외한다.
    """
    rows = db.execute(
        select(UserNotificationPreference, User)
        .join(User, User.id == UserNotificationPreference.user_id)
        .join(Tenant, Tenant.id == User.tenant_id)
        .where(
            UserNotificationPreference.daily_summary_enabled.is_(True),
            User.is_active.is_(True),
            Tenant.status == TenantStatus.ACTIVE.value,
        )
        .order_by(UserNotificationPreference.id.asc())
    ).all()

    recipients: list[SummaryRecipient] = []
    for preference, user in rows:
        try:
            recipients.append(build_recipient(preference, user))
        except RecipientConfigError as exc:
            logger.warning(
                "일일 요약 수신자 설정 오류로 제외 (user_id=%s, preference_id=%s): %s",
                user.id,
                preference.id,
                exc,
            )
        except Exception:  # noqa: BLE001
            logger.exception(
                "일일 요약 수신자 로드 실패로 제외 (user_id=%s, preference_id=%s)",
                user.id,
                preference.id,
            )
    return recipients


def build_recipient(preference: UserNotificationPreference, user: User) -> SummaryRecipient:
    email = (user.email or "").strip()
    if not email:
        raise RecipientConfigError("수신 이메일 주소가 없습니다.")

    try:
        weekdays = parse_weekdays(preference.daily_summary_days)
    except ValueError as exc:
        raise RecipientConfigError(str(exc)) from exc

    recipient = SummaryRecipient(
        preference_id=preference.id,
        user_id=user.id,
        tenant_id=user.tenant_id,
        email=email,
        display_name=user.full_name or email,
        delivery_time=normalize_delivery_time(preference.daily_summary_time),
        weekdays=weekdays,
        timezone=resolve_timezone(preference.timezone),
        last_sent_local_date=preference.last_daily_summary_local_date,
    )
    logger.debug(
        "일일 요약 수신자 로드 (user_id=%s, time=%s, days=%s, tz=%s)",
        recipient.user_id,
        recipient.delivery_time.strftime("%H:%M"),
        format_weekdays(recipient.weekdays),
        recipient.timezone_name,
    )
    return recipient


def resolve_timezone(name: str | None) -> ZoneInfo:
    tz_name = (name or "").strip() or settings.daily_summary_default_timezone
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # "America" 같은 디렉터리 이름은 IsADirectoryError (OSError)
        raise RecipientConfigError(f"알 수 없는 시간대입니다: {tz_name}") from exc


def normalize_delivery_time(value: time | str | None) -> time:
    """분 단위로 정규화한다. DB 에 따라 초가 붙어 오는 경우가 있다."""
    if value is None:
        value = settings.daily_summary_default_time
    if isinstance(value, time):
        return time(value.hour, value.minute)
    parts = str(value).strip().split(":")
    try:
        hour, minute = int(parts[0]), int(parts[1])
        return time(hour, minute)
    except (IndexError, ValueError) as exc:
        raise RecipientConfigError(f"발송 시각 형식 오류: {value!r}") from exc
