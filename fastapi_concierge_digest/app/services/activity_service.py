from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.orm import Session

from app.core.codes import PENDING_CALL_STATUSES, AppointmentStatus, CallStatus
from app.core.config import settings
from app.models.domain import AppointmentStatusChange, CallSession, Contact
from app.schemas.daily_summary import (
    AppointmentItem,
    CallStats,
    DailyActivity,
    FollowUpCallItem,
)
from app.services.call_outcome_service import (
    FollowUpBucket,
    classify_call,
    follow_up_outcomes,
)

logger = logging.getLogger(__name__)

DEFAULT_APPOINTMENT_TYPE = "General Appointment"
UNKNOWN_CONTACT = "Unknown contact"
UPCOMING_HOURS = 24
TRACKED_TRANSITIONS = (
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.RESCHEDULED.value,
)


def collect_daily_activity(
    db: Session,
    tenant_id: int,
    *,
    now: datetime | None = None,
    window_hours: int | None = None,
    example_limit: int | None = None,
    upcoming_limit: int | None = None,
) -> DailyActivity:
    """
    테넌트의 최근 활동(통화, 예약 상태 변경)을 집계한다.

    활동이 없는 테넌트도 0/빈 목록으로 채워진 결과를 돌려준다.
    조회 오류는 호출자에게 그대로 전달한다.
    """
    window_end = _as_utc(now or datetime.now(timezone.utc))
    hours = window_hours if window_hours is not None else settings.daily_summary_window_hours
    window_start = window_end - timedelta(hours=hours)
    limit = example_limit if example_limit is not None else settings.daily_summary_example_limit
    upcoming = (
        upcoming_limit if upcoming_limit is not None else settings.daily_summary_upcoming_limit
    )

    stats = _call_stats(db, tenant_id, window_start, window_end)
    transitions = _transition_counts(db, tenant_id, window_start, window_end)
    stats.confirmed_appointments = transitions.get(AppointmentStatus.CONFIRMED.value, 0)
    stats.cancelled_appointments = transitions.get(AppointmentStatus.CANCELLED.value, 0)
    stats.rescheduled_appointments = transitions.get(AppointmentStatus.RESCHEDULED.value, 0)

    activity = DailyActivity(
        tenant_id=tenant_id,
        window_start=window_start,
        window_end=window_end,
        stats=stats,
        confirmed_appointments=_transition_examples(
            db, tenant_id, AppointmentStatus.CONFIRMED.value, window_start, window_end, limit
        ),
        cancelled_appointments=_transition_examples(
            db, tenant_id, AppointmentStatus.CANCELLED.value, window_start, window_end, limit
        ),
        rescheduled_appointments=_transition_examples(
            db, tenant_id, AppointmentStatus.RESCHEDULED.value, window_start, window_end, limit
        ),
        upcoming_appointments=_upcoming_appointments(db, tenant_id, window_end, upcoming),
    )
    _fill_follow_up_calls(db, activity, window_start, window_end, limit)

    logger.debug(
        "일일 활동 집계 완료 (tenant_id=%s, total_calls=%s, follow_up=%s/%s/%s)",
        tenant_id,
        stats.total_calls,
        stats.no_answer_calls,
        stats.voicemail_calls,
        stats.other_failed_calls,
    )
    return activity


def _call_stats(
    db: Session,
    tenant_id: int,
    window_start: datetime,
    window_end: datetime,
) -> CallStats:
    rows = db.execute(
        select(CallSession.status, func.count(CallSession.id))
        .where(
            CallSession.tenant_id == tenant_id,
            CallSession.created_at >= window_start,
            CallSession.created_at <= window_end,
        )
        .group_by(CallSession.status)
    ).all()
    counts = {status: int(count) for status, count in rows}
    return CallStats(
        total_calls=sum(counts.values()),
        successful_calls=counts.get(CallStatus.COMPLETED.value, 0),
        failed_calls=counts.get(CallStatus.FAILED.value, 0),
        pending_calls=sum(counts.get(status, 0) for status in PENDING_CALL_STATUSES),
    )


def _transition_counts(
    db: Session,
    tenant_id: int,
    window_start: datetime,
    window_end: datetime,
) -> dict[str, int]:
    rows = db.execute(
        select(
            AppointmentStatusChange.to_status,
            func.count(distinct(AppointmentStatusChange.contact_id)),
        )
        .where(
            AppointmentStatusChange.tenant_id == tenant_id,
            AppointmentStatusChange.changed_at >= window_start,
            AppointmentStatusChange.changed_at <= window_end,
            AppointmentStatusChange.to_status.in_(TRACKED_TRANSITIONS),
        )
        .group_by(AppointmentStatusChange.to_status)
    ).all()
    return {status: int(count) for status, count in rows}


def _transition_examples(
    db: Session,
    tenant_id: int,
    to_status: str,
    window_start: datetime,
    window_end: datetime,
    limit: int,
) -> list[AppointmentItem]:
    # 같은 예약이 여러 번 전이돼도 한 번만 (카운트의 distinct 와 맞춘다)
    latest = func.max(AppointmentStatusChange.changed_at).label("latest_change")
    rows = db.execute(
        select(Contact.name, Contact.appointment_time, Contact.appointment_type, latest)
        .join(Contact, Contact.id == AppointmentStatusChange.contact_id)
        .where(
            AppointmentStatusChange.tenant_id == tenant_id,
            AppointmentStatusChange.to_status == to_status,
            AppointmentStatusChange.changed_at >= window_start,
            AppointmentStatusChange.changed_at <= window_end,
        )
        .group_by(Contact.id, Contact.name, Contact.appointment_time, Contact.appointment_type)
        .order_by(latest.desc(), Contact.id.desc())
        .limit(limit)
    ).all()
    return [
        AppointmentItem(
            contact_name=name or UNKNOWN_CONTACT,
            appointment_time=_as_utc(appointment_time),
            appointment_type=appointment_type or DEFAULT_APPOINTMENT_TYPE,
        )
        for name, appointment_time, appointment_type, _ in rows
    ]


def _fill_follow_up_calls(
    db: Session,
    activity: DailyActivity,
    window_start: datetime,
    window_end: datetime,
    limit: int,
) -> None:
    rows = db.execute(
        select(
            CallSession.status,
            CallSession.call_outcome,
            CallSession.error_message,
            Contact.name,
            Contact.appointment_time,
        )
        .outerjoin(Contact, Contact.id == CallSession.contact_id)
        .where(
            CallSession.tenant_id == activity.tenant_id,
            CallSession.created_at >= window_start,
            CallSession.created_at <= window_end,
            or_(
                CallSession.status == CallStatus.FAILED.value,
                CallSession.call_outcome.in_(follow_up_outcomes()),
            ),
        )
        .order_by(CallSession.created_at.desc(), CallSession.id.desc())
    ).all()

    stats = activity.stats
    for status, outcome, error_message, contact_name, appointment_time in rows:
        classification = classify_call(status, outcome)
        if classification.bucket is None:
            continue
        item = FollowUpCallItem(
            contact_name=contact_name or UNKNOWN_CONTACT,
            appointment_time=_as_utc(appointment_time),
            outcome_label=classification.label,
        )
        if classification.bucket is FollowUpBucket.NO_ANSWER:
            stats.no_answer_calls += 1
            target = activity.no_answer_calls
        elif classification.bucket is FollowUpBucket.VOICEMAIL:
            stats.voicemail_calls += 1
            target = activity.voicemail_calls
        else:
            stats.other_failed_calls += 1
            target = activity.failed_calls
            if error_message:
                item.outcome_label = f"{classification.label}: {error_message.strip()}"
        if len(target) < limit:
            target.append(item)


def _upcoming_appointments(
    db: Session,
    tenant_id: int,
    now: datetime,
    limit: int,
) -> list[AppointmentItem]:
    contacts = db.scalars(
        select(Contact)
        .where(
            Contact.tenant_id == tenant_id,
            Contact.is_active.is_(True),
            Contact.appointment_time.is_not(None),
            Contact.appointment_time >= now,
            Contact.appointment_time <= now + timedelta(hours=UPCOMING_HOURS),
            Contact.appointment_status != AppointmentStatus.CANCELLED.value,
        )
        .order_by(Contact.appointment_time.asc())
        .limit(limit)
    ).all()
    return [
        AppointmentItem(
            contact_name=contact.name or UNKNOWN_CONTACT,
            appointment_time=_as_utc(contact.appointment_time),
            appointment_type=contact.appointment_type or DEFAULT_APPOINTMENT_TYPE,
        )
        for contact in contacts
    ]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
