from __future__ import annotations

from enum import Enum


class TenantStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class CallStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CallOutcome(str, Enum):
    """통화 결과 코드. 통화 결과가 처음 기록될 때 결정된다."""

    CONFIRMED = "confirmed"
    VOICEMAIL = "voicemail"
    NO_ANSWER = "no_answer"
    BUSY = "busy"
    FAILED = "failed"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


PENDING_CALL_STATUSES: set[str] = {
    CallStatus.QUEUED.value,
    CallStatus.IN_PROGRESS.value,
}
