from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class CallStats(BaseModel):
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    pending_calls: int = 0
    confirmed_appointments: int = 0
    cancelled_appointments: int = 0
    rescheduled_appointments: int = 0
    no_answer_calls: int = 0
    voicemail_calls: int = 0
    other_failed_calls: int = 0


class AppointmentItem(BaseModel):
    contact_name: str
    appointment_time: datetime | None = None
    appointment_type: str = "General Appointment"


class FollowUpCallItem(BaseModel):
    contact_name: str
    appointment_time: datetime | None = None
    outcome_label: str | None = None


class DailyActivity(BaseModel):
    tenant_id: int
    window_start: datetime
    window_end: datetime
    stats: CallStats = Field(default_factory=CallStats)
    confirmed_appointments: list[AppointmentItem] = Field(default_factory=list)
    cancelled_appointments: list[AppointmentItem] = Field(default_factory=list)
    rescheduled_appointments: list[AppointmentItem] = Field(default_factory=list)
    no_answer_calls: list[FollowUpCallItem] = Field(default_factory=list)
    voicemail_calls: list[FollowUpCallItem] = Field(default_factory=list)
    failed_calls: list[FollowUpCallItem] = Field(default_factory=list)
    upcoming_appointments: list[AppointmentItem] = Field(default_factory=list)


class RenderedSummary(BaseModel):
    subject: str
    html: str


class SendNowRequest(BaseModel):
    email: EmailStr
    tenant_id: int
    user_name: str | None = Field(default=None, max_length=255)
    timezone: str | None = Field(default=None, max_length=100, description="IANA 시간대 (선택)")


class SendNowResponse(BaseModel):
    sent: bool
    message_id: str | None = None
    error: str | None = None


class SummaryPassResult(BaseModel):
    checked: int = 0
    due: int = 0
    sent: int = 0
    failed: int = 0
    conflicts: int = 0


class SchedulerStatus(BaseModel):
    running: bool
    interval_seconds: int
    last_tick_at: datetime | None = None
    last_result: SummaryPassResult | None = None
