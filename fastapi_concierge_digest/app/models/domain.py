from __future__ import annotations

from datetime import datetime, time

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.codes import AppointmentStatus, CallOutcome, CallStatus, TenantStatus
from app.core.roles import RoleCode
from app.models.base import AuditMixin, Base, BigIntPK, TimestampMixin


class Tenant(TimestampMixin, AuditMixin, Base):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TenantStatus.ACTIVE.value
    )


class User(TimestampMixin, AuditMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(30), nullable=False, default=RoleCode.CLIENT_USER.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    tenant: Mapped[Tenant] = relationship()
    notification_preference: Mapped[UserNotificationPreference | None] = relationship(
        back_populates="user", uselist=False
    )


class UserNotificationPreference(TimestampMixin, AuditMixin, Base):
    """사용자별 일일 요약 수신 설정.

    last_daily_summary_local_date 는 디스패처만 기록한다 (수신자 현지 날짜, YYYY-MM-DD).
    """

    __tablename__ = "user_notification_preferences"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    daily_summary_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    daily_summary_time: Mapped[time | None] = mapped_column(Time, default=time(9, 0))
    daily_summary_days: Mapped[str | None] = mapped_column(
        Text, default='["1","2","3","4","5"]'
    )
    timezone: Mapped[str | None] = mapped_column(String(100), default="Europe/London")
    last_daily_summary_local_date: Mapped[str | None] = mapped_column(String(10))
    last_daily_summary_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user: Mapped[User] = relationship(back_populates="notification_preference")


class Contact(TimestampMixin, Base):
    __tablename__ = "contacts"
    __table_args__ = (
        Index("ix_contact_tenant_appointment", "tenant_id", "appointment_time"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    appointment_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    appointment_type: Mapped[str | None] = mapped_column(String(100))
    appointment_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=AppointmentStatus.PENDING.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class CallSession(TimestampMixin, Base):
    __tablename__ = "call_sessions"
    __table_args__ = (
        Index("ix_call_session_tenant_created", "tenant_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    contact_id: Mapped[int | None] = mapped_column(ForeignKey("contacts.id", ondelete="SET NULL"))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CallStatus.QUEUED.value
    )
    call_outcome: Mapped[CallOutcome | None] = mapped_column(
        Enum(
            CallOutcome,
            name="call_outcome",
            native_enum=False,
            length=20,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        )
    )
    error_message: Mapped[str | None] = mapped_column(Text)

    contact: Mapped[Contact | None] = relationship()


class AppointmentStatusChange(Base):
    __tablename__ = "appointment_status_changes"
    __table_args__ = (
        Index("ix_status_change_tenant_changed", "tenant_id", "changed_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    contact_id: Mapped[int] = mapped_column(
        ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    from_status: Mapped[str | None] = mapped_column(String(50))
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    contact: Mapped[Contact] = relationship()
