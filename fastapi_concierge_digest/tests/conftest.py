"""
Test configuration: in-memory SQLite, fake email transport, seed helpers.

Environment is set before any `app` import so the settings singleton and the
default engine never point at the MySQL DSN or the real Resend API.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_MOCK_MODE"] = "true"
os.environ["DAILY_SUMMARY_ENABLED"] = "false"
os.environ["DASHBOARD_BASE_URL"] = "https://dashboard.example.com"

from dataclasses import dataclass, field  # noqa: E402
from datetime import datetime, time  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.codes import AppointmentStatus, CallOutcome, TenantStatus  # noqa: E402
from app.core.roles import RoleCode  # noqa: E402
from app.models import Base  # noqa: E402
from app.models.domain import (  # noqa: E402
    AppointmentStatusChange,
    CallSession,
    Contact,
    Tenant,
    User,
    UserNotificationPreference,
)
from app.services.email_service import EmailSendResult  # noqa: E402
from app.services.summary_ledger import get_last_sent_local_date  # noqa: E402

# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger(session_factory):
    """Read the stored local date through a fresh session."""

    def _read(preference_id: int) -> str | None:
        with session_factory() as session:
            return get_last_sent_local_date(session, preference_id)

    return _read


# =============================================================================
# Seed helpers
# =============================================================================


class Seeder:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def tenant(
        self,
        name: str = "acme",
        *,
        company_name: str | None = "Acme Dental",
        status: str = TenantStatus.ACTIVE.value,
    ) -> Tenant:
        return self._save(Tenant(name=name, company_name=company_name, status=status))

    def user(
        self,
        tenant: Tenant,
        *,
        email: str | None = "jane@example.com",
        full_name: str = "Jane Doe",
        role: str = RoleCode.CLIENT_ADMIN.value,
        is_active: bool = True,
    ) -> User:
        return self._save(
            User(
                tenant_id=tenant.id,
                email=email,
                full_name=full_name,
                role=role,
                is_active=is_active,
            )
        )

    def preference(
        self,
        user: User,
        *,
        enabled: bool = True,
        delivery_time: time | None = time(9, 0),
        days: str | None = '["1","2","3","4","5"]',
        tz: str | None = "America/New_York",
        last_sent: str | None = None,
    ) -> UserNotificationPreference:
        return self._save(
            UserNotificationPreference(
                user_id=user.id,
                daily_summary_enabled=enabled,
                daily_summary_time=delivery_time,
                daily_summary_days=days,
                timezone=tz,
                last_daily_summary_local_date=last_sent,
            )
        )

    def recipient(self, email: str = "jane@example.com", **preference_kwargs):
        tenant = self.tenant(name=f"tenant-{email}")
        user = self.user(tenant, email=email)
        return self.preference(user, **preference_kwargs)

    def contact(
        self,
        tenant: Tenant,
        name: str,
        *,
        appointment_time: datetime | None = None,
        appointment_type: str | None = None,
        status: str = AppointmentStatus.PENDING.value,
        is_active: bool = True,
    ) -> Contact:
        return self._save(
            Contact(
                tenant_id=tenant.id,
                name=name,
                appointment_time=appointment_time,
                appointment_type=appointment_type,
                appointment_status=status,
                is_active=is_active,
            )
        )

    def call(
        self,
        tenant: Tenant,
        *,
        created_at: datetime,
        status: str,
        outcome: CallOutcome | None = None,
        contact: Contact | None = None,
        error_message: str | None = None,
    ) -> CallSession:
        return self._save(
            CallSession(
                tenant_id=tenant.id,
                contact_id=contact.id if contact else None,
                status=status,
                call_outcome=outcome,
                error_message=error_message,
                created_at=created_at,
                updated_at=created_at,
            )
        )

    def status_change(
        self,
        tenant: Tenant,
        contact: Contact,
        to_status: str,
        *,
        changed_at: datetime,
        from_status: str = AppointmentStatus.PENDING.value,
    ) -> AppointmentStatusChange:
        return self._save(
            AppointmentStatusChange(
                tenant_id=tenant.id,
                contact_id=contact.id,
                from_status=from_status,
                to_status=to_status,
                changed_at=changed_at,
            )
        )


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder(db)


# =============================================================================
# Email transport
# =============================================================================


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


@dataclass
class FakeEmailClient:
    """Records sends; set `fail_with` to make every send fail with that reason."""

    sent: list[SentEmail] = field(default_factory=list)
    fail_with: str | None = None
    attempts: int = 0

    def send(self, to: str, subject: str, html: str) -> EmailSendResult:
        self.attempts += 1
        if self.fail_with:
            return EmailSendResult(success=False, error=self.fail_with)
        self.sent.append(SentEmail(to=to, subject=subject, html=html))
        return EmailSendResult(success=True, message_id=f"fake-{len(self.sent)}")


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()
