"""
Tests for one scheduler pass end to end: resolve → due check → aggregate → render → send → ledger.
"""

from datetime import datetime, time, timedelta, timezone

import pytest

from app.core.codes import CallOutcome, CallStatus
from app.services import daily_summary_service
from app.services.daily_summary_service import (
    SummaryOutcome,
    build_daily_summary,
    process_recipient,
    send_summary_now,
)
from app.services.recipient_service import load_summary_recipients
from app.tasks.daily_summary import run_daily_summary_pass

MONDAY_0900_NEW_YORK = datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)


def tick(session_factory, email_client, now):
    return run_daily_summary_pass(session_factory=session_factory, email_client=email_client, now=now)


class TestScheduledDispatch:
    def test_due_recipient_receives_summary(self, seed, session_factory, email_client, ledger):
        preference = seed.recipient()

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        assert (result.checked, result.due, result.sent, result.failed) == (1, 1, 1, 0)
        [message] = email_client.sent
        assert message.to == "jane@example.com"
        assert message.subject == "Daily Summary - October 19, 2026"
        assert "Hello Jane Doe," in message.html
        assert "Acme Dental" in message.html
        assert ledger(preference.id) == "2026-10-19"

    def test_too_early_sends_nothing(self, seed, session_factory, email_client, ledger):
        preference = seed.recipient()

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK - timedelta(hours=1))

        assert (result.checked, result.due) == (1, 0)
        assert email_client.attempts == 0
        assert ledger(preference.id) is None

    def test_at_most_once_per_local_day(self, seed, session_factory, email_client):
        seed.recipient()

        for minutes in range(0, 12 * 60, 7):
            tick(session_factory, email_client, MONDAY_0900_NEW_YORK + timedelta(minutes=minutes))

        assert len(email_client.sent) == 1

    def test_next_local_day_sends_again(self, seed, session_factory, email_client, ledger):
        preference = seed.recipient()

        tick(session_factory, email_client, MONDAY_0900_NEW_YORK)
        tick(session_factory, email_client, MONDAY_0900_NEW_YORK + timedelta(days=1))

        assert len(email_client.sent) == 2
        assert ledger(preference.id) == "2026-10-20"

    def test_restart_mid_day_does_not_duplicate(self, seed, session_factory, email_client):
        """A new pass (as after a restart) reloads the persisted ledger."""
        seed.recipient(last_sent="2026-10-19")

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK + timedelta(hours=3))

        assert result.due == 0
        assert email_client.sent == []

    def test_failed_send_retried_next_tick(self, seed, session_factory, email_client, ledger):
        preference = seed.recipient()
        email_client.fail_with = "Resend API HTTP 오류: 503"

        first = tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        assert (first.due, first.sent, first.failed) == (1, 0, 1)
        assert ledger(preference.id) is None

        email_client.fail_with = None
        second = tick(session_factory, email_client, MONDAY_0900_NEW_YORK + timedelta(minutes=1))

        assert (second.due, second.sent) == (1, 1)
        assert email_client.attempts == 2
        assert ledger(preference.id) == "2026-10-19"

    def test_each_recipient_in_own_timezone(self, seed, session_factory, email_client):
        seed.recipient("ny@example.com")
        seed.recipient("london@example.com", tz="Europe/London")
        seed.recipient("la@example.com", tz="America/Los_Angeles")

        tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        # 14:00 in London, 06:00 in Los Angeles
        assert sorted(m.to for m in email_client.sent) == ["london@example.com", "ny@example.com"]


class TestFailureIsolation:
    def test_one_recipient_error_does_not_abort_pass(
        self, seed, session_factory, email_client, ledger, monkeypatch
    ):
        broken = seed.recipient("broken@example.com")
        healthy = seed.recipient("healthy@example.com")
        broken_tenant_id = broken.user.tenant_id
        real_collect = daily_summary_service.collect_daily_activity

        def flaky_collect(db, tenant_id, **kwargs):
            if tenant_id == broken_tenant_id:
                raise RuntimeError("activity store unavailable")
            return real_collect(db, tenant_id, **kwargs)

        monkeypatch.setattr(daily_summary_service, "collect_daily_activity", flaky_collect)

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        assert (result.checked, result.sent, result.failed) == (2, 1, 1)
        assert [m.to for m in email_client.sent] == ["healthy@example.com"]
        assert ledger(broken.id) is None
        assert ledger(healthy.id) == "2026-10-19"

    def test_misconfigured_recipient_skipped(self, seed, session_factory, email_client):
        seed.recipient("bad@example.com", tz="Nowhere/Special")
        seed.recipient("good@example.com")

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        assert result.checked == 1
        assert [m.to for m in email_client.sent] == ["good@example.com"]

    def test_timezone_directory_name_skipped(self, seed, session_factory, email_client):
        seed.recipient("bad@example.com", tz="America")
        seed.recipient("good@example.com")

        result = tick(session_factory, email_client, MONDAY_0900_NEW_YORK)

        assert (result.checked, result.sent) == (1, 1)
        assert [m.to for m in email_client.sent] == ["good@example.com"]


class TestDaylightSavingPass:
    """Minute-by-minute ticks across the 2026 America/New_York transitions."""

    EVERY_DAY = '["0","1","2","3","4","5","6"]'

    def run_minutes(self, session_factory, email_client, start, minutes):
        sent_at = []
        for offset in range(minutes):
            now = start + timedelta(minutes=offset)
            if tick(session_factory, email_client, now).sent:
                sent_at.append(now)
        return sent_at

    def test_spring_forward_sends_once_after_gap(self, seed, session_factory, email_client, ledger):
        # 02:30 does not exist on 2026-03-08; 01:59 EST is followed by 03:00 EDT
        preference = seed.recipient(delivery_time=time(2, 30), days=self.EVERY_DAY)

        sent_at = self.run_minutes(
            session_factory, email_client, datetime(2026, 3, 8, 5, 0, tzinfo=timezone.utc), 4 * 60
        )

        assert sent_at == [datetime(2026, 3, 8, 7, 0, tzinfo=timezone.utc)]
        assert len(email_client.sent) == 1
        assert ledger(preference.id) == "2026-03-08"

    def test_fall_back_sends_once_despite_repeated_hour(
        self, seed, session_factory, email_client, ledger
    ):
        # 01:00-01:59 happens twice on 2026-11-01
        preference = seed.recipient(delivery_time=time(1, 30), days=self.EVERY_DAY)

        sent_at = self.run_minutes(
            session_factory, email_client, datetime(2026, 11, 1, 4, 0, tzinfo=timezone.utc), 4 * 60
        )

        assert sent_at == [datetime(2026, 11, 1, 5, 30, tzinfo=timezone.utc)]
        assert len(email_client.sent) == 1
        assert ledger(preference.id) == "2026-11-01"


class TestProcessRecipient:
    def test_stale_recipient_reports_ledger_conflict(self, db, seed, email_client, ledger):
        preference = seed.recipient()
        [recipient] = load_summary_recipients(db)
        # the first send claims the day; the recipient snapshot is now stale
        assert process_recipient(db, recipient, now=MONDAY_0900_NEW_YORK, email_client=email_client) is SummaryOutcome.SENT

        outcome = process_recipient(
            db, recipient, now=MONDAY_0900_NEW_YORK + timedelta(minutes=1), email_client=email_client
        )

        assert outcome is SummaryOutcome.LEDGER_CONFLICT
        assert ledger(preference.id) == "2026-10-19"


class TestSendNow:
    def test_bypasses_schedule_and_ledger(self, db, seed, email_client, ledger):
        preference = seed.recipient(delivery_time=time(23, 0), last_sent="2026-10-19")

        result = send_summary_now(
            db,
            destination="ops@example.com",
            tenant_id=preference.user.tenant_id,
            display_name="Ops",
            email_client=email_client,
            now=MONDAY_0900_NEW_YORK,
        )

        assert result.success is True
        assert email_client.sent[0].to == "ops@example.com"
        assert "Hello Ops," in email_client.sent[0].html
        assert ledger(preference.id) == "2026-10-19"

    def test_default_display_name(self, db, seed, email_client):
        tenant = seed.tenant()

        send_summary_now(db, destination="ops@example.com", tenant_id=tenant.id, email_client=email_client)

        assert "Hello Test User," in email_client.sent[0].html

    def test_transport_failure_returned(self, db, seed, email_client):
        tenant = seed.tenant()
        email_client.fail_with = "boom"

        result = send_summary_now(db, destination="ops@example.com", tenant_id=tenant.id, email_client=email_client)

        assert result.success is False
        assert result.error == "boom"

    def test_unknown_tenant_raises(self, db, email_client):
        with pytest.raises(ValueError):
            send_summary_now(db, destination="ops@example.com", tenant_id=404, email_client=email_client)


class TestBuildDailySummary:
    def test_report_reflects_activity_in_recipient_zone(self, db, seed):
        tenant = seed.tenant(company_name=None, name="sunrise-clinic")
        contact = seed.contact(tenant, "Alice")
        seed.call(tenant, contact=contact, created_at=MONDAY_0900_NEW_YORK - timedelta(hours=2),
                  status=CallStatus.FAILED.value, outcome=CallOutcome.NO_ANSWER)
        tokyo = daily_summary_service.resolve_timezone("Asia/Tokyo")

        rendered = build_daily_summary(
            db, tenant_id=tenant.id, display_name="Jane", tz=tokyo, now=MONDAY_0900_NEW_YORK
        )

        # 22:00 in Tokyo
        assert rendered.subject == "Daily Summary - October 19, 2026"
        assert "sunrise-clinic" in rendered.html
        assert "Alice" in rendered.html
