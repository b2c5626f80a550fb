"""
Tests for the daily summary HTML renderer.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.schemas.daily_summary import (
    AppointmentItem,
    CallStats,
    DailyActivity,
    FollowUpCallItem,
)
from app.services.summary_renderer import (
    NO_DATA_MESSAGES,
    format_local_datetime,
    render_daily_summary,
    success_rate,
)

NEW_YORK = ZoneInfo("America/New_York")
NOW = datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)


def empty_activity() -> DailyActivity:
    return DailyActivity(tenant_id=1, window_start=NOW, window_end=NOW)


def render(activity: DailyActivity, **overrides):
    kwargs = dict(
        display_name="Jane Doe",
        company_name="Acme Dental",
        report_date=date(2026, 10, 19),
        tz=NEW_YORK,
        dashboard_url="https://dashboard.example.com/",
    )
    kwargs.update(overrides)
    return render_daily_summary(activity, **kwargs)


class TestEmptyReport:
    def test_subject_uses_local_report_date(self):
        assert render(empty_activity()).subject == "Daily Summary - October 19, 2026"

    def test_every_section_has_placeholder(self):
        html = render(empty_activity()).html
        for message in NO_DATA_MESSAGES.values():
            assert message in html
        assert html.count('class="no-data"') == len(NO_DATA_MESSAGES)

    def test_zero_calls_gives_zero_rate(self):
        assert '<div class="success-rate-value">0%</div>' in render(empty_activity()).html

    def test_footer_links_profile(self):
        html = render(empty_activity()).html
        assert 'href="https://dashboard.example.com/profile"' in html


class TestSuccessRate:
    @pytest.mark.parametrize(
        "successful, total, expected",
        [(0, 0, 0), (0, 5, 0), (1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (4, 4, 100)],
    )
    def test_rounding(self, successful, total, expected):
        stats = CallStats(total_calls=total, successful_calls=successful)
        assert success_rate(stats) == expected


class TestSections:
    def test_items_replace_placeholders(self):
        activity = empty_activity()
        activity.stats = CallStats(total_calls=4, successful_calls=3, failed_calls=1, no_answer_calls=1)
        activity.confirmed_appointments = [
            AppointmentItem(
                contact_name="Alice",
                appointment_time=datetime(2026, 10, 20, 18, 30, tzinfo=timezone.utc),
                appointment_type="Cleaning",
            )
        ]
        activity.cancelled_appointments = [AppointmentItem(contact_name="Bob")]
        activity.no_answer_calls = [FollowUpCallItem(contact_name="Carol")]
        activity.failed_calls = [
            FollowUpCallItem(contact_name="Dan", outcome_label="Line busy: carrier rejected")
        ]

        html = render(activity).html

        assert '<div class="success-rate-value">75%</div>' in html
        assert "Oct 20, 2026 2:30 PM &bull; Cleaning" in html
        assert "Time TBD &bull; General Appointment" in html
        assert "No appointment set" in html
        assert "Line busy: carrier rejected" in html
        assert NO_DATA_MESSAGES["confirmed"] not in html
        assert NO_DATA_MESSAGES["failed"] not in html
        assert NO_DATA_MESSAGES["voicemail"] in html

    def test_cancelled_shows_scheduled_time(self):
        activity = empty_activity()
        activity.cancelled_appointments = [
            AppointmentItem(
                contact_name="Bob",
                appointment_time=datetime(2026, 10, 21, 13, 0, tzinfo=timezone.utc),
            )
        ]
        assert "Was scheduled for Oct 21, 2026 9:00 AM" in render(activity).html

    def test_user_data_is_escaped(self):
        activity = empty_activity()
        activity.voicemail_calls = [FollowUpCallItem(contact_name="<script>alert(1)</script>")]

        html = render(activity, display_name="Tom & Jerry", company_name='"Acme" <Dental>').html

        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
        assert "Hello Tom &amp; Jerry," in html
        assert "&quot;Acme&quot; &lt;Dental&gt;" in html


@pytest.mark.parametrize(
    "value, expected",
    [
        (datetime(2026, 10, 19, 4, 5, tzinfo=timezone.utc), "Oct 19, 2026 12:05 AM"),
        (datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc), "Oct 19, 2026 12:00 PM"),
        (datetime(2026, 12, 1, 23, 45, tzinfo=timezone.utc), "Dec 1, 2026 6:45 PM"),
    ],
)
def test_format_local_datetime(value, expected):
    assert format_local_datetime(value, NEW_YORK) == expected
