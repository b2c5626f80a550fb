from __future__ import annotations

from datetime import date, datetime, tzinfo
from html import escape
from typing import Iterable

from app.core.config import settings
from app.schemas.daily_summary import (
    AppointmentItem,
    CallStats,
    DailyActivity,
    FollowUpCallItem,
    RenderedSummary,
)

THEME = {
    "primary": "#667eea",
    "secondary": "#764ba2",
    "warning": "#f59e0b",
    "danger": "#ef4444",
    "voicemail": "#8b5cf6",
    "muted": "#666666",
}
NO_DATA_MESSAGES = {
    "confirmed": "No appointments were confirmed in the last 24 hours",
    "rescheduled": "No appointments were rescheduled in the last 24 hours",
    "cancelled": "No appointments were cancelled in the last 24 hours",
    "no_answer": "No unanswered calls need follow-up",
    "voicemail": "No voicemails were left",
    "failed": "No failed calls",
    "upcoming": "No upcoming appointments in the next 24 hours",
}

_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
           line-height: 1.6; color: #333; background-color: #f4f4f4; margin: 0; padding: 0; }
    .container { max-width: 600px; margin: 20px auto; background: white; border-radius: 8px; overflow: hidden; }
    .header { background: linear-gradient(135deg, {primary} 0%, {secondary} 100%); color: white; padding: 30px; text-align: center; }
    .header h1 { margin: 0; font-size: 24px; font-weight: 600; }
    .content { padding: 30px; }
    .stats-grid { width: 100%; border-spacing: 10px; }
    .stat-card { background: #f8f9fa; padding: 16px; border-radius: 8px; text-align: center; }
    .stat-value { font-size: 28px; font-weight: 700; color: {primary}; margin: 0; }
    .stat-label { font-size: 13px; color: {muted}; text-transform: uppercase; letter-spacing: 0.5px; }
    .success-rate { background: {primary}; color: white; padding: 20px; border-radius: 8px; text-align: center; margin: 20px 0; }
    .success-rate-value { font-size: 36px; font-weight: 700; margin: 0; }
    .section-title { font-size: 18px; font-weight: 600; margin: 25px 0 15px; }
    .appointment-list { background: #f8f9fa; border-radius: 8px; padding: 15px; }
    .appointment-item { padding: 12px; background: white; border-radius: 6px; margin-bottom: 10px; border-left: 4px solid {primary}; }
    .appointment-name { font-weight: 600; margin-bottom: 4px; }
    .appointment-details { font-size: 14px; color: {muted}; }
    .no-data { text-align: center; color: {muted}; padding: 20px; font-style: italic; }
    .footer { background: #f8f9fa; padding: 20px 30px; text-align: center; font-size: 13px; color: {muted}; }
    .footer a { color: {primary}; text-decoration: none; }
"""


def render_daily_summary(
    activity: DailyActivity,
    *,
    display_name: str,
    company_name: str,
    report_date: date,
    tz: tzinfo,
    dashboard_url: str | None = None,
) -> RenderedSummary:
    """집계 결과 → 이메일 제목/HTML. 빈 목록 섹션도 생략하지 않고 안내 문구를 넣는다."""
    stats = activity.stats
    formatted_date = format_report_date(report_date)
    base_url = (dashboard_url or settings.dashboard_base_url).rstrip("/")

    sections = [
        _appointment_section(
            "Recently Confirmed", activity.confirmed_appointments, tz,
            color=THEME["primary"], empty=NO_DATA_MESSAGES["confirmed"],
        ),
        _appointment_section(
            "Recently Rescheduled", activity.rescheduled_appointments, tz,
            color=THEME["warning"], empty=NO_DATA_MESSAGES["rescheduled"],
        ),
        _appointment_section(
            "Recently Cancelled", activity.cancelled_appointments, tz,
            color=THEME["danger"], empty=NO_DATA_MESSAGES["cancelled"],
            time_prefix="Was scheduled for ",
        ),
        _call_section(
            "No Answer - Needs Follow-up", activity.no_answer_calls, tz,
            color=THEME["warning"], empty=NO_DATA_MESSAGES["no_answer"],
        ),
        _call_section(
            "Voicemail Left", activity.voicemail_calls, tz,
            color=THEME["voicemail"], empty=NO_DATA_MESSAGES["voicemail"],
        ),
        _call_section(
            "Failed Calls", activity.failed_calls, tz,
            color=THEME["danger"], empty=NO_DATA_MESSAGES["failed"], show_outcome=True,
        ),
        _appointment_section(
            "Upcoming Appointments (Next 24h)", activity.upcoming_appointments, tz,
            color=THEME["primary"], empty=NO_DATA_MESSAGES["upcoming"],
        ),
    ]
    section_html = "".join(sections)
    call_grid = _stats_grid([
        ("Total Calls", stats.total_calls),
        ("Successful", stats.successful_calls),
        ("Failed", stats.failed_calls),
        ("Pending", stats.pending_calls),
    ])
    appointment_grid = _stats_grid([
        ("Confirmed", stats.confirmed_appointments),
        ("Rescheduled", stats.rescheduled_appointments),
        ("Cancelled", stats.cancelled_appointments),
        ("Needs Follow-up", stats.no_answer_calls + stats.voicemail_calls),
    ])
    greeting_name = escape(display_name)
    company = escape(company_name)
    profile_url = escape(base_url) + "/profile"
    rate = success_rate(stats)
    css = _style()

    html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Daily Summary - {formatted_date}</title>
  <style>{css}</style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>Daily Summary</h1>
      <p>{formatted_date}</p>
    </div>
    <div class="content">
      <div class="greeting">Hello {greeting_name},</div>
      <p>Here's your daily summary for {company}:</p>
      <div class="success-rate">
        <div class="success-rate-value">{rate}%</div>
        <div class="success-rate-label">Call Success Rate</div>
      </div>
      {call_grid}
      <h2 class="section-title">Appointment Status</h2>
      {appointment_grid}
      {section_html}
    </div>
    <div class="footer">
      <p>This is an automated daily summary from VioConcierge.</p>
      <p>You can manage your notification preferences in your <a href="{profile_url}">profile settings</a>.</p>
    </div>
  </div>
</body>
</html>"""
    return RenderedSummary(subject=f"Daily Summary - {formatted_date}", html=html)


def success_rate(stats: CallStats) -> int:
    if stats.total_calls <= 0:
        return 0
    # 반올림 (half-up)
    return int(stats.successful_calls * 100 / stats.total_calls + 0.5)


def format_report_date(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_local_datetime(value: datetime, tz: tzinfo) -> str:
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.strftime('%b')} {local.day}, {local.year} {hour}:{local.minute:02d} {meridiem}"


def _style() -> str:
    css = _STYLE
    for key, value in THEME.items():
        css = css.replace("{" + key + "}", value)
    return css


def _stats_grid(cards: list[tuple[str, int]]) -> str:
    cells = [
        f'<td class="stat-card"><div class="stat-value">{value}</div>'
        f'<div class="stat-label">{escape(label)}</div></td>'
        for label, value in cards
    ]
    rows = [cells[index:index + 2] for index in range(0, len(cells), 2)]
    body = "".join(f"<tr>{''.join(row)}</tr>" for row in rows)
    return f'<table class="stats-grid" role="presentation">{body}</table>'


def _appointment_section(
    title: str,
    items: Iterable[AppointmentItem],
    tz: tzinfo,
    *,
    color: str,
    empty: str,
    time_prefix: str = "",
) -> str:
    entries = []
    for item in items:
        when = (
            time_prefix + format_local_datetime(item.appointment_time, tz)
            if item.appointment_time
            else "Time TBD"
        )
        entries.append(
            _list_item(item.contact_name, f"{when} &bull; {escape(item.appointment_type)}", color)
        )
    return _section(title, entries, empty)


def _call_section(
    title: str,
    items: Iterable[FollowUpCallItem],
    tz: tzinfo,
    *,
    color: str,
    empty: str,
    show_outcome: bool = False,
) -> str:
    entries = []
    for item in items:
        if show_outcome:
            details = escape(item.outcome_label or "Unknown outcome")
        elif item.appointment_time:
            details = "Appointment: " + format_local_datetime(item.appointment_time, tz)
        else:
            details = "No appointment set"
        entries.append(_list_item(item.contact_name, details, color))
    return _section(title, entries, empty)


def _section(title: str, entries: list[str], empty: str) -> str:
    if entries:
        body = f'<div class="appointment-list">{"".join(entries)}</div>'
    else:
        body = f'<div class="no-data">{escape(empty)}</div>'
    return f'<h2 class="section-title">{escape(title)}</h2>{body}'


def _list_item(name: str, details: str, color: str) -> str:
    return (
        f'<div class="appointment-item" style="border-left-color: {color};">'
        f'<div class="appointment-name">{escape(name)}</div>'
        f'<div class="appointment-details">{details}</div>'
        "</div>"
    )
