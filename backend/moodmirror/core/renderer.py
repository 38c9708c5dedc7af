"""
Report Renderer - Turns weekly statistics into the guardian email, a
printable HTML document and a CSV export.

Rendering is deterministic: identical inputs (including `today`) produce
byte-identical output. No storage or network access happens here.
"""

import csv
import io
from dataclasses import dataclass
from html import escape
from typing import Dict, List, Optional, Sequence

from . import dates
from .errors import ValidationError
from ..models import CameraMoodRecord, MoodSurveyRecord, WeeklyStatistics, NO_DATA

COMPLETED = "✓ Completed"
PENDING = "- Pending"


@dataclass(frozen=True)
class ReportIdentity:
    """Who the report is about and who receives it."""
    elder_name: str
    week_start: str
    week_end: str
    guardian_name: str = ""
    guardian_email: str = ""
    age: str = ""
    blood_group: str = ""


def engagement_label(rate: int) -> str:
    if rate >= 80:
        return "excellent"
    if rate >= 60:
        return "good"
    return "moderate"


def _or_na(value: Optional[object]) -> str:
    return str(value) if value not in (None, "") else "N/A"


def _long_date(value: str) -> str:
    """2024-03-04 -> March 4, 2024"""
    try:
        d = dates.parse_date(value)
    except ValidationError:
        return "N/A"
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def _short_date(value: str) -> str:
    """2024-03-04 -> Mon, Mar 4"""
    d = dates.parse_date(value)
    return f"{d.strftime('%a')}, {d.strftime('%b')} {d.day}"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass(frozen=True)
class DailyActivity:
    date: str
    survey_done: bool
    camera_done: bool
    mood: Optional[str]
    energy: Optional[str]


def daily_activities(
    surveys: Sequence[MoodSurveyRecord],
    camera_moods: Sequence[CameraMoodRecord],
    today: Optional[str] = None,
) -> List[DailyActivity]:
    """One row per day for the 7 days ending `today`, looked up by exact date."""
    surveys_by_date: Dict[str, MoodSurveyRecord] = {}
    for survey in surveys:
        surveys_by_date.setdefault(survey.date, survey)
    camera_dates = {c.date for c in camera_moods}

    rows = []
    for day in dates.last_n_days(7, today or dates.today()):
        survey = surveys_by_date.get(day)
        rows.append(DailyActivity(
            date=day,
            survey_done=survey is not None,
            camera_done=day in camera_dates,
            mood=survey.overall_mood if survey else None,
            energy=str(survey.energy_level) if survey and survey.energy_level is not None else None,
        ))
    return rows


# ===================
# Guardian email
# ===================

def email_subject(identity: ReportIdentity) -> str:
    return (
        f"Weekly Wellness Report for {identity.elder_name} "
        f"({identity.week_start} to {identity.week_end})"
    )


def render_email_html(stats: WeeklyStatistics, identity: ReportIdentity) -> str:
    """Self-contained HTML email body with inline styles."""
    name = escape(identity.elder_name)
    guardian = escape(identity.guardian_name or "Guardian")
    rate = stats.completion_rate
    mood = escape(stats.dominant_mood)

    mood_sentence = (
        f'The overall mood trend has been "{mood}".' if stats.dominant_mood != NO_DATA else ""
    )
    low_rate_item = (
        "<li><strong>Consider checking in - completion rate is lower than usual</strong></li>"
        if rate < 60 else ""
    )

    row = (
        '<tr><td style="color: #374151; font-size: 15px;">{label}</td>'
        '<td style="color: #1f2937; font-size: 15px; font-weight: bold; text-align: right;">{value}</td></tr>'
    )
    summary_rows = "\n".join(row.format(label=label, value=value) for label, value in (
        ("Completion Rate:", f"{rate}%"),
        ("Surveys Completed:", f"{stats.surveys_completed} / {stats.total_days}"),
        ("Camera Checks:", f"{stats.camera_completed} / {stats.total_days}"),
        ("Average Energy Level:", f"{_format_number(stats.average_energy_level)} / 10"),
        ("Dominant Mood:", mood),
        ("Camera Detected Mood:", escape(stats.dominant_camera_mood)),
    ))

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Weekly Wellness Report</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f5f5f5;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background-color: #f5f5f5; padding: 20px;">
    <tr>
      <td align="center">
        <table width="600" cellpadding="0" cellspacing="0" style="background-color: #ffffff; border-radius: 8px; overflow: hidden;">
          <tr>
            <td style="background: linear-gradient(135deg, #2563eb 0%, #16a34a 100%); padding: 30px; text-align: center;">
              <h1 style="margin: 0; color: #ffffff; font-size: 28px;">Elder Mood Mirror</h1>
              <p style="margin: 10px 0 0 0; color: #e0f2fe; font-size: 16px;">Weekly Wellness Report</p>
            </td>
          </tr>
          <tr>
            <td style="padding: 30px;">
              <h2 style="margin: 0 0 10px 0; color: #1f2937; font-size: 22px;">Hello {guardian},</h2>
              <p style="margin: 0 0 20px 0; color: #4b5563; font-size: 16px; line-height: 1.5;">
                This is the weekly wellness report for <strong>{name}</strong> for the period
                <strong>{identity.week_start}</strong> to <strong>{identity.week_end}</strong>.
              </p>
              <table width="100%" cellpadding="0" cellspacing="0" style="margin: 20px 0;">
                <tr>
                  <td style="background-color: #dbeafe; padding: 20px; border-radius: 8px;">
                    <h3 style="margin: 0 0 15px 0; color: #1e40af; font-size: 18px;">Weekly Summary</h3>
                    <table width="100%" cellpadding="8" cellspacing="0">
{summary_rows}
                    </table>
                  </td>
                </tr>
              </table>
              <div style="background-color: #fef3c7; padding: 20px; border-radius: 8px; border-left: 4px solid #f59e0b; margin: 20px 0;">
                <h3 style="margin: 0 0 10px 0; color: #92400e; font-size: 18px;">Key Insights</h3>
                <p style="margin: 0; color: #78350f; font-size: 15px; line-height: 1.5;">
                  {name} has shown {engagement_label(rate)} engagement this week with a completion rate of {rate}%.
                  {mood_sentence}
                </p>
              </div>
              <div style="background-color: #dcfce7; padding: 20px; border-radius: 8px; border-left: 4px solid #16a34a; margin: 20px 0;">
                <h3 style="margin: 0 0 10px 0; color: #14532d; font-size: 18px;">Recommendations</h3>
                <ul style="margin: 0; padding-left: 20px; color: #166534; font-size: 15px; line-height: 1.8;">
                  <li>Continue encouraging daily mood tracking for better insights</li>
                  <li>Reach out if {name} needs support or assistance</li>
                  <li>Monitor any significant changes in mood patterns</li>
                  {low_rate_item}
                </ul>
              </div>
              <p style="margin: 30px 0 0 0; color: #6b7280; font-size: 14px; line-height: 1.5;">
                For detailed analytics and full history, please log in to the Elder Mood Mirror dashboard.
              </p>
            </td>
          </tr>
          <tr>
            <td style="background-color: #f9fafb; padding: 20px; text-align: center; border-top: 1px solid #e5e7eb;">
              <p style="margin: 0; color: #6b7280; font-size: 13px;">
                Elder Mood Mirror - Reflecting Care, Restoring Smiles<br>
                This is an automated weekly report. Please do not reply to this email.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


# ===================
# Printable document
# ===================

_PRINT_STYLE = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; padding: 40px; max-width: 1200px; margin: 0 auto; }
    .header { text-align: center; margin-bottom: 40px; padding-bottom: 20px; border-bottom: 3px solid #3b82f6; }
    h1 { color: #1e40af; font-size: 32px; margin-bottom: 10px; }
    .report-period { color: #6b7280; font-size: 18px; }
    .section { margin-bottom: 30px; page-break-inside: avoid; }
    .section-title { color: #1e40af; font-size: 24px; margin-bottom: 15px; padding-bottom: 10px; border-bottom: 2px solid #e5e7eb; }
    .info-grid { display: grid; grid-template-columns: repeat(2, 1fr); gap: 20px; margin-bottom: 20px; }
    .info-item { padding: 15px; background: #f9fafb; border-radius: 8px; }
    .info-label { color: #6b7280; font-size: 14px; margin-bottom: 5px; }
    .info-value { font-size: 18px; font-weight: 600; color: #111827; }
    .stats-grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 20px; margin-bottom: 30px; }
    .stat-card { text-align: center; padding: 20px; background: linear-gradient(135deg, #3b82f6 0%, #10b981 100%); border-radius: 12px; color: white; }
    .stat-value { font-size: 36px; font-weight: bold; margin-bottom: 5px; }
    .stat-label { font-size: 14px; opacity: 0.9; }
    table { width: 100%; border-collapse: collapse; margin-top: 15px; }
    th { background: #f3f4f6; padding: 12px; text-align: left; font-weight: 600; color: #374151; border-bottom: 2px solid #e5e7eb; }
    td { padding: 12px; border-bottom: 1px solid #e5e7eb; }
    .badge { display: inline-block; padding: 4px 12px; border-radius: 12px; font-size: 12px; font-weight: 600; }
    .badge-success { background: #d1fae5; color: #065f46; }
    .badge-pending { background: #e5e7eb; color: #6b7280; }
    .footer { margin-top: 50px; padding-top: 20px; border-top: 2px solid #e5e7eb; text-align: center; color: #6b7280; font-size: 14px; }
    @media print { body { padding: 20px; } }
"""


def _info_item(label: str, value: str, capitalize: bool = False) -> str:
    style = ' style="text-transform: capitalize;"' if capitalize else ""
    return (
        f'<div class="info-item"><div class="info-label">{label}</div>'
        f'<div class="info-value"{style}>{escape(value)}</div></div>'
    )


def _stat_card(value: str, label: str) -> str:
    return f'<div class="stat-card"><div class="stat-value">{value}</div><div class="stat-label">{label}</div></div>'


def _badge(done: bool) -> str:
    css = "badge-success" if done else "badge-pending"
    return f'<span class="badge {css}">{COMPLETED if done else PENDING}</span>'


def _energy_cell(energy: Optional[str]) -> str:
    if not energy:
        return "-"
    return f"{escape(energy)}/10" if energy.isdigit() else escape(energy)


def render_printable_document(
    stats: WeeklyStatistics,
    identity: ReportIdentity,
    surveys: Sequence[MoodSurveyRecord] = (),
    camera_moods: Sequence[CameraMoodRecord] = (),
    today: Optional[str] = None,
) -> str:
    """Print-ready HTML document with an embedded stylesheet."""
    today = today or dates.today()
    rate = stats.completion_rate

    activity_rows = "\n".join(
        "<tr>"
        f"<td>{_short_date(row.date)}</td>"
        f"<td>{_badge(row.survey_done)}</td>"
        f"<td>{_badge(row.camera_done)}</td>"
        f'<td style="text-transform: capitalize;">{escape(row.mood.replace("_", " ")) if row.mood else "-"}</td>'
        f"<td>{_energy_cell(row.energy)}</td>"
        "</tr>"
        for row in daily_activities(surveys, camera_moods, today)
    )

    elder_items = "\n".join((
        _info_item("Name", _or_na(identity.elder_name)),
        _info_item("Age", _or_na(identity.age)),
        _info_item("Blood Group", _or_na(identity.blood_group)),
        _info_item("Guardian", _or_na(identity.guardian_name)),
    ))
    stat_cards = "\n".join((
        _stat_card(str(stats.surveys_completed), "Surveys Completed"),
        _stat_card(str(stats.camera_completed), "Camera Checks"),
        _stat_card(f"{rate}%", "Completion Rate"),
        _stat_card(_format_number(stats.average_energy_level), "Avg Energy Level"),
    ))
    mood_items = "\n".join((
        _info_item("Survey Mood Pattern", stats.dominant_mood, capitalize=True),
        _info_item("Camera Detected Mood", stats.dominant_camera_mood, capitalize=True),
    ))
    elder_ref = escape(identity.elder_name or "the elder")

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Elder Mood Mirror - Weekly Report</title>
  <style>{_PRINT_STYLE}  </style>
</head>
<body>
  <div class="header">
    <h1>Elder Mood Mirror</h1>
    <p class="report-period">Weekly Report: {_long_date(identity.week_start)} - {_long_date(identity.week_end)}</p>
  </div>
  <div class="section">
    <h2 class="section-title">Elder Information</h2>
    <div class="info-grid">
{elder_items}
    </div>
  </div>
  <div class="section">
    <h2 class="section-title">Weekly Statistics</h2>
    <div class="stats-grid">
{stat_cards}
    </div>
  </div>
  <div class="section">
    <h2 class="section-title">Mood Analysis</h2>
    <div class="info-grid">
{mood_items}
    </div>
  </div>
  <div class="section">
    <h2 class="section-title">Daily Activities</h2>
    <table>
      <thead>
        <tr><th>Date</th><th>Survey Status</th><th>Camera Check</th><th>Mood</th><th>Energy Level</th></tr>
      </thead>
      <tbody>
{activity_rows}
      </tbody>
    </table>
  </div>
  <div class="section">
    <h2 class="section-title">Report Summary</h2>
    <p style="margin-bottom: 15px;">
      This weekly report provides a comprehensive overview of {elder_ref}'s mood and wellness
      tracking activities, including daily survey responses and camera-based mood detection results.
    </p>
    <p style="margin-bottom: 15px;">
      <strong>Tracking Consistency:</strong> {rate}% of activities were completed this week,
      demonstrating {engagement_label(rate)} engagement with the wellness tracking program.
    </p>
    <p>
      <strong>Next Steps:</strong> Continue daily tracking for better trend analysis.
      The guardian receives weekly email reports for ongoing monitoring and care coordination.
    </p>
  </div>
  <div class="footer">
    <p>Generated by Elder Mood Mirror - Your Daily Wellness Companion</p>
    <p>Report Date: {_long_date(today)}</p>
  </div>
</body>
</html>
"""


# ===================
# CSV export
# ===================

CSV_TITLE = "Elder Mood Mirror - Weekly Report"
CSV_ACTIVITY_HEADER = ["Date", "Survey", "Camera", "Mood", "Energy Level"]


def render_csv(
    stats: WeeklyStatistics,
    identity: ReportIdentity,
    surveys: Sequence[MoodSurveyRecord] = (),
    camera_moods: Sequence[CameraMoodRecord] = (),
    today: Optional[str] = None,
) -> str:
    """CSV export with every cell quoted and a fixed 7-row daily activity table."""
    rows: List[List[object]] = [
        [CSV_TITLE],
        [""],
        [f"Report Period: {identity.week_start} to {identity.week_end}"],
        [""],
        ["Elder Information"],
        ["Name", _or_na(identity.elder_name)],
        ["Age", _or_na(identity.age)],
        ["Blood Group", _or_na(identity.blood_group)],
        ["Guardian", _or_na(identity.guardian_name)],
        ["Guardian Email", _or_na(identity.guardian_email)],
        [""],
        ["Weekly Statistics"],
        ["Surveys Completed", stats.surveys_completed],
        ["Camera Checks", stats.camera_completed],
        ["Completion Rate", f"{stats.completion_rate}%"],
        ["Average Energy Level", _format_number(stats.average_energy_level)],
        ["Dominant Mood", stats.dominant_mood],
        ["Camera Detected Mood", stats.dominant_camera_mood],
        [""],
        ["Daily Activities"],
        CSV_ACTIVITY_HEADER,
    ]
    for row in daily_activities(surveys, camera_moods, today):
        rows.append([
            row.date,
            COMPLETED if row.survey_done else PENDING,
            COMPLETED if row.camera_done else PENDING,
            row.mood or "N/A",
            row.energy or "-",
        ])

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def csv_filename(identity: ReportIdentity) -> str:
    return f"mood-report-{identity.week_start or 'latest'}.csv"


def identity_for(report) -> ReportIdentity:
    """Build the renderer identity from a WeeklyReport."""
    profile = report.elder_profile
    return ReportIdentity(
        elder_name=report.elder_name,
        week_start=report.week_start,
        week_end=report.week_end,
        guardian_name=report.guardian_name,
        guardian_email=report.guardian_email,
        age=(profile.age if profile else None) or "",
        blood_group=(profile.blood_group if profile else None) or "",
    )
