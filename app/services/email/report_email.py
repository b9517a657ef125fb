# app/services/email/report_email.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape

from app.core.errors import EmailSendFailed, ValidationFailed
from app.services.flows.validation import validate_email

log = logging.getLogger("email")

BRAND = "Aura"

_TEMPLATE = """\
<div style="font-family: sans-serif; max-width: 600px; margin: auto; border: 1px solid #e2e8f0; border-radius: 0.5rem; padding: 2rem;">
  <h1 style="color: #6366F1; text-align: center; font-size: 2.25rem;">{brand} Report</h1>
  <h2 style="color: #374151; border-bottom: 1px solid #e2e8f0; padding-bottom: 0.5rem;">Analysis for &quot;{title}&quot;</h2>
  <div style="background-color: #f8fafc; padding: 1.5rem; border-radius: 0.5rem; text-align: center; margin: 1rem 0 2rem;">
    <p style="font-size: 1.125rem; color: #4b5563; margin: 0;">Your Overall Score</p>
    <p style="font-size: 4rem; font-weight: bold; color: #6366F1; margin: 0.5rem 0;">{score}</p>
    <p style="font-size: 1.25rem; font-weight: 600; color: #1f2937; margin: 0; background-color: #e0e7ff; display: inline-block; padding: 0.5rem 1rem; border-radius: 9999px;">{grade}</p>
  </div>
  <h3 style="color: #4b5563;">Detailed Insights:</h3>
  <div style="white-space: pre-wrap; background-color: #f8fafc; padding: 1rem; border-radius: 0.5rem; line-height: 1.6;">{report}</div>
  <p style="text-align: center; color: #9ca3af; font-size: 0.875rem; margin-top: 2rem;">Thank you for using {brand}.</p>
</div>
"""


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message: str


def report_subject(title: str) -> str:
    return f'Your {BRAND} report for "{title}"'


def render_report_email(title: str, score: int, grade: str, report: str) -> str:
    """Every user/AI supplied value is HTML-escaped."""
    return _TEMPLATE.format(
        brand=BRAND,
        title=escape(title),
        score=int(score),
        grade=escape(grade),
        report=escape(report),
    )


async def send_report_email(mailer, email: str, title: str, score: int, grade: str, report: str) -> EmailResult:
    """Fire-and-report: failures come back as ``success=False``, never as exceptions."""
    try:
        address = validate_email(email)
    except ValidationFailed as e:
        return EmailResult(False, e.message)
    if not (report or "").strip():
        return EmailResult(False, "There is no report to send yet.")

    try:
        await mailer.send(address, report_subject(title), render_report_email(title, score, grade, report))
    except EmailSendFailed as e:
        if not getattr(mailer, "configured", True):
            return EmailResult(False, "Email server is not configured. Please check server logs.")
        log.warning("report email failed: %s", e.message)
        return EmailResult(False, "Failed to send email. Please try again later.")
    except Exception:
        log.exception("unexpected error while sending the report email")
        return EmailResult(False, "Failed to send email. Please try again later.")
    return EmailResult(True, "Email sent successfully.")
