"""SMTP delivery of the rendered stability report.

Delivery is optional and best-effort: nothing here raises, a failed send is
logged and reported as False.
"""

import logging
import smtplib
from email.mime.text import MIMEText

from stability_report.config import get_settings
from stability_report.report.assembler import week_heading
from stability_report.report.models import ReportWindow

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "Weekly Stability Report"


def report_recipients() -> list[str]:
    """Recipients from REPORT_RECIPIENT_EMAIL (comma-separated)."""
    raw = get_settings().report_recipient_email
    return [addr.strip() for addr in raw.split(",") if addr.strip()]


def is_email_configured() -> bool:
    """SMTP host, credentials and at least one recipient are all present."""
    settings = get_settings()
    return bool(settings.smtp_host and settings.smtp_username and settings.smtp_password and report_recipients())


def report_subject(window: ReportWindow | None = None) -> str:
    """``Weekly Stability Report — Week 40 (October 04 - October 10)``"""
    if window is None:
        return SUBJECT_PREFIX
    return f"{SUBJECT_PREFIX} — {week_heading(window)}"


def send_report_email(report_text: str, window: ReportWindow | None = None) -> bool:
    """Email the report as plain text over SMTP with STARTTLS.

    Returns:
        True if the message was accepted by the server, False otherwise.
    """
    if not is_email_configured():
        logger.warning("Email not configured — skipping send")
        return False

    settings = get_settings()
    recipients = report_recipients()
    msg = MIMEText(report_text, "plain", "utf-8")
    msg["Subject"] = report_subject(window)
    msg["From"] = settings.smtp_username
    msg["To"] = ", ".join(recipients)

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
            _ = server.starttls()
            server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg, to_addrs=recipients)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send report email")
        return False

    logger.info("Report emailed to %d recipient(s)", len(recipients))
    return True
