"""
Email notifications to regional offices.

Contract:
- ``send(to_address, subject, html_body) -> NotificationResult``
- MUST NEVER raise: delivery failures are returned as data so that one
  office's failure never stops the fan-out to the others.
"""

import html
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.errors import MessageError
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Dict, Optional

from city_reporter.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class SmtpNotifier:
    """SMTP sender. A new connection is opened per message."""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = None,
        from_name: str = None,
        timeout: float = None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.from_name = from_name or settings.EMAIL_FROM_NAME
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT_SECONDS

    def _build_message(self, to_address: str, subject: str, html_body: str) -> EmailMessage:
        """Raises ValueError when a header value is malformed (e.g. contains CR/LF)."""
        sender = self.username or "no-reply@localhost"
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, sender))
        message["To"] = to_address
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=sender.split("@")[-1])
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, to_address: str, subject: str, html_body: str) -> NotificationResult:
        try:
            message = self._build_message(to_address, subject, html_body)
        except (ValueError, MessageError) as e:
            logger.warning(f"Email to {to_address!r} rejected: {e}")
            return NotificationResult(success=False, error="Invalid email headers")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Email failed to {to_address}: {e}")
            return NotificationResult(success=False, error=str(e) or e.__class__.__name__)

        logger.info(f"Email sent to {to_address}: {message['Message-ID']}")
        return NotificationResult(success=True, message_id=message["Message-ID"])


def render_subject(location: Dict) -> str:
    city = " ".join(str(location.get("city") or "Unknown").split())
    return f"New City Issue Report - {city}"


def render_report_email(
    office_name: str,
    description: str,
    location: Dict,
    photo_url: str,
    reporter: Dict,
    reported_at: Optional[datetime] = None,
) -> str:
    """HTML body sent to one office. All user-supplied text is escaped."""
    esc = lambda value: html.escape(str(value if value is not None else ""))
    reported_at = reported_at or datetime.now(timezone.utc)
    latitude = location.get("latitude")
    longitude = location.get("longitude")
    maps_url = f"https://www.google.com/maps?q={latitude},{longitude}"

    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <div style="max-width: 600px; margin: 0 auto;">
    <h1>New City Issue Report</h1>
    <p>Reported to: {esc(office_name)}</p>

    <h3>Reporter Information</h3>
    <p><strong>Name:</strong> {esc(reporter.get('name'))}</p>
    <p><strong>Email:</strong> {esc(reporter.get('email'))}</p>

    <h3>Issue Description</h3>
    <p>{esc(description)}</p>

    <h3>Location Details</h3>
    <p><strong>City:</strong> {esc(location.get('city'))}</p>
    <p><strong>District:</strong> {esc(location.get('district'))}</p>
    <p><strong>Province:</strong> {esc(location.get('province'))}</p>
    <p><strong>Address:</strong> {esc(location.get('address'))}</p>
    <p>Coordinates: {esc(latitude)}, {esc(longitude)}</p>
    <p><a href="{esc(maps_url)}">View on Google Maps</a></p>

    <h3>Photo Evidence</h3>
    <img src="{esc(photo_url)}" alt="Issue Photo" style="max-width: 100%;" />

    <h3>Report Information</h3>
    <p><strong>Reported at:</strong> {esc(reported_at.strftime('%Y-%m-%d %H:%M UTC'))}</p>
    <p><strong>Priority:</strong> Normal</p>

    <hr />
    <p><strong>SmartCity Issue Reporter System</strong></p>
    <p>This is an automated email. Please take appropriate action.</p>
    <p>For questions, contact: {esc(reporter.get('email'))}</p>
  </div>
</body>
</html>
"""


# Global notifier instance
_notifier = None


def get_notifier() -> SmtpNotifier:
    global _notifier
    if _notifier is None:
        _notifier = SmtpNotifier()
    return _notifier
