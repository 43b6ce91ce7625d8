"""
Email Service

Transactional email delivery through SMTP, the Mailjet HTTP API, or a
mock provider that only logs (the default, used in development and tests).
"""
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional

import requests

from app.core.config import settings
from app.core.exceptions import DependencyFailureError

logger = logging.getLogger(__name__)

MAILJET_SEND_URL = "https://api.mailjet.com/v3.1/send"


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    MAILJET = "mailjet"
    MOCK = "mock"


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    body_html: str
    cc: Optional[List[str]] = None


class EmailService:
    """Sends a single message with the configured provider."""

    def __init__(self, config=None):
        self.config = config or settings.email
        self.provider = (self.config.provider or EmailProvider.MOCK).lower()

    def deliver(self, message: EmailMessage) -> None:
        """
        Send the message or raise DependencyFailureError.

        Used by the outbox, which records the failure reason.
        """
        try:
            if self.provider == EmailProvider.SMTP:
                self._send_via_smtp(message)
            elif self.provider == EmailProvider.MAILJET:
                self._send_via_mailjet(message)
            else:
                self._send_mock(message)
        except DependencyFailureError:
            raise
        except Exception as e:
            raise DependencyFailureError(f"Email delivery via {self.provider} failed: {e}") from e

    def send_email(self, message: EmailMessage) -> bool:
        """Best-effort send: failures are logged and reported as False, never raised."""
        try:
            self.deliver(message)
            return True
        except DependencyFailureError as e:
            logger.error(f"Failed to send email to {message.to}: {e.message}")
            return False

    def _cc(self, message: EmailMessage) -> List[str]:
        if message.cc is not None:
            return message.cc
        return [self.config.cc] if self.config.cc else []

    def _send_via_smtp(self, message: EmailMessage) -> None:
        if not self.config.smtp_host:
            raise DependencyFailureError("SMTP host is not configured")

        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = formataddr((self.config.from_name, self.config.from_email))
        mime["To"] = ", ".join(message.to)
        cc = self._cc(message)
        if cc:
            mime["Cc"] = ", ".join(cc)
        mime.attach(MIMEText(message.body_html, "html", "utf-8"))

        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as server:
            if self.config.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.config.smtp_username and self.config.smtp_password:
                server.login(self.config.smtp_username, self.config.smtp_password)
            server.sendmail(self.config.from_email, message.to + cc, mime.as_string())

        logger.info(f"Email sent via SMTP to {message.to}")

    def _send_via_mailjet(self, message: EmailMessage) -> None:
        if not (self.config.mailjet_api_key and self.config.mailjet_api_secret):
            raise DependencyFailureError("Mailjet credentials are not configured")

        payload = {
            "Messages": [
                {
                    "From": {"Email": self.config.from_email, "Name": self.config.from_name},
                    "To": [{"Email": address} for address in message.to],
                    "Subject": message.subject,
                    "HTMLPart": message.body_html,
                }
            ]
        }
        cc = self._cc(message)
        if cc:
            payload["Messages"][0]["Cc"] = [{"Email": address} for address in cc]

        response = requests.post(
            MAILJET_SEND_URL,
            json=payload,
            auth=(self.config.mailjet_api_key, self.config.mailjet_api_secret),
            timeout=30,
        )
        if response.status_code not in (200, 201):
            raise DependencyFailureError(
                f"Mailjet API error: {response.status_code}",
                details={"response": response.text[:500]},
            )
        logger.info(f"Email sent via Mailjet to {message.to}")

    def _send_mock(self, message: EmailMessage) -> None:
        logger.info(
            f"[MOCK EMAIL] To: {message.to} | Subject: {message.subject}",
            extra={"email_to": message.to, "email_subject": message.subject},
        )


def get_email_service() -> EmailService:
    return EmailService()
