"""Outbound email: account invites, address verification and event confirmations.

Delivery problems are logged and reported as ``False``; they never fail
the account operation that triggered them.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib

from churchadmin.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


EMAIL_TEMPLATES = {
    "user_invite": {
        "subject": "[{church_name}] Your admin account is ready",
        "body": """
Hello {member_name},

An administrator account has been created for you at {church_name}.

Sign-in email: {email}
Temporary password: {temp_password}

Please verify your email address first:
{verify_url}

You will be asked to choose a new password after your first sign-in.

---
{church_name}
        """,
    },
    "verify_email": {
        "subject": "[{church_name}] Verify your email address",
        "body": """
Please confirm your email address by opening the link below:

{verify_url}

If you did not expect this message you can ignore it.

---
{church_name}
        """,
    },
    "event_confirmation": {
        "subject": "[{church_name}] {headline}: {event_title}",
        "body": """
Hello {member_name},

{headline} for {event_title}.

When: {start_date}
Where: {location}
Status: {registration_status}

Please show this code at check-in: {registration_id}

---
{church_name}
        """,
    },
}


class EmailNotifier:
    """Renders templates and delivers them over SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def verify_url(self, token: str) -> str:
        return f"{self.settings.app_base_url.rstrip('/')}/verify?token={token}"

    async def send_user_invite(
        self,
        to_email: str,
        member_name: str,
        temp_password: str,
        verification_token: str,
        church_name: Optional[str] = None,
    ) -> bool:
        return await self._send_email(
            to_email,
            "user_invite",
            {
                "member_name": member_name,
                "email": to_email,
                "temp_password": temp_password,
                "verify_url": self.verify_url(verification_token),
                "church_name": church_name or self.settings.church_name,
            },
        )

    async def send_verification_email(
        self,
        to_email: str,
        verification_token: str,
        church_name: Optional[str] = None,
    ) -> bool:
        return await self._send_email(
            to_email,
            "verify_email",
            {
                "verify_url": self.verify_url(verification_token),
                "church_name": church_name or self.settings.church_name,
            },
        )

    async def send_event_confirmation(
        self,
        to_email: str,
        member_name: str,
        event_title: str,
        start_date: str,
        location: str,
        registration_id: str,
        waitlisted: bool = False,
        church_name: Optional[str] = None,
    ) -> bool:
        return await self._send_email(
            to_email,
            "event_confirmation",
            {
                "member_name": member_name,
                "headline": "You are on the waitlist" if waitlisted else "You are registered",
                "event_title": event_title,
                "start_date": start_date,
                "location": location,
                "registration_status": "waitlist" if waitlisted else "registered",
                "registration_id": registration_id,
                "church_name": church_name or self.settings.church_name,
            },
        )

    async def _send_email(self, to_email: str, template_key: str, context: dict) -> bool:
        template = EMAIL_TEMPLATES[template_key]
        subject = template["subject"].format(**context)
        body = template["body"].format(**context)

        try:
            return await self._deliver_email(to_email, subject, body)
        except (aiosmtplib.SMTPException, OSError):
            logger.exception(f"Failed to send {template_key} email to {to_email}")
            return False

    async def _deliver_email(self, to_email: str, subject: str, body: str) -> bool:
        """Actually deliver the email via SMTP."""
        if not self.settings.smtp_host:
            logger.warning("SMTP not configured, skipping email delivery")
            return False

        msg = MIMEMultipart()
        msg["From"] = f"{self.settings.smtp_from_name} <{self.settings.smtp_from_email}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        await aiosmtplib.send(
            msg,
            hostname=self.settings.smtp_host,
            port=self.settings.smtp_port,
            username=self.settings.smtp_user,
            password=self.settings.smtp_password,
            use_tls=self.settings.smtp_use_tls,
        )
        return True


def get_notifier() -> EmailNotifier:
    """FastAPI dependency; tests override it with a recording fake."""
    return EmailNotifier()
