"""
Notification Service - Emails an operator address on sign-up and login.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

import httpx

from dionysus.api.middleware.error_handler import NotificationError

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"

AuthEventType = Literal["login", "signup"]


@dataclass
class AuthEvent:
    event_type: AuthEventType
    name: str
    email: str
    user_id: str
    occurred_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class NotificationConfig:
    api_key: Optional[str] = None
    sender: str = "Dionysus Auth <onboarding@resend.dev>"
    recipient: Optional[str] = None
    timeout_seconds: float = 30.0


_CELL = 'style="padding:8px;border:1px solid #e2e8f0;"'


def build_subject(event: AuthEvent) -> str:
    prefix = "New Signup" if event.event_type == "signup" else "User Login"
    return f"[Dionysus] {prefix}: {event.name}"


def build_html(event: AuthEvent) -> str:
    """Render the event as an HTML table with every value escaped."""
    rows = [
        ("Event", event.event_type.upper()),
        ("Name", event.name),
        ("Email", event.email),
        ("User ID", event.user_id),
        ("Occurred At (UTC)", event.occurred_at.isoformat()),
        ("IP Address", event.ip_address or "Unavailable"),
        ("User Agent", event.user_agent or "Unavailable"),
    ]
    body = "".join(
        f"<tr><td {_CELL}><strong>{label}</strong></td><td {_CELL}>{html.escape(value)}</td></tr>"
        for label, value in rows
    )
    return (
        '<div style="font-family:Arial,sans-serif;line-height:1.5;color:#0f172a;">'
        '<h2 style="margin-bottom:8px;">Dionysus Authentication Event</h2>'
        '<p style="margin-top:0;">A user has completed an authentication action.</p>'
        '<table style="border-collapse:collapse;width:100%;max-width:640px;">'
        f"<tbody>{body}</tbody></table></div>"
    )


class NotificationService:
    """Sends auth notification emails through Resend."""

    def __init__(self, config: Optional[NotificationConfig] = None):
        self.config = config or NotificationConfig()

    async def send_auth_notification(self, event: AuthEvent) -> bool:
        """
        Send the notification email.

        Returns:
            False when skipped because no API key or recipient is configured.

        Raises:
            NotificationError: If the provider rejects the request.
        """
        if not self.config.api_key or not self.config.recipient:
            logger.warning("RESEND_API_KEY or AUTH_NOTIFY_TO is missing. Auth notification email was skipped.")
            return False

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            response = await client.post(
                RESEND_EMAILS_URL,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                json={
                    "from": self.config.sender,
                    "to": [self.config.recipient],
                    "subject": build_subject(event),
                    "html": build_html(event),
                },
            )

        if response.is_error:
            raise NotificationError(response.status_code, response.text)

        logger.info(f"Sent {event.event_type} notification for {event.user_id}")
        return True
