"""Email service using SendGrid."""

from datetime import datetime
from typing import Optional

import httpx

from journey.email.templates import (
    RenderedEmail,
    render_boarding_pass,
    render_internal_notification,
    render_payment_receipt,
)
from journey.exceptions import NotificationDeliveryError
from journey.logging_config import get_logger
from journey.settings import settings

logger = get_logger(__name__)


class EmailService:
    """Email service using SendGrid API.

    Handles the waitlist's outbound mail:
    - Boarding pass for free signups
    - Payment receipt for paid signups
    - Internal signup notification
    - Drip sequence emails
    """

    SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """Initialize email service.

        Args:
            api_key: SendGrid API key (defaults to settings)
            from_email: Sender address (defaults to settings)
            from_name: Sender display name (defaults to settings)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self.from_email = from_email or settings.sendgrid_from_email
        self.from_name = from_name or settings.sendgrid_from_name
        self.timeout = timeout
        self.enabled = bool(self.api_key)

        if not self.enabled:
            logger.warning("email_service_disabled", reason="SENDGRID_API_KEY not set")

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """Send an email via SendGrid API.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body
            text_content: Plain text body (optional)

        Returns:
            True if sent, False if the service is disabled

        Raises:
            NotificationDeliveryError: If SendGrid rejects the message or is unreachable
        """
        if not self.enabled:
            logger.warning("email_not_sent", reason="service_disabled", to=to_email)
            return False

        payload = {
            "personalizations": [
                {
                    "to": [{"email": to_email}],
                    "subject": subject,
                }
            ],
            "from": {
                "email": self.from_email,
                "name": self.from_name,
            },
            "content": [
                {"type": "text/html", "value": html_content},
            ],
        }

        if text_content:
            # SendGrid requires text/plain before text/html
            payload["content"].insert(0, {"type": "text/plain", "value": text_content})

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.SENDGRID_API_URL,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.RequestError as e:
            logger.error("email_send_error", to=to_email, error=str(e))
            raise NotificationDeliveryError(f"SendGrid unreachable for {to_email}", details=str(e)) from e

        if response.status_code not in (200, 201, 202):
            logger.error(
                "email_send_failed",
                to=to_email,
                status=response.status_code,
                body=response.text[:200],
            )
            raise NotificationDeliveryError(
                f"SendGrid rejected email to {to_email}",
                details=f"status={response.status_code}",
            )

        logger.info("email_sent", to=to_email, subject=subject)
        return True

    async def send_rendered(self, to_email: str, email: RenderedEmail) -> bool:
        """Send a rendered template."""
        return await self.send(to_email, email.subject, email.html, email.text)

    async def send_boarding_pass(
        self,
        to_email: str,
        first_name: Optional[str],
        queue_position: int,
    ) -> bool:
        """Send the boarding pass to a free signup."""
        return await self.send_rendered(to_email, render_boarding_pass(first_name, queue_position))

    async def send_payment_receipt(
        self,
        to_email: str,
        first_name: Optional[str],
        amount_cents: int,
        payment_id: str,
        queue_position: int,
    ) -> bool:
        """Send the payment receipt, which doubles as the boarding pass."""
        email = render_payment_receipt(first_name, amount_cents, payment_id, queue_position)
        return await self.send_rendered(to_email, email)

    async def send_internal_notification(
        self,
        user_email: str,
        first_name: Optional[str],
        tier: str,
        amount_cents: Optional[int] = None,
        signed_up_at: Optional[datetime] = None,
        recipients: Optional[list[str]] = None,
    ) -> int:
        """Notify the team about a new signup.

        Args:
            user_email: The new subscriber's email
            first_name: The new subscriber's name
            tier: "paid" or "free"
            amount_cents: Amount paid, for paid signups
            signed_up_at: Signup time (defaults to now)
            recipients: Admin addresses (defaults to settings)

        Returns:
            Number of notifications sent
        """
        recipients = recipients if recipients is not None else settings.internal_notification_emails
        if not recipients:
            logger.debug("internal_notification_skipped", reason="no_recipients")
            return 0

        email = render_internal_notification(user_email, first_name, tier, amount_cents, signed_up_at)
        sent = 0
        for recipient in recipients:
            if await self.send_rendered(recipient, email):
                sent += 1
        return sent


# Singleton instance
email_service = EmailService()
