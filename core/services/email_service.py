# =============================================================================
# core/services/email_service.py - SendGrid Email Delivery
# =============================================================================
# Thin wrapper over the SendGrid API client, shared by the contact form and
# the user emails. A missing SENDGRID_API_KEY leaves the service
# unconfigured: send_email() then returns False.
#
# Usage:
#   from core.services.email_service import get_email_service
#   sent = get_email_service().send_email(to, subject, html, reply_to=sender)
# =============================================================================

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, ReplyTo, To

from app.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SendGrid"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = from_email or settings.SENDGRID_FROM_EMAIL
        self.from_name = from_name or settings.SENDGRID_FROM_NAME

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not set - emails will not be sent")
            self.client = None
        else:
            self.client = SendGridAPIClient(self.api_key)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        reply_to: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> bool:
        """
        Send one HTML email. No retries.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body
            reply_to: Address replies should go to
            from_name: Sender display name, instead of SENDGRID_FROM_NAME

        Returns:
            True if SendGrid accepted the message, False otherwise
        """
        if not self.client:
            logger.error("Cannot send email - SendGrid not configured")
            return False

        message = Mail(
            from_email=Email(self.from_email, from_name or self.from_name),
            to_emails=To(to_email),
            subject=subject,
            html_content=Content("text/html", html_content),
        )
        if reply_to:
            message.reply_to = ReplyTo(reply_to)

        try:
            response = self.client.send(message)
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        if response.status_code in (200, 201, 202):
            logger.info(f"Email sent successfully to {to_email}: {subject}")
            return True

        logger.error(f"SendGrid error: {response.status_code} - {response.body}")
        return False


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
