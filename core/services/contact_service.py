# =============================================================================
# core/services/contact_service.py - Contact Form
# =============================================================================
# Validates a contact form submission, stores it for the admin inbox and
# forwards it to the support address by email.
# =============================================================================

import html
import logging
from typing import Any

from pydantic import ValidationError

from app.config import settings
from app.exceptions import BadRequestError, EmailDeliveryError
from core.models.contact import ContactRequest
from core.services.email_service import EmailService, get_email_service
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def parse_contact_request(payload: dict[str, Any]) -> ContactRequest:
    """
    Validate a raw submission.

    Raises:
        BadRequestError: With the first rule the submission breaks
    """
    try:
        return ContactRequest.model_validate(payload)
    except ValidationError as e:
        errors = e.errors()
        message = errors[0]["msg"] if errors else "Invalid contact form submission"
        raise BadRequestError(message, code="INVALID_CONTACT_FORM")


def render_contact_email(contact: ContactRequest) -> str:
    """HTML body for the support inbox. All user input is escaped."""
    name = html.escape(contact.name)
    email = html.escape(contact.email)
    subject = html.escape(contact.subject)
    message = html.escape(contact.message).replace("\n", "<br>")

    return f"""
        <h2>New Contact Form Submission</h2>
        <p><strong>From:</strong> {name}</p>
        <p><strong>Email:</strong> {email}</p>
        <p><strong>Subject:</strong> {subject}</p>
        <hr />
        <h3>Message:</h3>
        <p>{message}</p>
        <hr />
        <p style="color: #666; font-size: 12px;">
          This email was sent from the contact form on your website.
        </p>
    """


class ContactService:
    """Stores and forwards contact form submissions."""

    @staticmethod
    def save_submission(contact: ContactRequest) -> bool:
        """Store the submission as unread. Failures are logged, not raised."""
        client = SupabaseClient.get_client()
        try:
            client.table("contact_submissions").insert({
                "name": contact.name,
                "email": contact.email,
                "subject": contact.subject,
                "message": contact.message,
                "status": "unread",
            }).execute()
            logger.info("Contact submission saved to database")
            return True
        except Exception as e:
            logger.error(f"Error saving contact submission: {e}")
            return False

    @staticmethod
    def submit(payload: dict[str, Any], email_service: EmailService | None = None) -> dict[str, Any]:
        """
        Handle a contact form submission end to end.

        Returns:
            {"success": True, "message": "Email sent successfully"}

        Raises:
            BadRequestError: Invalid submission
            EmailDeliveryError: Email not configured or not accepted
        """
        email_service = email_service or get_email_service()
        if not email_service.is_configured:
            logger.error("SENDGRID_API_KEY is not configured")
            raise EmailDeliveryError("Email service is not configured")

        contact = parse_contact_request(payload)
        logger.info(f"Processing contact form from {contact.name} ({contact.email})")

        ContactService.save_submission(contact)

        sent = email_service.send_email(
            to_email=settings.SUPPORT_EMAIL,
            subject=f"[Contact Form] {contact.subject}",
            html_content=render_contact_email(contact),
            reply_to=contact.email,
        )
        if not sent:
            raise EmailDeliveryError()

        return {"success": True, "message": "Email sent successfully"}
