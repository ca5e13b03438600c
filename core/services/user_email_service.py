# =============================================================================
# core/services/user_email_service.py - Transactional User Emails
# =============================================================================
# Renders and sends the emails a user gets after an account or billing
# event (credit pack reviewed, plan approved, referral reward, ...).
#
# Two entry points:
# - send(request): explicit send from POST /functions/v1/send-user-email,
#   errors are raised
# - notify_user(user_id, type, ...): sent by the billing services after a
#   state change; best effort, the state change never depends on it
#
# Every value that comes from a user or an admin is HTML-escaped.
# =============================================================================

import html
import logging
from typing import Any

from app.config import settings
from app.exceptions import BadRequestError, EmailDeliveryError
from core.models.user_email import UserEmailRequest, UserEmailType
from core.services.email_service import EmailService, get_email_service
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Templates
# =============================================================================

_STYLES = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { text-align: center; margin-bottom: 30px; }
    .header h1 { color: #6366f1; margin: 0; font-size: 28px; }
    .content { background: #f8f9fa; border-radius: 12px; padding: 30px; margin-bottom: 30px; }
    .stat { background: white; border-radius: 8px; padding: 20px; margin: 20px 0; text-align: center; }
    .stat .value { margin: 10px 0 0 0; font-size: 36px; font-weight: bold; color: #6366f1; }
    .notes { background: white; border-radius: 8px; padding: 20px; margin: 20px 0; border-left: 4px solid #f59e0b; }
    .button { display: inline-block; background: #6366f1; color: white; padding: 12px 24px; border-radius: 8px; text-decoration: none; font-weight: 600; margin: 20px 0; }
    .footer { text-align: center; color: #666; font-size: 14px; border-top: 1px solid #eee; padding-top: 20px; }
"""


def _layout(heading: str, body: str, button_text: str, button_url: str, footer: str) -> str:
    support = html.escape(settings.SUPPORT_EMAIL)
    site = html.escape(settings.APP_NAME)
    return f"""<!DOCTYPE html>
<html>
<head><style>{_STYLES}</style></head>
<body>
  <div class="container">
    <div class="header"><h1>{heading}</h1></div>
    <div class="content">
      {body}
      <center><a href="{html.escape(button_url)}" class="button">{button_text}</a></center>
    </div>
    <div class="footer">
      <p>{footer}</p>
      <p>Need help? Contact us at <a href="mailto:{support}">{support}</a></p>
      <p>&copy; {utc_now().year} {site}. All rights reserved.</p>
    </div>
  </div>
</body>
</html>"""


def _notes_block(admin_notes: str | None) -> str:
    if not admin_notes:
        return ""
    return (
        '<div class="notes"><p style="margin: 0; font-weight: 600;">Reason:</p>'
        f'<p style="margin: 10px 0 0 0;">{html.escape(admin_notes)}</p></div>'
    )


def render_user_email(request: UserEmailRequest) -> tuple[str, str]:
    """
    Subject and HTML body for one user email.

    Example:
        subject, body = render_user_email(UserEmailRequest(
            type="credit_pack_approved", userEmail="ana@example.com", credits=120,
        ))
        # subject == "Your Credits Have Been Added!"
    """
    site = settings.APP_NAME
    dashboard = request.dashboard_url or settings.DASHBOARD_URL
    support_link = f"mailto:{settings.SUPPORT_EMAIL}"
    greeting = f"<p>Hi {html.escape(request.user_name)},</p>" if request.user_name else "<p>Hi there,</p>"
    plan = html.escape(request.plan_name or "selected")
    credits = request.credits

    if request.type == UserEmailType.WELCOME:
        bonus = (
            f"<p>You've been given <strong>{credits} free credits</strong> to get started!</p>"
            if credits else ""
        )
        body = (
            f"{greeting}<p>Thank you for joining {html.escape(site)}! Your account is ready. You can:</p>"
            "<ul><li><strong>Generate Metadata</strong>: titles, descriptions and keywords for your uploads</li>"
            "<li><strong>Image to Prompt</strong>: turn any image into a detailed AI prompt</li>"
            "<li><strong>File Reviewer</strong>: check your files against marketplace rules</li></ul>"
            f"{bonus}"
        )
        return (
            f"Welcome to {site}!",
            _layout(f"Welcome to {html.escape(site)}!", body, "Go to Dashboard", dashboard,
                    "We're excited to have you on board."),
        )

    if request.type == UserEmailType.UPGRADE_APPROVED:
        credit_line = f"{credits}" if credits else "Unlimited"
        body = (
            f"{greeting}<p>Great news! Your upgrade to the <strong>{plan}</strong> plan has been approved.</p>"
            f'<div class="stat"><p style="margin: 0;"><strong>Plan:</strong> {plan}</p>'
            f'<p style="margin: 10px 0 0 0;"><strong>Credits:</strong> {credit_line}</p></div>'
            "<p>Your new credits are ready to use.</p>"
        )
        return (
            f"Your {request.plan_name or 'new'} Plan is Now Active!",
            _layout("Upgrade Approved!", body, "Start Using Your Credits", dashboard,
                    "Thank you for your support!"),
        )

    if request.type == UserEmailType.UPGRADE_REJECTED:
        body = (
            f"{greeting}<p>We've reviewed your upgrade request for the <strong>{plan}</strong> plan.</p>"
            "<p>Unfortunately, we were unable to approve your request at this time.</p>"
            f"{_notes_block(request.admin_notes)}"
            "<p>If you believe this was a mistake, please contact our support team.</p>"
        )
        return (
            f"Update on Your Upgrade Request - {site}",
            _layout("Upgrade Request Update", body, "Contact Support", support_link, "We're here to help!"),
        )

    if request.type == UserEmailType.CREDIT_PACK_APPROVED:
        body = (
            f"{greeting}<p>Your credit pack purchase has been approved and your account has been credited!</p>"
            f'<div class="stat"><p style="margin: 0; font-size: 14px; color: #666;">Credits Added</p>'
            f'<p class="value">{credits or 0}</p></div>'
            "<p>Your new credits are now available in your account. Happy creating!</p>"
        )
        return (
            "Your Credits Have Been Added!",
            _layout("Credits Added!", body, "Use Your Credits", dashboard, "Thank you for your purchase!"),
        )

    if request.type == UserEmailType.CREDIT_PACK_REJECTED:
        body = (
            f"{greeting}<p>We've reviewed your credit pack purchase request.</p>"
            "<p>Unfortunately, we were unable to approve your purchase at this time.</p>"
            f"{_notes_block(request.admin_notes)}"
            "<p>If you have questions or believe this was an error, please contact our support team.</p>"
        )
        return (
            f"Update on Your Credit Pack Purchase - {site}",
            _layout("Credit Pack Update", body, "Contact Support", support_link, "We're here to help!"),
        )

    if request.type == UserEmailType.REFERRAL_REWARD:
        body = (
            f"{greeting}<p>Someone you referred has signed up and you've earned bonus credits!</p>"
            f'<div class="stat"><p style="margin: 0; font-size: 14px; color: #666;">Bonus Credits Earned</p>'
            f'<p class="value">+{credits or 0}</p></div>'
            "<p>Keep sharing your referral link to earn more rewards!</p>"
        )
        return (
            f"You Earned {credits or 0} Bonus Credits!",
            _layout("Referral Reward!", body, "View Your Referrals", f"{dashboard}/referrals",
                    "Thank you for spreading the word!"),
        )

    # SUBSCRIPTION_EXPIRING
    days = request.expires_in if request.expires_in is not None else "a few"
    body = (
        f"{greeting}<p>Your <strong>{plan}</strong> subscription will expire in <strong>{days} days</strong>.</p>"
        "<p>To keep your plan and credits, please renew before it expires.</p>"
    )
    return (
        f"Your {site} Subscription Expires Soon",
        _layout("Subscription Expiring", body, "Renew Subscription", f"{dashboard}/subscription",
                "Thank you for being a subscriber."),
    )


# =============================================================================
# Service
# =============================================================================

class UserEmailService:
    """Sends transactional emails to users."""

    @staticmethod
    def send(request: UserEmailRequest, email_service: EmailService | None = None) -> dict[str, Any]:
        """
        Render and send one email.

        Returns:
            {"success": True}

        Raises:
            BadRequestError: No recipient
            EmailDeliveryError: Email not configured or not accepted
        """
        if not request.user_email:
            raise BadRequestError("User email is required", code="USER_EMAIL_REQUIRED")

        email_service = email_service or get_email_service()
        if not email_service.is_configured:
            logger.error("SENDGRID_API_KEY is not configured")
            raise EmailDeliveryError("Email service is not configured")

        subject, body = render_user_email(request)
        sent = email_service.send_email(
            to_email=request.user_email,
            subject=subject,
            html_content=body,
            from_name=settings.APP_NAME,
        )
        if not sent:
            raise EmailDeliveryError()

        logger.info(f"User email sent: {request.type.value} to {request.user_email}")
        return {"success": True}

    @staticmethod
    def notify_user(
        user_id: str,
        email_type: UserEmailType,
        email_service: EmailService | None = None,
        **fields: Any,
    ) -> bool:
        """
        Email a user by id after a state change. Never raises.

        Args:
            user_id: Auth user to email; address and name are looked up
            email_type: Template to use
            email_service: Mailer, defaults to the shared SendGrid service
            **fields: Template fields (plan_name, credits, admin_notes, ...)

        Returns:
            True if the email was accepted
        """
        email_service = email_service or get_email_service()
        if not email_service.is_configured:
            logger.debug(f"Skipping {email_type.value} email for {user_id}: email not configured")
            return False

        contact = SupabaseClient.fetch_user_contact(user_id)
        if not contact:
            logger.warning(f"Skipping {email_type.value} email for {user_id}: no email address")
            return False

        request = UserEmailRequest(
            type=email_type,
            user_email=contact["email"],
            user_name=contact.get("full_name"),
            **fields,
        )
        try:
            UserEmailService.send(request, email_service)
            return True
        except EmailDeliveryError as e:
            logger.error(f"Failed to send {email_type.value} email to {user_id}: {e.message}")
            return False
