# =============================================================================
# app/routers/functions.py - Function Endpoints
# =============================================================================
# POST endpoints kept at the paths the dashboard and the scheduler already
# call (/functions/v1/<name>):
#
# - cleanup-old-generations: purge old history (cron secret or admin)
# - daily-credit-reset: refill daily plans (cron secret or admin)
# - send-contact-email: public contact form
# - send-user-email: transactional user email (cron secret or admin)
# - purchase-credits: credit pack purchase (user) or review (admin)
# - manage-subscription: plan requests (user), review (admin), expiry (cron)
# - process-referral: redeem a referral code for the caller
# =============================================================================

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Header
from fastapi.security import HTTPAuthorizationCredentials

from app.auth import AuthUser, get_current_user, is_admin, verify_token
from app.auth.dependencies import security
from app.dependencies import CronCaller, MailerDep, require_cron_or_admin
from app.exceptions import AdminRequiredError, UnauthorizedError
from core.models.billing import PurchaseCreditsRequest
from core.models.referral import ProcessReferralRequest
from core.models.subscription import ManageSubscriptionRequest, SubscriptionAction
from core.models.user_email import UserEmailRequest
from core.services.cleanup_service import CleanupService
from core.services.contact_service import ContactService
from core.services.credit_pack_service import CreditPackService
from core.services.credit_reset_service import CreditResetService
from core.services.referral_service import ReferralService
from core.services.subscription_service import SubscriptionService
from core.services.user_email_service import UserEmailService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Scheduled Jobs
# =============================================================================

@router.post("/cleanup-old-generations")
async def cleanup_old_generations(caller: CronCaller):
    """
    Delete generations older than the retention window.

    Returns:
        {"message", "deleted", "filesRemoved"}
    """
    logger.info(f"Cleanup triggered by {caller}")
    return CleanupService.cleanup_old_generations()


@router.post("/daily-credit-reset")
async def daily_credit_reset(caller: CronCaller):
    """Reset credits for every active subscription on a daily-reset plan."""
    logger.info(f"Daily credit reset triggered by {caller}")
    return CreditResetService.reset_daily_credits()


# =============================================================================
# Email
# =============================================================================

@router.post("/send-contact-email")
async def send_contact_email(
    mailer: MailerDep,
    payload: dict[str, Any] | None = Body(default=None),
):
    """
    Submit the public contact form. No authentication.

    The body is validated by the service so malformed input gets the
    form's own 400 message.
    """
    return ContactService.submit(payload or {}, mailer)


@router.post("/send-user-email")
async def send_user_email(request: UserEmailRequest, caller: CronCaller, mailer: MailerDep):
    """Send one transactional email to a user."""
    logger.info(f"User email {request.type.value} requested by {caller}")
    return UserEmailService.send(request, mailer)


# =============================================================================
# Credit Packs
# =============================================================================

@router.post("/purchase-credits")
async def purchase_credits(
    request: PurchaseCreditsRequest,
    mailer: MailerDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Credit pack purchases.

    - With `action` (approve/reject) and `purchaseId`: admin review
    - Otherwise, with `packId`: submit a pending purchase for the caller
    """
    if request.action is not None:
        if not is_admin(user):
            raise AdminRequiredError()
        return CreditPackService.review_purchase(
            user.id,
            request.purchase_id,
            request.action,
            admin_notes=request.admin_notes,
            mailer=mailer,
        )

    return CreditPackService.request_purchase(user.id, request)


# =============================================================================
# Subscriptions
# =============================================================================

@router.post("/manage-subscription")
async def manage_subscription(
    request: ManageSubscriptionRequest,
    mailer: MailerDep,
    x_cron_secret: Annotated[Optional[str], Header()] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    """
    Subscription actions.

    - subscribe / cancel: the caller's own subscription
    - approve / reject: admin only, with `subscriptionId`
    - check-expiration: cron secret or admin
    """
    if request.action == SubscriptionAction.CHECK_EXPIRATION:
        caller = await require_cron_or_admin(x_cron_secret, credentials)
        logger.info(f"Subscription expiry check triggered by {caller}")
        return SubscriptionService.expire_lapsed()

    if credentials is None:
        raise UnauthorizedError()
    user = verify_token(credentials.credentials)

    if request.action == SubscriptionAction.SUBSCRIBE:
        return SubscriptionService.request_subscription(user.id, request)
    if request.action == SubscriptionAction.CANCEL:
        return SubscriptionService.cancel(user.id)

    if not is_admin(user):
        raise AdminRequiredError()
    if request.action == SubscriptionAction.APPROVE:
        return SubscriptionService.approve(user.id, request.subscription_id, mailer)
    return SubscriptionService.reject(user.id, request.subscription_id, request.admin_notes, mailer)


# =============================================================================
# Referrals
# =============================================================================

@router.post("/process-referral")
async def process_referral(
    request: ProcessReferralRequest,
    mailer: MailerDep,
    user: AuthUser = Depends(get_current_user),
):
    """Redeem a referral code for the signed-in user."""
    return ReferralService.process_referral(user.id, request.referral_code, mailer)
