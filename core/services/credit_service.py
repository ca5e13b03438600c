# =============================================================================
# core/services/credit_service.py - Credit Metering
# =============================================================================
# Checks and deducts credits for the AI tools.
#
# Flow per request:
# 1. get_credit_status(user_id) - admin role, subscription, plan
# 2. ensure_credits(status, n) - 402 when a metered user is short
# 3. ...call the AI gateway...
# 4. deduct_credits(status, n) - only after success, never fails the request
#
# Admins and unlimited plans are never checked or charged.
# =============================================================================

import logging
from uuid import UUID

from app.exceptions import InsufficientCreditsError, SubscriptionLookupError
from core.models.billing import CreditStatus
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, utc_now

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "free"


class CreditService:
    """Credit checks and deductions against the current subscription."""

    @staticmethod
    def get_credit_status(user_id: str | UUID) -> CreditStatus:
        """
        Build the caller's credit status.

        Raises:
            SubscriptionLookupError: If the subscription cannot be read
        """
        user_id_str = normalize_uuid(user_id)

        try:
            is_admin = SupabaseClient.has_role(user_id_str, "admin")
        except SupabaseClientError as e:
            logger.warning(f"Role check failed for {user_id_str}, treating as non-admin: {e}")
            is_admin = False

        try:
            subscription = SupabaseClient.fetch_current_subscription(user_id_str)
        except SupabaseClientError as e:
            logger.error(f"Error fetching subscription for {user_id_str}: {e}")
            raise SubscriptionLookupError()

        subscription = subscription or {}
        plan_name = subscription.get("plan") or DEFAULT_PLAN

        try:
            plan = SupabaseClient.fetch_plan(plan_name)
        except SupabaseClientError as e:
            logger.warning(f"Plan lookup failed for {plan_name}: {e}")
            plan = None

        return CreditStatus(
            user_id=user_id_str,
            plan=plan_name,
            credits_remaining=subscription.get("credits_remaining") or 0,
            is_admin=is_admin,
            is_unlimited=bool((plan or {}).get("is_unlimited")),
        )

    @staticmethod
    def ensure_credits(status: CreditStatus, needed: int = 1) -> None:
        """
        Raises:
            InsufficientCreditsError: If a metered user has fewer than needed
        """
        if not status.has_credits(needed):
            logger.info(
                f"User {status.user_id} has {status.credits_remaining} credits, needs {needed}"
            )
            raise InsufficientCreditsError(needed, status.credits_remaining)

    @staticmethod
    def deduct_credits(status: CreditStatus, amount: int = 1) -> int | None:
        """
        Deduct credits after a successful operation.

        The balance is re-read so concurrent requests don't restore spent
        credits, and never goes below zero. Failures are logged only.

        Returns:
            New balance, or None if nothing was deducted
        """
        if not status.is_metered:
            return None

        try:
            subscription = SupabaseClient.fetch_current_subscription(status.user_id)
            if not subscription:
                logger.warning(f"No current subscription to deduct from for {status.user_id}")
                return None

            remaining = max(0, (subscription.get("credits_remaining") or 0) - amount)

            client = SupabaseClient.get_client()
            client.table("subscriptions").update({
                "credits_remaining": remaining,
                "updated_at": utc_now().isoformat(),
            }).eq("id", subscription["id"]).execute()

            logger.info(f"Deducted {amount} credits from user {status.user_id}. Remaining: {remaining}")
            return remaining

        except Exception as e:
            logger.error(f"Failed to deduct credits for {status.user_id}: {e}")
            return None
