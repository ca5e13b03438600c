# =============================================================================
# core/services/subscription_service.py - Subscription Management
# =============================================================================
# Plans are paid for outside the app, like credit packs: a user requests a
# plan, an admin confirms the payment and approves or rejects the request.
#
# Subscription lifecycle:
#   pending -> active     plan credits granted, previous subscription expired
#           \-> (deleted) request rejected
#   active  -> canceled   by the user; plan and credits kept until expires_at
#   active/canceled -> expired   by check-expiration once expires_at passed;
#                                the user gets a fresh free-plan subscription
#
# Plan credits and prices come from pricing_config, with FALLBACK_PLAN_CONFIG
# when a plan is missing there or the lookup fails. Every transition notifies
# the user in-app; approve/reject also send an email when configured.
# =============================================================================

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from app.exceptions import BadRequestError, JobFailedError, NotFoundError, SubscriptionUpdateError
from core.models.subscription import ManageSubscriptionRequest, PlanConfig, SubscriptionStatus
from core.models.user_email import UserEmailType
from core.services.email_service import EmailService
from core.services.user_email_service import UserEmailService
from lib.supabase_client import (
    CURRENT_SUBSCRIPTION_STATUSES,
    SupabaseClient,
    SupabaseClientError,
    is_no_rows_error,
)
from lib.utils import add_months, normalize_uuid, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

JOB_NAME = "check-subscription-expiration"
FREE_PLAN = "free"
UNLIMITED_PLAN = "unlimited"

FALLBACK_PLAN_CONFIG = {
    "free": PlanConfig(credits=5, price_cents=0),
    "pro": PlanConfig(credits=100, price_cents=1900),
    "enterprise": PlanConfig(credits=500, price_cents=4900),
    "unlimited": PlanConfig(credits=0, price_cents=9900, unlimited=True),
}


class SubscriptionExpiryError(JobFailedError):
    """Raised when the lapsed subscriptions cannot be read."""

    def __init__(self, error: str):
        super().__init__(JOB_NAME, error)


def plan_label(plan: str) -> str:
    """'pro' -> 'Pro'; only the first letter changes."""
    return plan[:1].upper() + plan[1:]


def format_access_date(value: str | None) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return "the end of your billing period"
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


class SubscriptionService:
    """User requests, admin review and expiry of subscriptions."""

    # -------------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------------

    @staticmethod
    def plan_config(plan_name: str) -> PlanConfig:
        """
        Credits and price of an active plan.

        Falls back to FALLBACK_PLAN_CONFIG (and to the free plan for unknown
        names) when pricing_config has no active row or cannot be read.
        """
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("pricing_config")
                .select("credits, price_cents, is_unlimited")
                .eq("plan_name", plan_name)
                .eq("is_active", True)
                .single()
                .execute()
            )
            row = response.data
        except Exception as e:
            if not is_no_rows_error(e):
                logger.warning(f"Plan lookup failed for {plan_name}: {e}")
            row = None

        if not row:
            logger.info(f"Using fallback config for plan: {plan_name}")
            return FALLBACK_PLAN_CONFIG.get(plan_name, FALLBACK_PLAN_CONFIG[FREE_PLAN])

        return PlanConfig(
            credits=row.get("credits") or 0,
            price_cents=row.get("price_cents") or 0,
            unlimited=bool(row.get("is_unlimited")),
        )

    @staticmethod
    def is_active_plan(plan_name: str) -> bool:
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("pricing_config")
                .select("plan_name")
                .eq("plan_name", plan_name)
                .eq("is_active", True)
                .single()
                .execute()
            )
            return bool(response.data)
        except Exception as e:
            if not is_no_rows_error(e):
                logger.error(f"Error validating plan {plan_name}: {e}")
            return False

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def has_pending_request(user_id: str) -> bool:
        client = SupabaseClient.get_client()
        response = (
            client.table("subscriptions")
            .select("id")
            .eq("user_id", user_id)
            .eq("status", SubscriptionStatus.PENDING.value)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    @staticmethod
    def fetch_pending(subscription_id: str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("subscriptions")
                .select("*")
                .eq("id", subscription_id)
                .eq("status", SubscriptionStatus.PENDING.value)
                .single()
                .execute()
            )
            return response.data
        except Exception as e:
            if not is_no_rows_error(e):
                logger.error(f"Error fetching subscription {subscription_id}: {e}")
            return None

    @staticmethod
    def _current_or_none(user_id: str) -> dict[str, Any] | None:
        try:
            return SupabaseClient.fetch_current_subscription(user_id)
        except SupabaseClientError as e:
            logger.warning(f"Could not read current subscription of {user_id}: {e}")
            return None

    # -------------------------------------------------------------------------
    # User Actions
    # -------------------------------------------------------------------------

    @staticmethod
    def request_subscription(user_id: str | UUID, request: ManageSubscriptionRequest) -> dict[str, Any]:
        """
        Submit a pending subscription (or upgrade) request.

        A user with a current subscription may request another plan; it
        replaces the current one when approved.

        Returns:
            {"success": True, "subscription": {...}, "message": ...}

        Raises:
            BadRequestError: No plan, unknown plan, or a request already pending
            SubscriptionUpdateError: The request could not be stored
        """
        user_id_str = normalize_uuid(user_id)
        plan = request.plan

        if not plan:
            raise BadRequestError("Plan is required", code="PLAN_REQUIRED")

        if not SubscriptionService.is_active_plan(plan):
            logger.warning(f"Invalid plan requested by {user_id_str}: {plan}")
            raise BadRequestError("Invalid plan", code="INVALID_PLAN")

        if SubscriptionService.has_pending_request(user_id_str):
            raise BadRequestError(
                "You already have a pending subscription request. Please wait for it to be processed.",
                code="SUBSCRIPTION_PENDING",
            )

        current = SubscriptionService._current_or_none(user_id_str)
        is_upgrade = current is not None

        row: dict[str, Any] = {
            "user_id": user_id_str,
            "plan": plan,
            "status": SubscriptionStatus.PENDING.value,
            "expires_at": add_months(utc_now()).isoformat(),
        }
        if request.requested_credits:
            row["requested_credits"] = request.requested_credits
        if request.requested_price_cents:
            row["requested_price_cents"] = request.requested_price_cents

        client = SupabaseClient.get_client()
        try:
            response = client.table("subscriptions").insert(row).execute()
        except Exception as e:
            logger.error(f"Error creating subscription for {user_id_str}: {e}")
            raise SubscriptionUpdateError("Failed to create subscription request")

        subscription = response.data[0] if response.data else None

        tier = ""
        if request.requested_credits and request.requested_price_cents:
            tier = f" ({request.requested_credits} credits at ${request.requested_price_cents / 100:.0f}/mo)"
        elif request.requested_credits:
            tier = f" ({request.requested_credits} credits)"
        upgrade_note = " This will replace your current subscription when approved." if is_upgrade else ""

        SupabaseClient.insert_notification(
            user_id_str,
            "Upgrade Request Submitted" if is_upgrade else "Subscription Request Submitted",
            f"Your request for the {plan_label(plan)} plan{tier} has been submitted "
            f"and is pending approval.{upgrade_note}",
            "info",
        )

        logger.info(
            f"Subscription request created for user {user_id_str}, plan: {plan}, "
            f"credits: {request.requested_credits or 'default'}, upgrade: {is_upgrade}"
        )
        return {
            "success": True,
            "subscription": subscription,
            "message": "Subscription request submitted. Awaiting approval.",
        }

    @staticmethod
    def cancel(user_id: str | UUID) -> dict[str, Any]:
        """
        Cancel the user's active subscription at the end of its period.

        Raises:
            BadRequestError: No active paid subscription
            SubscriptionUpdateError: The status could not be written
        """
        user_id_str = normalize_uuid(user_id)

        current = SubscriptionService._current_or_none(user_id_str)
        if not current or current.get("status") != SubscriptionStatus.ACTIVE.value:
            raise BadRequestError("No active subscription to cancel", code="NO_ACTIVE_SUBSCRIPTION")
        if current.get("plan") == FREE_PLAN:
            raise BadRequestError("The free plan cannot be canceled", code="FREE_PLAN_NOT_CANCELABLE")

        client = SupabaseClient.get_client()
        try:
            client.table("subscriptions").update({
                "status": SubscriptionStatus.CANCELED.value,
                "updated_at": utc_now().isoformat(),
            }).eq("id", current["id"]).execute()
        except Exception as e:
            logger.error(f"Error canceling subscription {current['id']}: {e}")
            raise SubscriptionUpdateError("Failed to cancel subscription")

        until = format_access_date(current.get("expires_at"))
        SupabaseClient.insert_notification(
            user_id_str,
            "Subscription Canceled",
            f"Your {current['plan']} subscription has been canceled. You'll retain access until {until}.",
            "warning",
        )

        logger.info(f"Subscription {current['id']} canceled for user {user_id_str}")
        return {"success": True, "message": f"Subscription canceled. Access continues until {until}."}

    # -------------------------------------------------------------------------
    # Admin Review
    # -------------------------------------------------------------------------

    @staticmethod
    def approve(
        admin_id: str | UUID,
        subscription_id: str | None,
        mailer: EmailService | None = None,
    ) -> dict[str, Any]:
        """
        Activate a pending subscription. The caller must be an admin.

        The requested tier wins over the plan defaults. Unlimited plans get
        0 credits (they are never metered). Any other current subscription of
        the user is expired afterwards.

        Raises:
            BadRequestError: No subscription id
            NotFoundError: No pending subscription with that id
        """
        admin_id_str = normalize_uuid(admin_id)

        if not subscription_id:
            raise BadRequestError("Subscription ID required")

        pending = SubscriptionService.fetch_pending(subscription_id)
        if not pending:
            raise NotFoundError("Pending subscription not found", code="SUBSCRIPTION_NOT_FOUND")

        user_id = pending["user_id"]
        plan = pending["plan"]
        config = SubscriptionService.plan_config(plan)
        unlimited = plan == UNLIMITED_PLAN or config.unlimited
        credits = 0 if unlimited else (pending.get("requested_credits") or config.credits)
        price = pending.get("requested_price_cents") or config.price_cents

        now = utc_now()
        client = SupabaseClient.get_client()
        client.table("subscriptions").update({
            "status": SubscriptionStatus.ACTIVE.value,
            "started_at": now.isoformat(),
            "expires_at": add_months(now).isoformat(),
            "credits_remaining": credits,
            "credits_total": credits,
            "updated_at": now.isoformat(),
        }).eq("id", subscription_id).execute()

        try:
            (
                client.table("subscriptions")
                .update({"status": SubscriptionStatus.EXPIRED.value, "updated_at": now.isoformat()})
                .eq("user_id", user_id)
                .in_("status", list(CURRENT_SUBSCRIPTION_STATUSES))
                .neq("id", subscription_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to expire previous subscriptions of {user_id}: {e}")

        try:
            client.table("transactions").insert({
                "user_id": user_id,
                "amount": price,
                "type": "subscription",
                "status": "completed",
                "description": f"{plan_label(plan)} plan subscription ({credits} credits)",
            }).execute()
        except Exception as e:
            logger.error(f"Failed to record transaction for subscription {subscription_id}: {e}")

        credits_message = "You now have unlimited credits!" if unlimited else f"You have {credits} credits available."
        SupabaseClient.insert_notification(
            user_id,
            "Subscription Approved! 🎉",
            f"Your {plan} subscription is now active! {credits_message}",
            "success",
        )
        UserEmailService.notify_user(
            user_id,
            UserEmailType.UPGRADE_APPROVED,
            mailer,
            plan_name=plan_label(plan),
            credits=None if unlimited else credits,
        )

        logger.info(f"Subscription {subscription_id} approved by admin {admin_id_str}")
        return {"success": True, "message": "Subscription approved"}

    @staticmethod
    def reject(
        admin_id: str | UUID,
        subscription_id: str | None,
        admin_notes: str | None = None,
        mailer: EmailService | None = None,
    ) -> dict[str, Any]:
        """
        Delete a pending subscription request. The caller must be an admin.

        Raises:
            BadRequestError: No subscription id
            NotFoundError: No pending subscription with that id
        """
        admin_id_str = normalize_uuid(admin_id)

        if not subscription_id:
            raise BadRequestError("Subscription ID required")

        pending = SubscriptionService.fetch_pending(subscription_id)
        if not pending:
            raise NotFoundError("Pending subscription not found", code="SUBSCRIPTION_NOT_FOUND")

        client = SupabaseClient.get_client()
        client.table("subscriptions").delete().eq("id", subscription_id).execute()

        SupabaseClient.insert_notification(
            pending["user_id"],
            "Subscription Request Declined",
            f"Your request for the {pending['plan']} plan was not approved. "
            "Please contact support for more information.",
            "error",
        )
        UserEmailService.notify_user(
            pending["user_id"],
            UserEmailType.UPGRADE_REJECTED,
            mailer,
            plan_name=plan_label(pending["plan"]),
            admin_notes=admin_notes,
        )

        logger.info(f"Subscription {subscription_id} rejected by admin {admin_id_str}")
        return {"success": True, "message": "Subscription rejected"}

    # -------------------------------------------------------------------------
    # Expiry (scheduled)
    # -------------------------------------------------------------------------

    @staticmethod
    def _expire_one(subscription: dict[str, Any], free: PlanConfig, now: datetime) -> bool:
        """Expire one lapsed subscription and move its user to the free plan."""
        client = SupabaseClient.get_client()
        user_id = subscription["user_id"]

        try:
            client.table("subscriptions").update({
                "status": SubscriptionStatus.EXPIRED.value,
                "updated_at": now.isoformat(),
            }).eq("id", subscription["id"]).execute()
        except Exception as e:
            logger.error(f"Error expiring subscription {subscription['id']}: {e}")
            return False

        try:
            client.table("subscriptions").insert({
                "user_id": user_id,
                "plan": FREE_PLAN,
                "status": SubscriptionStatus.ACTIVE.value,
                "started_at": now.isoformat(),
                "credits_remaining": free.credits,
                "credits_total": free.credits,
            }).execute()
        except Exception as e:
            logger.error(f"Error moving user {user_id} to the free plan: {e}")

        SupabaseClient.insert_notification(
            user_id,
            "Subscription Expired",
            f"Your {subscription['plan']} subscription has expired. "
            f"You've been moved to the Free plan with {free.credits} credits.",
            "warning",
        )
        logger.info(f"Expired subscription {subscription['id']} for user {user_id}")
        return True

    @staticmethod
    def expire_lapsed(now: datetime | None = None) -> dict[str, Any]:
        """
        Expire every active or canceled subscription past its expires_at.

        Per-subscription failures are logged and skipped; they are picked up
        again on the next run.

        Returns:
            {"success": True, "processed": n}

        Raises:
            SubscriptionExpiryError: If the lapsed subscriptions cannot be read
        """
        now = now or utc_now()
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("subscriptions")
                .select("id, user_id, plan")
                .in_("status", list(CURRENT_SUBSCRIPTION_STATUSES))
                .lt("expires_at", now.isoformat())
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching expired subscriptions: {e}")
            raise SubscriptionExpiryError("Failed to fetch expired subscriptions")

        lapsed = response.data or []
        if not lapsed:
            logger.info("No expired subscriptions found")
            return {"success": True, "processed": 0}

        logger.info(f"Found {len(lapsed)} expired subscriptions")
        free = SubscriptionService.plan_config(FREE_PLAN)
        processed = sum(1 for sub in lapsed if SubscriptionService._expire_one(sub, free, now))

        logger.info(f"Subscription expiry complete: {processed} of {len(lapsed)} expired")
        return {"success": True, "processed": processed}
