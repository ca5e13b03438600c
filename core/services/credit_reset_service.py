# =============================================================================
# core/services/credit_reset_service.py - Daily Credit Reset
# =============================================================================
# Plans with daily_credit_reset enabled refill their subscribers every day:
# credits_remaining and credits_total are set back to the plan's credits.
#
# Failures for one plan or one subscription are logged and skipped so the
# rest of the batch still runs. Runs at 00:00 UTC from Celery beat and on
# demand from POST /functions/v1/daily-credit-reset.
# =============================================================================

import logging
from datetime import datetime
from typing import Any

from app.exceptions import JobFailedError
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

JOB_NAME = "daily-credit-reset"


class CreditResetError(JobFailedError):
    """Raised when the plans to reset cannot be read."""

    def __init__(self, error: str):
        super().__init__(JOB_NAME, error)


class CreditResetService:
    """Resets credits for every active subscriber of a daily-reset plan."""

    @staticmethod
    def fetch_daily_reset_plans() -> list[dict[str, Any]]:
        """
        Active plans with daily_credit_reset enabled.

        Raises:
            CreditResetError: If the query fails
        """
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("pricing_config")
                .select("plan_name, credits")
                .eq("daily_credit_reset", True)
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching plans: {e}")
            raise CreditResetError("Failed to fetch plans")
        return response.data or []

    @staticmethod
    def reset_plan(plan: dict[str, Any], now: datetime) -> int:
        """
        Reset every active subscription on one plan.

        Returns:
            Number of subscriptions updated
        """
        client = SupabaseClient.get_client()
        plan_name = plan["plan_name"]
        credits = plan["credits"]

        try:
            response = (
                client.table("subscriptions")
                .select("id")
                .eq("plan", plan_name)
                .eq("status", "active")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching subscriptions for plan {plan_name}: {e}")
            return 0

        subscriptions = response.data or []
        logger.info(f"Found {len(subscriptions)} subscriptions to reset for plan {plan_name}")

        updated = 0
        for subscription in subscriptions:
            try:
                client.table("subscriptions").update({
                    "credits_remaining": credits,
                    "credits_total": credits,
                    "updated_at": now.isoformat(),
                }).eq("id", subscription["id"]).execute()
                updated += 1
            except Exception as e:
                logger.error(f"Error resetting subscription {subscription['id']}: {e}")

        logger.info(f"Reset credits for {updated} subscriptions on {plan_name} plan")
        return updated

    @staticmethod
    def reset_daily_credits(now: datetime | None = None) -> dict[str, Any]:
        """
        Run one reset pass over all daily-reset plans.

        Returns:
            {"success", "message", "updated", "timestamp"}, or
            {"message", "updated": 0} when no plan resets daily

        Raises:
            CreditResetError: If the plans cannot be read
        """
        now = now or utc_now()
        logger.info("Starting daily credit reset job")

        plans = CreditResetService.fetch_daily_reset_plans()
        if not plans:
            logger.info("No plans with daily credit reset found")
            return {"message": "No plans with daily credit reset", "updated": 0}

        total = sum(CreditResetService.reset_plan(plan, now) for plan in plans)

        logger.info(f"Daily credit reset complete. Total subscriptions updated: {total}")
        return {
            "success": True,
            "message": f"Reset credits for {total} subscriptions",
            "updated": total,
            "timestamp": now.isoformat(),
        }
