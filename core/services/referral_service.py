# =============================================================================
# core/services/referral_service.py - Referral Rewards
# =============================================================================
# A new user (the referee) redeems another user's referral code. Depending on
# referral_settings.reward_trigger the bonus credits for both sides are paid
# at once ("signup") or left pending for the first purchase.
#
# Checks, in order:
# 1. Program configured and active
# 2. Code exists and is active (codes are stored upper-case)
# 3. Not the referee's own code
# 4. Referee has no referral yet
# 5. Referrer is under max_referrals_per_user (all time, or this month)
# =============================================================================

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from app.exceptions import BadRequestError, ReferralFailedError
from core.models.referral import ReferralSettings, ReferralStatus
from core.models.user_email import UserEmailType
from core.services.email_service import EmailService
from core.services.user_email_service import UserEmailService
from lib.supabase_client import SupabaseClient, is_no_rows_error
from lib.utils import normalize_uuid, utc_now

logger = logging.getLogger(__name__)


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class ReferralService:
    """Validates referral codes and pays referral rewards."""

    @staticmethod
    def fetch_settings() -> ReferralSettings | None:
        client = SupabaseClient.get_client()
        try:
            response = client.table("referral_settings").select("*").single().execute()
        except Exception as e:
            logger.error(f"Failed to get referral settings: {e}")
            return None
        return ReferralSettings.model_validate(response.data) if response.data else None

    @staticmethod
    def fetch_active_code(code: str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("referral_codes")
                .select("*")
                .eq("code", code)
                .eq("is_active", True)
                .single()
                .execute()
            )
            return response.data
        except Exception as e:
            if not is_no_rows_error(e):
                logger.error(f"Error fetching referral code {code}: {e}")
            return None

    @staticmethod
    def has_referral(referee_id: str) -> bool:
        client = SupabaseClient.get_client()
        response = (
            client.table("referrals")
            .select("id")
            .eq("referee_id", referee_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    @staticmethod
    def completed_referral_count(referrer_id: str, since: datetime | None = None) -> int:
        client = SupabaseClient.get_client()
        query = (
            client.table("referrals")
            .select("id", count="exact")
            .eq("referrer_id", referrer_id)
            .eq("status", ReferralStatus.COMPLETED.value)
        )
        if since is not None:
            query = query.gte("created_at", since.isoformat())
        response = query.execute()
        return response.count or 0

    @staticmethod
    def _add_bonus_credits(user_id: str, credits: int) -> None:
        """Credit a reward through the increment_bonus_credits function. Logged on failure."""
        client = SupabaseClient.get_client()
        try:
            client.rpc("increment_bonus_credits", {"p_user_id": user_id, "p_credits": credits}).execute()
        except Exception as e:
            logger.error(f"Failed to add {credits} referral credits to {user_id}: {e}")

    @staticmethod
    def process_referral(
        referee_id: str | UUID,
        referral_code: str | None,
        mailer: EmailService | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Record a referral for the referee and pay the rewards when due.

        Returns:
            {"success": True, "status": "completed"|"pending", "message": ...}

        Raises:
            BadRequestError: Any failed check (see module header)
            ReferralFailedError: The referral row could not be inserted
        """
        referee_id_str = normalize_uuid(referee_id)
        now = now or utc_now()

        if not referral_code:
            raise BadRequestError("Missing referral_code", code="REFERRAL_CODE_REQUIRED")
        code = referral_code.strip().upper()
        logger.info(f"Processing referral: code={code}, referee={referee_id_str}")

        program = ReferralService.fetch_settings()
        if program is None:
            raise BadRequestError("Referral program not configured", code="REFERRALS_NOT_CONFIGURED")
        if not program.is_active:
            raise BadRequestError("Referral program is currently disabled", code="REFERRALS_DISABLED")

        code_row = ReferralService.fetch_active_code(code)
        if not code_row:
            raise BadRequestError("Invalid or inactive referral code", code="INVALID_REFERRAL_CODE")

        referrer_id = str(code_row["user_id"])
        if referrer_id == referee_id_str:
            logger.info(f"Self-referral attempt blocked for {referee_id_str}")
            raise BadRequestError("Cannot use your own referral code", code="SELF_REFERRAL")

        if ReferralService.has_referral(referee_id_str):
            raise BadRequestError("User already has a referral", code="ALREADY_REFERRED")

        if program.max_referrals_per_user:
            since = start_of_month(now) if program.cap_period == "monthly" else None
            count = ReferralService.completed_referral_count(referrer_id, since)
            if count >= program.max_referrals_per_user:
                logger.info(f"Referrer {referrer_id} has reached the referral limit")
                raise BadRequestError("Referrer has reached maximum referrals", code="REFERRAL_LIMIT_REACHED")

        status = ReferralStatus.COMPLETED if program.rewards_on_signup else ReferralStatus.PENDING

        client = SupabaseClient.get_client()
        try:
            client.table("referrals").insert({
                "referrer_id": referrer_id,
                "referee_id": referee_id_str,
                "referral_code": code,
                "status": status.value,
                "referrer_reward_credits": program.referrer_reward_credits,
                "referee_reward_credits": program.referee_reward_credits,
                "rewarded_at": now.isoformat() if status == ReferralStatus.COMPLETED else None,
            }).execute()
        except Exception as e:
            logger.error(f"Failed to create referral for {referee_id_str}: {e}")
            raise ReferralFailedError()

        if status == ReferralStatus.PENDING:
            logger.info("Referral created with pending status (first purchase trigger)")
            return {
                "success": True,
                "status": status.value,
                "message": "Referral registered, rewards will be distributed on first purchase",
            }

        ReferralService._add_bonus_credits(referrer_id, program.referrer_reward_credits)
        ReferralService._add_bonus_credits(referee_id_str, program.referee_reward_credits)

        SupabaseClient.insert_notification(
            referrer_id,
            "Referral Successful! 🎉",
            f"Someone signed up with your code! You earned {program.referrer_reward_credits} bonus credits.",
            "success",
            action_url="/dashboard/referrals",
        )
        SupabaseClient.insert_notification(
            referee_id_str,
            "Welcome Bonus! 🎁",
            f"You received {program.referee_reward_credits} bonus credits from your referral!",
            "success",
            action_url="/dashboard",
        )
        UserEmailService.notify_user(
            referrer_id,
            UserEmailType.REFERRAL_REWARD,
            mailer,
            credits=program.referrer_reward_credits,
        )

        logger.info(f"Referral {code} processed and rewards distributed")
        return {
            "success": True,
            "status": status.value,
            "message": "Referral processed and rewards distributed",
        }
