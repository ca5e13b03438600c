# =============================================================================
# core/services/credit_pack_service.py - Credit Pack Purchases
# =============================================================================
# Credit packs are paid for outside the app (bank/mobile transfer). A user
# submits a purchase with their payment reference, an admin checks the
# payment and approves or rejects it.
#
# Purchase lifecycle:
#   pending -> completed   credits added, transaction recorded, user notified
#           \-> rejected   user notified
#
# Notifications are in-app rows plus an email when SendGrid is configured.
#
# A user can have at most one pending purchase at a time.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import BadRequestError, CreditGrantError, NotFoundError, PurchaseRequestError
from core.models.billing import PurchaseAction, PurchaseCreditsRequest, PurchaseStatus
from core.models.user_email import UserEmailType
from core.services.email_service import EmailService
from core.services.user_email_service import UserEmailService
from lib.supabase_client import SupabaseClient, SupabaseClientError, is_no_rows_error
from lib.utils import normalize_uuid, utc_now

logger = logging.getLogger(__name__)


class CreditPackService:
    """Listing, purchase requests, and admin review of credit packs."""

    # -------------------------------------------------------------------------
    # Packs
    # -------------------------------------------------------------------------

    @staticmethod
    def list_active_packs() -> list[dict[str, Any]]:
        """Active packs in display order."""
        client = SupabaseClient.get_client()
        response = (
            client.table("credit_packs")
            .select("*")
            .eq("is_active", True)
            .order("sort_order")
            .execute()
        )
        return response.data or []

    @staticmethod
    def fetch_active_pack(pack_id: str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("credit_packs")
                .select("*")
                .eq("id", pack_id)
                .eq("is_active", True)
                .single()
                .execute()
            )
            return response.data
        except Exception as e:
            if not is_no_rows_error(e):
                logger.error(f"Error fetching credit pack {pack_id}: {e}")
            return None

    # -------------------------------------------------------------------------
    # User Purchase
    # -------------------------------------------------------------------------

    @staticmethod
    def has_pending_purchase(user_id: str) -> bool:
        client = SupabaseClient.get_client()
        response = (
            client.table("credit_pack_purchases")
            .select("id")
            .eq("user_id", user_id)
            .eq("status", PurchaseStatus.PENDING.value)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    @staticmethod
    def request_purchase(user_id: str | UUID, request: PurchaseCreditsRequest) -> dict[str, Any]:
        """
        Submit a pending purchase of a credit pack.

        Returns:
            {"success": True, "purchase": {...}, "message": ...}

        Raises:
            BadRequestError: No pack id, or a purchase is already pending
            NotFoundError: Pack missing or inactive
            PurchaseRequestError: The purchase row could not be inserted
        """
        user_id_str = normalize_uuid(user_id)

        if not request.pack_id:
            raise BadRequestError("Pack ID required")

        pack = CreditPackService.fetch_active_pack(request.pack_id)
        if not pack:
            raise NotFoundError("Credit pack not found", code="CREDIT_PACK_NOT_FOUND")

        if CreditPackService.has_pending_purchase(user_id_str):
            raise BadRequestError(
                "You already have a pending credit pack purchase. Please wait for it to be processed.",
                code="PURCHASE_PENDING",
            )

        total_credits = pack["credits"] + (pack.get("bonus_credits") or 0)

        client = SupabaseClient.get_client()
        try:
            response = client.table("credit_pack_purchases").insert({
                "user_id": user_id_str,
                "pack_id": pack["id"],
                "pack_name": pack["name"],
                "credits": total_credits,
                "amount": pack["price_cents"],
                "status": PurchaseStatus.PENDING.value,
                "sender_name": request.sender_name or None,
                "sender_account": request.sender_account or None,
                "transaction_id": request.transaction_id or None,
                "notes": request.notes or None,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating purchase for {user_id_str}: {e}")
            raise PurchaseRequestError()

        purchase = response.data[0] if response.data else None

        SupabaseClient.insert_notification(
            user_id_str,
            "Credit Pack Purchase Submitted",
            f"Your request for {pack['name']} ({total_credits} credits) has been submitted "
            "and is pending approval.",
            "info",
        )

        logger.info(
            f"Credit pack purchase created for user {user_id_str}, "
            f"pack: {pack['name']}, credits: {total_credits}"
        )
        return {
            "success": True,
            "purchase": purchase,
            "message": "Credit pack purchase submitted. Awaiting approval.",
        }

    # -------------------------------------------------------------------------
    # Admin Review
    # -------------------------------------------------------------------------

    @staticmethod
    def fetch_pending_purchase(purchase_id: str) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("credit_pack_purchases")
                .select("*")
                .eq("id", purchase_id)
                .eq("status", PurchaseStatus.PENDING.value)
                .single()
                .execute()
            )
            return response.data
        except Exception as e:
            if not is_no_rows_error(e):
                logger.error(f"Error fetching purchase {purchase_id}: {e}")
            return None

    @staticmethod
    def _mark_reviewed(purchase_id: str, status: PurchaseStatus, admin_id: str) -> None:
        client = SupabaseClient.get_client()
        client.table("credit_pack_purchases").update({
            "status": status.value,
            "reviewed_at": utc_now().isoformat(),
            "reviewed_by": admin_id,
        }).eq("id", purchase_id).execute()

    @staticmethod
    def _add_credits(user_id: str, credits: int) -> None:
        """
        Add purchased credits to both the balance and bonus counters.

        Raises:
            CreditGrantError: No current subscription, or the update failed
        """
        try:
            subscription = SupabaseClient.fetch_current_subscription(user_id)
        except SupabaseClientError as e:
            logger.error(f"Error fetching subscription for {user_id}: {e}")
            raise CreditGrantError()

        if not subscription:
            logger.error(f"No current subscription for {user_id}; credits not added")
            raise CreditGrantError()

        client = SupabaseClient.get_client()
        try:
            client.table("subscriptions").update({
                "credits_remaining": (subscription.get("credits_remaining") or 0) + credits,
                "bonus_credits": (subscription.get("bonus_credits") or 0) + credits,
            }).eq("id", subscription["id"]).execute()
        except Exception as e:
            logger.error(f"Failed to add {credits} credits for {user_id}: {e}")
            raise CreditGrantError()

    @staticmethod
    def _record_transaction(purchase: dict[str, Any]) -> None:
        client = SupabaseClient.get_client()
        try:
            client.table("transactions").insert({
                "user_id": purchase["user_id"],
                "amount": purchase["amount"],
                "type": "credit_pack",
                "status": "completed",
                "description": f"Credit pack purchase: {purchase['credits']} credits",
            }).execute()
        except Exception as e:
            logger.error(f"Failed to record transaction for purchase {purchase['id']}: {e}")

    @staticmethod
    def review_purchase(
        admin_id: str | UUID,
        purchase_id: str | None,
        action: PurchaseAction,
        admin_notes: str | None = None,
        mailer: EmailService | None = None,
    ) -> dict[str, Any]:
        """
        Approve or reject a pending purchase. The caller must be an admin.

        Credits are added before the purchase is marked completed, so a
        failed grant leaves it pending and the admin can approve again.
        The user gets an in-app notification and, when email is
        configured, an email.

        Raises:
            BadRequestError: No purchase id
            NotFoundError: No pending purchase with that id
            CreditGrantError: Credits could not be added (approve only)
        """
        admin_id_str = normalize_uuid(admin_id)

        if not purchase_id:
            raise BadRequestError("Purchase ID required")

        purchase = CreditPackService.fetch_pending_purchase(purchase_id)
        if not purchase:
            raise NotFoundError("Pending purchase not found", code="PURCHASE_NOT_FOUND")

        if action == PurchaseAction.APPROVE:
            CreditPackService._add_credits(purchase["user_id"], purchase["credits"])
            CreditPackService._mark_reviewed(purchase_id, PurchaseStatus.COMPLETED, admin_id_str)
            CreditPackService._record_transaction(purchase)
            SupabaseClient.insert_notification(
                purchase["user_id"],
                "Credit Pack Approved! 🎉",
                f"Your purchase of {purchase['credits']} credits has been approved "
                "and added to your account.",
                "success",
            )
            UserEmailService.notify_user(
                purchase["user_id"],
                UserEmailType.CREDIT_PACK_APPROVED,
                mailer,
                credits=purchase["credits"],
            )
            logger.info(f"Credit pack {purchase_id} approved by admin {admin_id_str}")
            return {"success": True, "message": "Credit pack approved"}

        CreditPackService._mark_reviewed(purchase_id, PurchaseStatus.REJECTED, admin_id_str)
        SupabaseClient.insert_notification(
            purchase["user_id"],
            "Credit Pack Purchase Declined",
            "Your credit pack purchase was not approved. Please contact support for more information.",
            "error",
        )
        UserEmailService.notify_user(
            purchase["user_id"],
            UserEmailType.CREDIT_PACK_REJECTED,
            mailer,
            admin_notes=admin_notes,
        )
        logger.info(f"Credit pack {purchase_id} rejected by admin {admin_id_str}")
        return {"success": True, "message": "Credit pack rejected"}
