# =============================================================================
# core/models/billing.py - Credit & Credit Pack Schemas
# =============================================================================
# These models define the API contract for credits:
# - CreditStatus: What a user can spend right now
# - CreditPack: A purchasable bundle of credits
# - PurchaseCreditsRequest: Body of POST /functions/v1/purchase-credits,
#   used both by users (packId) and admins (action + purchaseId)
#
# Request bodies are camelCase on the wire (the dashboard's convention) and
# snake_case in Python.
# =============================================================================

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PurchaseStatus(str, Enum):
    """
    Lifecycle of a credit pack purchase.

    pending -> completed (admin approved)
           \\-> rejected  (admin declined)
    """
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class PurchaseAction(str, Enum):
    """Admin decision on a pending purchase."""
    APPROVE = "approve"
    REJECT = "reject"


class CreditStatus(BaseModel):
    """
    A user's spendable credits.

    Admins and unlimited plans are never blocked or charged.
    """
    user_id: str
    plan: str = "free"
    credits_remaining: int = 0
    is_admin: bool = False
    is_unlimited: bool = False

    @property
    def is_metered(self) -> bool:
        """False when credits are neither checked nor deducted."""
        return not (self.is_admin or self.is_unlimited)

    def has_credits(self, needed: int = 1) -> bool:
        return not self.is_metered or self.credits_remaining >= needed


class CreditPack(BaseModel):
    """Row of the credit_packs table."""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    credits: int
    bonus_credits: int = 0
    price_cents: int
    is_active: bool = True
    sort_order: int = 0

    @property
    def total_credits(self) -> int:
        return self.credits + (self.bonus_credits or 0)


class PurchaseCreditsRequest(BaseModel):
    """
    Body of the purchase-credits endpoint.

    With action=approve|reject this is an admin decision on purchaseId
    (adminNotes is passed on to the rejection email); otherwise it is a user
    purchase of packId.
    """
    model_config = ConfigDict(populate_by_name=True)

    pack_id: Optional[str] = Field(default=None, alias="packId")
    action: Optional[PurchaseAction] = None
    purchase_id: Optional[str] = Field(default=None, alias="purchaseId")
    sender_name: Optional[str] = Field(default=None, alias="senderName")
    sender_account: Optional[str] = Field(default=None, alias="senderAccount")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    notes: Optional[str] = None
    admin_notes: Optional[str] = Field(default=None, alias="adminNotes")


class PurchaseResponse(BaseModel):
    """Result of a user purchase or an admin decision."""
    success: bool = True
    message: str
    purchase: Optional[dict[str, Any]] = None
