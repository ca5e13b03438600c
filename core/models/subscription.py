# =============================================================================
# core/models/subscription.py - Subscription Schemas
# =============================================================================
# Subscriptions are requested by users and activated by an admin once the
# payment is confirmed. One subscription row per request; the current one
# carries the user's plan and credits.
# =============================================================================

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionStatus(str, Enum):
    """
    Lifecycle of a subscription row.

    pending -> active (admin approved) -> canceled (user) -> expired
           \\-> deleted (admin rejected)
    """
    PENDING = "pending"
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"


class SubscriptionAction(str, Enum):
    SUBSCRIBE = "subscribe"
    CANCEL = "cancel"
    APPROVE = "approve"
    REJECT = "reject"
    CHECK_EXPIRATION = "check-expiration"


class PlanConfig(BaseModel):
    """What a plan grants for one billing month."""
    credits: int
    price_cents: int
    unlimited: bool = False


class ManageSubscriptionRequest(BaseModel):
    """
    Body of POST /functions/v1/manage-subscription.

    - subscribe: plan, optional requestedCredits/requestedPriceCents tier
    - cancel: no fields
    - approve/reject (admin): subscriptionId, optional adminNotes
    - check-expiration (cron or admin): no fields
    """
    model_config = ConfigDict(populate_by_name=True)

    action: SubscriptionAction
    plan: Optional[str] = None
    subscription_id: Optional[str] = Field(default=None, alias="subscriptionId")
    requested_credits: Optional[int] = Field(default=None, alias="requestedCredits", ge=0)
    requested_price_cents: Optional[int] = Field(default=None, alias="requestedPriceCents", ge=0)
    admin_notes: Optional[str] = Field(default=None, alias="adminNotes")
