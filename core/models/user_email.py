# =============================================================================
# core/models/user_email.py - Transactional User Email Schemas
# =============================================================================

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserEmailType(str, Enum):
    """Emails sent to a user after an account or billing event."""
    WELCOME = "welcome"
    UPGRADE_APPROVED = "upgrade_approved"
    UPGRADE_REJECTED = "upgrade_rejected"
    CREDIT_PACK_APPROVED = "credit_pack_approved"
    CREDIT_PACK_REJECTED = "credit_pack_rejected"
    REFERRAL_REWARD = "referral_reward"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"


class UserEmailRequest(BaseModel):
    """
    Body of POST /functions/v1/send-user-email.

    Only the fields the chosen template uses need to be set.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: UserEmailType
    user_email: Optional[str] = Field(default=None, alias="userEmail")
    user_name: Optional[str] = Field(default=None, alias="userName")
    plan_name: Optional[str] = Field(default=None, alias="planName")
    credits: Optional[int] = None
    admin_notes: Optional[str] = Field(default=None, alias="adminNotes")
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")
    dashboard_url: Optional[str] = Field(default=None, alias="dashboardUrl")
