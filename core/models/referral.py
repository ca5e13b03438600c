# =============================================================================
# core/models/referral.py - Referral Schemas
# =============================================================================

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReferralStatus(str, Enum):
    """
    pending   -> rewards wait for the referee's first purchase
    completed -> rewards have been credited
    """
    PENDING = "pending"
    COMPLETED = "completed"


class ReferralSettings(BaseModel):
    """The single row of referral_settings."""
    model_config = ConfigDict(extra="ignore")

    is_active: bool = False
    referrer_reward_credits: int = 0
    referee_reward_credits: int = 0
    reward_trigger: str = "signup"
    max_referrals_per_user: Optional[int] = None
    cap_period: Optional[str] = None

    @property
    def rewards_on_signup(self) -> bool:
        return self.reward_trigger == "signup"


class ProcessReferralRequest(BaseModel):
    """Body of POST /functions/v1/process-referral. The referee is the caller."""
    model_config = ConfigDict(populate_by_name=True)

    referral_code: Optional[str] = Field(default=None, alias="referralCode")
