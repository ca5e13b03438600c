# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - billing.py: Credit status, credit packs, purchase requests
# - contact.py: Contact form submission
# - generation.py: Generation history with marketplace metadata
# - presence.py: Live users on the presence channel
# - referral.py: Referral settings and redemption
# - subscription.py: Subscription lifecycle and plan config
# - tools.py: AI tool requests and results
# - user_email.py: Transactional email types
#
# These models define the "contract" between API and clients.
# =============================================================================

from .billing import (
    CreditPack,
    CreditStatus,
    PurchaseAction,
    PurchaseCreditsRequest,
    PurchaseResponse,
    PurchaseStatus,
)
from .contact import ContactRequest, ContactResponse
from .generation import GenerationList, GenerationResponse, MarketplaceMetadata
from .presence import LiveUser, LiveUsersResponse, PresenceEntry
from .referral import ProcessReferralRequest, ReferralSettings, ReferralStatus
from .subscription import (
    ManageSubscriptionRequest,
    PlanConfig,
    SubscriptionAction,
    SubscriptionStatus,
)
from .tools import (
    GenerateMetadataRequest,
    GenerateMetadataResponse,
    ImageToPromptRequest,
    PromptResult,
    ReviewFileRequest,
    ReviewIssue,
    ReviewResult,
    SeoFilename,
    SeoFilenamesRequest,
    SeoFilenamesResponse,
)
from .user_email import UserEmailRequest, UserEmailType

__all__ = [
    # Billing
    "CreditPack",
    "CreditStatus",
    "PurchaseAction",
    "PurchaseCreditsRequest",
    "PurchaseResponse",
    "PurchaseStatus",
    # Contact
    "ContactRequest",
    "ContactResponse",
    # Generation
    "GenerationList",
    "GenerationResponse",
    "MarketplaceMetadata",
    # Presence
    "LiveUser",
    "LiveUsersResponse",
    "PresenceEntry",
    # Tools
    "GenerateMetadataRequest",
    "GenerateMetadataResponse",
    "ImageToPromptRequest",
    "PromptResult",
    "ReviewFileRequest",
    "ReviewIssue",
    "ReviewResult",
    "SeoFilename",
    "SeoFilenamesRequest",
    "SeoFilenamesResponse",
    # Referrals
    "ProcessReferralRequest",
    "ReferralSettings",
    "ReferralStatus",
    # Subscriptions
    "ManageSubscriptionRequest",
    "PlanConfig",
    "SubscriptionAction",
    "SubscriptionStatus",
    # User emails
    "UserEmailRequest",
    "UserEmailType",
]
