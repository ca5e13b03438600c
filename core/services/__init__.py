# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .cleanup_service import CleanupError, CleanupService
from .contact_service import ContactService
from .credit_pack_service import CreditPackService
from .credit_reset_service import CreditResetError, CreditResetService
from .credit_service import CreditService
from .email_service import EmailService, get_email_service
from .generation_service import GenerationService
from .referral_service import ReferralService
from .storage_service import StorageService
from .subscription_service import SubscriptionExpiryError, SubscriptionService
from .user_email_service import UserEmailService, render_user_email

__all__ = [
    "CleanupError",
    "CleanupService",
    "ContactService",
    "CreditPackService",
    "CreditResetError",
    "CreditResetService",
    "CreditService",
    "EmailService",
    "get_email_service",
    "GenerationService",
    "ReferralService",
    "StorageService",
    "SubscriptionExpiryError",
    "SubscriptionService",
    "UserEmailService",
    "render_user_email",
]
