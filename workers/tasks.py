# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Scheduled maintenance jobs. All are thin wrappers over the services so the
# HTTP trigger endpoints and the beat schedule run the same code.
#
# Tasks:
# - cleanup_old_generations: Purge generations past the retention window
# - daily_credit_reset: Refill credits for plans with daily reset
# - check_subscription_expiration: Move lapsed subscriptions to the free plan
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from core.services.cleanup_service import CleanupService
from core.services.credit_reset_service import CreditResetService
from core.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


@shared_task(name="workers.tasks.cleanup_old_generations")
def cleanup_old_generations(retention_days: int | None = None) -> dict[str, Any]:
    """
    Delete generations (and their images) older than the retention window.

    Returns:
        {"message", "deleted", "filesRemoved"}
    """
    result = CleanupService.cleanup_old_generations(retention_days=retention_days)
    logger.info(f"Cleanup task finished: {result['deleted']} deleted, {result['filesRemoved']} files removed")
    return result


@shared_task(name="workers.tasks.daily_credit_reset")
def daily_credit_reset() -> dict[str, Any]:
    """
    Reset credits on every active subscription whose plan resets daily.

    Returns:
        Summary with the number of subscriptions updated
    """
    result = CreditResetService.reset_daily_credits()
    logger.info(f"Credit reset task finished: {result['updated']} subscriptions updated")
    return result


@shared_task(name="workers.tasks.check_subscription_expiration")
def check_subscription_expiration() -> dict[str, Any]:
    """Expire subscriptions past expires_at and move their users to the free plan."""
    result = SubscriptionService.expire_lapsed()
    logger.info(f"Subscription expiry task finished: {result['processed']} expired")
    return result
