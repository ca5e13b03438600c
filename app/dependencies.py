# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(), and can be
# replaced in tests with app.dependency_overrides.
# =============================================================================

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials

from agents.gateway import AIGateway
from app.auth.dependencies import is_admin, security, verify_token
from app.config import settings
from app.exceptions import AdminRequiredError, UnauthorizedError
from core.services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)


def get_ai_gateway() -> AIGateway:
    """A gateway for one request; the OpenAI client is created lazily."""
    return AIGateway()


def get_mailer() -> EmailService:
    return get_email_service()


async def require_cron_or_admin(
    x_cron_secret: Annotated[str | None, Header()] = None,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Guard for the scheduled-job endpoints.

    Accepts the X-Cron-Secret header (when CRON_SECRET is configured) or a
    bearer token of an admin.

    Returns:
        "cron" or "admin:<user id>", for logging

    Raises:
        UnauthorizedError: Neither a valid secret nor a valid token
        AdminRequiredError: Valid token of a non-admin
    """
    if x_cron_secret and settings.CRON_SECRET and hmac.compare_digest(
        x_cron_secret, settings.CRON_SECRET
    ):
        return "cron"

    if credentials is None:
        logger.warning("Scheduled job triggered without credentials")
        raise UnauthorizedError()

    user = verify_token(credentials.credentials)
    if not is_admin(user):
        raise AdminRequiredError()
    return f"admin:{user.id}"


# Type aliases for dependency injection
GatewayDep = Annotated[AIGateway, Depends(get_ai_gateway)]
MailerDep = Annotated[EmailService, Depends(get_mailer)]
CronCaller = Annotated[str, Depends(require_cron_or_admin)]
