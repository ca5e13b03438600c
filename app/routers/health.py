# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# - GET /health: process is up, plus environment and version
# - GET /health/ready: database, generation bucket and outbound integrations
# - GET /health/live: process is alive, with open presence connections
#
# Readiness reports "degraded" instead of failing so the scheduler and the
# dashboard can still reach the API while an integration is down.
# =============================================================================

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from app.realtime.presence import presence_manager
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessChecks(BaseModel):
    """
    One entry per dependency.

    database/storage are "healthy" or "unhealthy: <reason>"; the
    integrations are "configured" or "missing".
    """
    database: str
    storage: str
    ai_gateway: str
    email: str


class ReadinessResponse(BaseModel):
    status: str
    checks: ReadinessChecks
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    presence_connections: int
    timestamp: str


# =============================================================================
# Checks
# =============================================================================

def _check_database() -> str:
    try:
        SupabaseClient.get_client().table("subscriptions").select("id").limit(1).execute()
        return "healthy"
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def _check_storage() -> str:
    bucket = settings.GENERATION_BUCKET
    try:
        SupabaseClient.get_client().storage.get_bucket(bucket)
        return "healthy"
    except Exception as e:
        logger.warning(f"Readiness: bucket {bucket} check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def _configured(value: str) -> str:
    return "configured" if value else "missing"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health status for load balancers and monitoring."""
    return HealthResponse(
        status="healthy",
        timestamp=utc_now().isoformat(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check():
    """
    Dependency checks.

    Only the database and the generation bucket decide ready/degraded; a
    missing AI or email key is reported but only breaks those endpoints.
    """
    checks = ReadinessChecks(
        database=_check_database(),
        storage=_check_storage(),
        ai_gateway=_configured(settings.AI_GATEWAY_API_KEY),
        email=_configured(settings.SENDGRID_API_KEY),
    )
    ready = checks.database == "healthy" and checks.storage == "healthy"

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=utc_now().isoformat(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(
        status="alive",
        presence_connections=presence_manager.get_connection_count(),
        timestamp=utc_now().isoformat(),
    )
