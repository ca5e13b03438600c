# =============================================================================
# app/routers/presence.py - Live Users Endpoint
# =============================================================================
# Snapshot of the presence channel for the admin dashboard. The live feed
# itself is the /ws/presence WebSocket.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, require_admin
from app.realtime.presence import presence_manager
from core.models.presence import LiveUsersResponse
from lib.utils import utc_now

router = APIRouter()


@router.get("/live-users", response_model=LiveUsersResponse)
async def live_users(admin: AuthUser = Depends(require_admin)):
    """Distinct online users, most recently active first. Admin only."""
    users = presence_manager.live_users()
    return LiveUsersResponse(
        live_users=users,
        online_count=len(users),
        last_refresh=utc_now().isoformat(),
    )
