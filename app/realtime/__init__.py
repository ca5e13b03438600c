# =============================================================================
# app/realtime/ - Live Users Presence Channel
# =============================================================================

from app.realtime.presence import (
    PresenceManager,
    collapse_presence_state,
    presence_manager,
)
from app.realtime.routes import router

__all__ = [
    "PresenceManager",
    "collapse_presence_state",
    "presence_manager",
    "router",
]
