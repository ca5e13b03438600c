# =============================================================================
# core/models/presence.py - Live User Presence Schemas
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PresenceEntry(BaseModel):
    """
    What one connection announces on the live-users channel.

    Extra keys (e.g. presence_ref) are kept so the raw state round-trips.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    online_at: Optional[str] = None
    current_page: Optional[str] = None


class LiveUser(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    online_at: str
    current_page: Optional[str] = None


class LiveUsersResponse(BaseModel):
    live_users: list[LiveUser]
    online_count: int
    last_refresh: str
