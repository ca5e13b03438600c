# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# The caller as known from the Supabase access token alone. Role checks go
# through the database (see dependencies.is_admin).
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    full_name and avatar_url come from the token's user_metadata claim and
    are what the presence channel shows for the user.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Name shown to other users: full name, then email, then Anonymous."""
        return self.full_name or self.email or "Anonymous"


class VerifyResponse(BaseModel):
    valid: bool
    user_id: str
    email: Optional[str] = None
    is_admin: bool
