# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and sign-in happen client-side against Supabase Auth. The dashboard
# calls /verify after sign-in to learn whether to show the admin pages.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user, is_admin
from app.auth.models import AuthUser, VerifyResponse

router = APIRouter()


@router.get("/verify", response_model=VerifyResponse)
async def verify(user: AuthUser = Depends(get_current_user)):
    """
    Validate the bearer token and report the admin role.

    Raises:
        401: If the token is missing, invalid or expired
    """
    return VerifyResponse(
        valid=True,
        user_id=str(user.id),
        email=user.email,
        is_admin=is_admin(user),
    )
