# =============================================================================
# app/routers/billing.py - Credits and Credit Packs
# =============================================================================
# Read-only billing endpoints. Purchases go through
# POST /functions/v1/purchase-credits.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from core.models.billing import CreditPack, CreditStatus
from core.services.credit_pack_service import CreditPackService
from core.services.credit_service import CreditService

router = APIRouter()


@router.get("/credits", response_model=CreditStatus)
async def get_credits(user: AuthUser = Depends(get_current_user)):
    """The caller's plan, remaining credits and unlimited/admin flags."""
    return CreditService.get_credit_status(user.id)


@router.get("/credit-packs", response_model=list[CreditPack])
async def list_credit_packs():
    """Active credit packs in display order."""
    return CreditPackService.list_active_packs()
