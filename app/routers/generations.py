# =============================================================================
# app/routers/generations.py - Generation History Endpoints
# =============================================================================
# History of metadata generations. Entries older than the retention window
# are removed by the cleanup job.
# =============================================================================

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user
from core.models.generation import GenerationList
from core.services.generation_service import GenerationService

router = APIRouter()


@router.get("", response_model=GenerationList)
async def list_generations(user: AuthUser = Depends(get_current_user)):
    """The caller's generations, newest first."""
    generations = GenerationService.list_generations(user.id)
    return GenerationList(generations=generations, count=len(generations))


@router.delete("/{generation_id}")
async def delete_generation(
    generation_id: str = Path(..., description="Generation ID"),
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete one of the caller's generations.

    Returns 404 when it does not exist or belongs to someone else.
    """
    GenerationService.delete_generation(user.id, generation_id)
    return {"success": True, "generation_id": generation_id}
