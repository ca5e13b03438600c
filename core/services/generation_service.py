# =============================================================================
# core/services/generation_service.py - Generation History
# =============================================================================
# Stores metadata generations and their per-marketplace rows, and serves the
# user's history. Rows are purged by the cleanup job after the retention
# window, so history only covers recent generations.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import NotFoundError
from core.models.generation import GenerationResponse, MarketplaceMetadata
from lib.supabase_client import SupabaseClient, is_no_rows_error
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

HISTORY_SELECT = """
    id,
    image_url,
    file_name,
    display_name,
    created_at,
    batch_id,
    generation_marketplaces (
        marketplace_name,
        title,
        description,
        keywords
    )
"""


class GenerationService:
    """Service for generation history operations."""

    @staticmethod
    def create_generation(
        user_id: str | UUID,
        image_url: str,
        results: list[MarketplaceMetadata],
        file_name: str | None = None,
        display_name: str | None = None,
        batch_id: str | None = None,
    ) -> str | None:
        """
        Save a generation with one row per marketplace.

        History is secondary to returning the metadata, so failures are
        logged and reported as None instead of raised.

        Returns:
            The new generation id, or None if it could not be saved
        """
        client = SupabaseClient.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = client.table("generations").insert({
                "user_id": user_id_str,
                "image_url": image_url,
                "file_name": file_name,
                "display_name": display_name,
                "batch_id": batch_id,
            }).execute()
            generation_id = response.data[0]["id"]
        except Exception as e:
            logger.error(f"Error adding generation for {user_id_str}: {e}")
            return None

        if results:
            try:
                client.table("generation_marketplaces").insert([
                    {
                        "generation_id": generation_id,
                        "marketplace_name": result.marketplace,
                        "title": result.title,
                        "description": result.description,
                        "keywords": result.keywords,
                    }
                    for result in results
                ]).execute()
            except Exception as e:
                logger.error(f"Error adding marketplaces for generation {generation_id}: {e}")

        logger.info(f"Saved generation {generation_id} with {len(results)} marketplaces")
        return generation_id

    @staticmethod
    def list_generations(user_id: str | UUID) -> list[GenerationResponse]:
        """The user's generations, newest first, with marketplace rows."""
        client = SupabaseClient.get_client()
        response = (
            client.table("generations")
            .select(HISTORY_SELECT)
            .eq("user_id", normalize_uuid(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [GenerationResponse.from_row(row) for row in response.data or []]

    @staticmethod
    def delete_generation(user_id: str | UUID, generation_id: str) -> None:
        """
        Delete an owned generation and its marketplace rows.

        Raises:
            NotFoundError: If the generation doesn't exist or belongs to
                someone else
        """
        client = SupabaseClient.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            client.table("generations").select("id").eq("id", generation_id).eq(
                "user_id", user_id_str
            ).single().execute()
        except Exception as e:
            if is_no_rows_error(e):
                raise NotFoundError(
                    f"Generation not found: {generation_id}",
                    code="GENERATION_NOT_FOUND",
                    details={"generation_id": generation_id},
                )
            raise

        client.table("generation_marketplaces").delete().eq("generation_id", generation_id).execute()
        client.table("generations").delete().eq("id", generation_id).execute()
        logger.info(f"Deleted generation {generation_id} for user {user_id_str}")
