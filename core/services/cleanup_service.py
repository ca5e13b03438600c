# =============================================================================
# core/services/cleanup_service.py - Old Generation Cleanup
# =============================================================================
# Purges generation history past the retention window:
# 1. Find generations created before the cutoff
# 2. Remove their images from storage (best effort)
# 3. Delete their marketplace rows (best effort)
# 4. Delete the generations themselves
#
# Runs daily from Celery beat and on demand from
# POST /functions/v1/cleanup-old-generations.
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Any

from app.config import settings
from app.exceptions import JobFailedError, StorageRemoveError
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

JOB_NAME = "cleanup-old-generations"


class CleanupError(JobFailedError):
    """Raised when the cleanup job cannot read or delete generations."""

    def __init__(self, error: str):
        super().__init__(JOB_NAME, error)


class CleanupService:
    """Deletes generations older than GENERATION_RETENTION_DAYS."""

    @staticmethod
    def cutoff(now: datetime | None = None, retention_days: int | None = None) -> datetime:
        """Generations created strictly before this instant are purged."""
        days = retention_days if retention_days is not None else settings.GENERATION_RETENTION_DAYS
        return (now or utc_now()) - timedelta(days=days)

    @staticmethod
    def cleanup_old_generations(
        now: datetime | None = None,
        retention_days: int | None = None,
    ) -> dict[str, Any]:
        """
        Run one cleanup pass.

        Returns:
            {"message", "deleted", "filesRemoved"}

        Raises:
            CleanupError: If the generations cannot be fetched or deleted
        """
        client = SupabaseClient.get_client()
        cutoff = CleanupService.cutoff(now, retention_days)
        logger.info(f"Cleaning up generations created before {cutoff.isoformat()}")

        try:
            response = (
                client.table("generations")
                .select("id, image_url, file_name")
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching old generations: {e}")
            raise CleanupError("Failed to fetch old generations")

        rows = response.data or []
        if not rows:
            logger.info("No old generations to clean up")
            return {"message": "No old generations to clean up", "deleted": 0, "filesRemoved": 0}

        ids = [row["id"] for row in rows]
        logger.info(f"Found {len(ids)} generations to delete")

        # ---- Storage ----
        keys = StorageService.storage_keys_from_urls([row.get("image_url") for row in rows])
        files_removed = 0
        if keys:
            try:
                files_removed = StorageService.remove_files(keys)
            except StorageRemoveError as e:
                logger.error(f"Error deleting files from storage: {e.message}")

        # ---- Dependent rows ----
        try:
            client.table("generation_marketplaces").delete().in_("generation_id", ids).execute()
        except Exception as e:
            logger.error(f"Error deleting generation marketplaces: {e}")

        # ---- Generations ----
        try:
            client.table("generations").delete().in_("id", ids).execute()
        except Exception as e:
            logger.error(f"Error deleting generations: {e}")
            raise CleanupError("Failed to delete generations")

        logger.info(f"Cleanup completed: {len(ids)} generations, {files_removed} files")
        return {
            "message": "Cleanup completed",
            "deleted": len(ids),
            "filesRemoved": files_removed,
        }
