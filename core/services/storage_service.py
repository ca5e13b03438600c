# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles the generation-images bucket: mapping public URLs back to storage
# keys and removing files.
#
# Public URLs look like:
#   https://<project>.supabase.co/storage/v1/object/public/generation-images/<key>
# =============================================================================

import logging
import re

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import StorageRemoveError

logger = logging.getLogger(__name__)


def _key_pattern(bucket: str) -> re.Pattern:
    return re.compile(rf"{re.escape(bucket)}/(.+)$")


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles locating and deleting generation images.
    """

    @staticmethod
    def storage_key_from_url(url: str | None, bucket: str | None = None) -> str | None:
        """
        Extract the object key from a public storage URL.

        Example:
            storage_key_from_url(".../public/generation-images/u1/a.png")  # "u1/a.png"

        Returns:
            The key, or None if the URL does not point into the bucket
        """
        if not url:
            return None
        match = _key_pattern(bucket or settings.GENERATION_BUCKET).search(url)
        return match.group(1) if match else None

    @staticmethod
    def storage_keys_from_urls(urls: list[str | None], bucket: str | None = None) -> list[str]:
        """Keys for every URL that points into the bucket, in order."""
        keys = []
        for url in urls:
            key = StorageService.storage_key_from_url(url, bucket)
            if key:
                keys.append(key)
        return keys

    @staticmethod
    def remove_files(keys: list[str], bucket: str | None = None) -> int:
        """
        Delete objects from storage.

        Args:
            keys: Object keys inside the bucket
            bucket: Bucket name (defaults to GENERATION_BUCKET)

        Returns:
            Number of keys submitted for removal

        Raises:
            StorageRemoveError: If the storage API rejects the request
        """
        if not keys:
            return 0

        bucket = bucket or settings.GENERATION_BUCKET
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(bucket).remove(keys)
            logger.info(f"Removed {len(keys)} files from storage bucket {bucket}")
            return len(keys)

        except Exception as e:
            logger.error(f"Storage removal failed: {e}")
            raise StorageRemoveError(bucket, str(e))
