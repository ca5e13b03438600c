# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - media.py: Turns SVG/video uploads into images the AI can analyze
# - seo_filename.py: Marketplace-friendly filenames from generated metadata
# - prompt_options.py: Image-to-prompt styles, detail levels, training context
# - supabase_client.py: Typed Supabase wrapper for shared lookups
# - utils.py: Shared utilities (error handling, UUID normalization, time)
#
# media, seo_filename and prompt_options are pure and can be tested in
# isolation.
# =============================================================================

from lib.media import (
    MediaProcessingError,
    ProcessedMedia,
    UnsupportedMediaError,
    process_file_for_analysis,
)
from lib.seo_filename import generate_all_seo_filenames, generate_seo_filename
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, normalize_uuid, parse_timestamp, utc_now

__all__ = [
    # Media
    "MediaProcessingError",
    "ProcessedMedia",
    "UnsupportedMediaError",
    "process_file_for_analysis",
    # SEO
    "generate_all_seo_filenames",
    "generate_seo_filename",
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "ApplicationError",
    "normalize_uuid",
    "parse_timestamp",
    "utc_now",
]
