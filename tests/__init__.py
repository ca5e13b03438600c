# =============================================================================
# tests/ - Test Suite
# =============================================================================
# Unit tests for the pure helpers (media, SEO filenames, prompt options),
# service tests against a fake Supabase client, and API tests through
# FastAPI's TestClient.
#
# Run tests with: pytest
# =============================================================================
