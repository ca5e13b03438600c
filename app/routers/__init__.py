# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - tools.py: Media preprocessing, prompt options, SEO filenames, AI tools
# - billing.py: Credit status and credit packs
# - generations.py: Generation history
# - presence.py: Live users snapshot (admin)
# - functions.py: Scheduled jobs, contact form, credit pack purchases
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import billing
from . import functions
from . import generations
from . import health
from . import presence
from . import tools

__all__ = [
    "billing",
    "functions",
    "generations",
    "health",
    "presence",
    "tools",
]
