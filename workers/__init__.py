# =============================================================================
# workers/ - Celery Scheduled Jobs
# =============================================================================
# This package contains the Celery configuration and the scheduled
# maintenance jobs.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (generation cleanup, daily credit reset)
# - config.py: Worker settings and beat schedule
#
# Usage:
#   # Start worker with the embedded scheduler
#   celery -A workers.celery_app worker --beat --loglevel=info
#
#   # Run a job on demand
#   from workers.tasks import cleanup_old_generations
#   result = cleanup_old_generations.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
