# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# Runs the maintenance jobs on a schedule: history cleanup, the daily credit
# reset and subscription expiry. Each is also reachable over HTTP under
# /functions/v1 for manual runs.
#
# Usage:
#   # Worker with the embedded beat scheduler (single instance)
#   celery -A workers.celery_app worker --beat -Q default,maintenance --loglevel=info
#
#   # Trigger a job by hand
#   celery -A workers.celery_app call workers.tasks.daily_credit_reset
# =============================================================================

import logging
import time

from celery import Celery
from celery.signals import beat_init, task_failure, task_postrun, task_prerun
from dotenv import load_dotenv

from app.config import settings

load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# task_id -> start time, for run duration logging
_task_started: dict[str, float] = {}


def _redacted(url: str) -> str:
    """Broker URL without credentials."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    app = Celery(
        "stockmeta_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {_redacted(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


@celery_app.task(name="workers.healthcheck")
def healthcheck() -> dict:
    """
    Round-trip check for the worker and its settings.

    Example:
        healthcheck.delay().get(timeout=5)
        # {"status": "OK", "retention_days": 3, "bucket": "generation-images"}
    """
    return {
        "status": "OK",
        "retention_days": settings.GENERATION_RETENTION_DAYS,
        "bucket": settings.GENERATION_BUCKET,
    }


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================

@beat_init.connect
def beat_init_handler(sender=None, **extra):
    for name, entry in celery_app.conf.beat_schedule.items():
        logger.info(f"Scheduled {name}: {entry['task']} at {entry['schedule']}")


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, **extra):
    _task_started[task_id] = time.monotonic()
    logger.info(f"Task started: {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, state=None, **extra):
    started = _task_started.pop(task_id, None)
    elapsed = f" in {time.monotonic() - started:.1f}s" if started is not None else ""
    logger.info(f"Task finished: {task.name} [{task_id}] - State: {state}{elapsed}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")
