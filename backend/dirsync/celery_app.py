"""
Celery configuration for background task processing.

Hosts the periodic directory sync.
"""
import logging

import redis
from celery import Celery
from celery.signals import worker_ready

from .config import settings

# Create Celery application instance
celery_app = Celery(
    "dirsync",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        'dirsync.tasks.sync_tasks',
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.celery_timezone,
    enable_utc=True,
    task_track_started=True,  # Track when tasks start
    task_time_limit=settings.sync_lock_timeout,  # A single batch never outlives its lock
    worker_prefetch_multiplier=1,  # Don't prefetch tasks
    broker_connection_retry_on_startup=True,  # Retry connecting to broker on startup
)

_logger = logging.getLogger(__name__)


@worker_ready.connect
def _init_database(sender, **kwargs):
    """Create tables on worker startup so the first sync run finds them."""
    from .database import init_db

    init_db()
    _logger.info("Directory sync worker ready (queue=%s)", settings.sync_queue_name)


@worker_ready.connect
def _clear_stale_sync_lock(sender, **kwargs):
    """Clear a sync lock left behind by a worker that died mid-run.

    A killed container never reaches the task's finally block, so the lock
    would otherwise block every run until its TTL expires.
    """
    # Only the dedicated sync worker may clear it; another worker could be
    # starting while a sync legitimately holds the lock.
    hostname = getattr(sender, 'hostname', '') or ''
    if not hostname.startswith(settings.sync_worker_hostname_prefix):
        return

    try:
        from .tasks.sync_lock import SyncLock
        lock = SyncLock.get_instance()
        holder = lock.get_current_holder()
        if holder:
            _logger.warning(
                "Clearing stale directory sync lock on worker startup "
                "(was held by %s, task_id=%s)",
                holder.get('task_name', 'unknown'),
                holder.get('task_id', 'unknown'),
            )
            lock.force_release()
        else:
            _logger.info("No stale directory sync lock found on startup")
    except redis.RedisError as e:
        _logger.warning("Failed to check/clear stale sync lock on startup: %s", e)


# Task routing: keep the sync on its own queue
# Run workers with: celery -A dirsync.celery_app worker -B -Q directory_sync -c 1 -n dirsync@%h
celery_app.conf.task_routes = {
    'dirsync.tasks.sync_tasks.run_background_sync': {'queue': settings.sync_queue_name},
}

# Optional: Configure result expiration
celery_app.conf.result_expires = 86400  # Results expire after 24 hours

# Celery Beat Schedule - Periodic Tasks
# Beat only ticks; the task decides whether the adaptive interval has elapsed.
celery_app.conf.beat_schedule = {
    'directory-background-sync': {
        'task': 'dirsync.tasks.sync_tasks.run_background_sync',
        'schedule': float(settings.sync_beat_seconds),
        'options': {'queue': settings.sync_queue_name},
    },
}

if __name__ == '__main__':
    celery_app.start()
