"""
Single-flight lock for the directory sync task.

Two workers advancing the same cycle would both fetch the same offset and
race on the (prefix, offset) pair.  The lock makes sure at most one
invocation runs; a second one gives up immediately instead of waiting,
since the next beat tick will try again anyway.
"""
import logging
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

import redis

from ..config import settings

logger = logging.getLogger(__name__)

LOCK_KEY = "directory_sync_lock"

# Lua script for atomic release: only deletes if the task_id field matches.
# Prevents TOCTOU race where lock TTL expires between GET and DEL.
_RELEASE_LUA = """
local val = redis.call('get', KEYS[1])
if val and string.find(val, ARGV[1], 1, true) then
    return redis.call('del', KEYS[1])
end
return 0
"""


class SyncLock:
    """
    Redis-based distributed lock for the directory sync task.

    Lock value is ``task_name:task_id:started_at`` so operators can see
    which invocation holds it.
    """

    _instance = None

    def __init__(self):
        self.redis = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db
        )
        self.lock_timeout = settings.sync_lock_timeout
        self._release_script = self.redis.register_script(_RELEASE_LUA)

    @classmethod
    def get_instance(cls) -> 'SyncLock':
        """Get singleton instance of SyncLock."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def acquire(self, task_name: str, task_id: str) -> bool:
        """Try to acquire the lock without waiting."""
        lock_value = f"{task_name}:{task_id}:{datetime.now().isoformat()}"
        acquired = self.redis.set(
            LOCK_KEY,
            lock_value,
            nx=True,  # Only set if not exists
            ex=self.lock_timeout
        )
        if acquired:
            logger.info(f"Directory sync lock acquired by {task_name} (task_id={task_id})")
            return True

        current = self.get_current_holder() or {}
        logger.info(
            f"Directory sync lock already held by {current.get('task_name', 'unknown')} "
            f"(task_id={current.get('task_id', 'unknown')}). Skipping {task_name}."
        )
        return False

    def release(self, task_id: str) -> bool:
        """Atomically release the lock if *task_id* owns it."""
        # Lua script matches ":task_id:" to ensure exact field match
        match_pattern = f":{task_id}:"
        result = self._release_script(keys=[LOCK_KEY], args=[match_pattern])
        if result:
            logger.info(f"Directory sync lock released by task_id={task_id}")
            return True
        return False

    def force_release(self) -> bool:
        """
        Force release the lock regardless of owner.
        Use with caution - only for stuck locks.
        """
        result = self.redis.delete(LOCK_KEY)
        if result:
            logger.warning("Directory sync lock force released")
        return bool(result)

    def get_current_holder(self) -> Optional[Dict[str, Any]]:
        """
        Get info about the current lock holder.

        Returns:
            Dict with task_name, task_id, started_at, ttl_seconds
            or None if no lock is held
        """
        current = self.redis.get(LOCK_KEY)
        if not current:
            return None

        parts = current.decode().split(':')
        if len(parts) >= 3:
            return {
                'task_name': parts[0],
                'task_id': parts[1],
                'started_at': ':'.join(parts[2:]),  # Rejoin ISO timestamp
                'ttl_seconds': self.redis.ttl(LOCK_KEY)
            }
        return {'raw': current.decode()}


def single_flight(task_name: str):
    """
    Decorator that runs a task body only if no other invocation holds the lock.

    When the lock is busy the wrapped function is not called and a
    ``{'skipped': True, ...}`` result is returned.

    Example:
        @celery_app.task(bind=True, name='dirsync.tasks.sync_tasks.run_background_sync')
        @single_flight('run_background_sync')
        def run_background_sync(self):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            lock = SyncLock.get_instance()

            # Get task ID from Celery request if available
            task_id = 'unknown'
            if args and hasattr(args[0], 'request'):
                task_id = args[0].request.id or 'unknown'

            if not lock.acquire(task_name, task_id):
                return {
                    'skipped': True,
                    'reason': 'another directory sync is running',
                    'timestamp': datetime.now().isoformat(),
                }

            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in directory sync task {task_name}: {e}", exc_info=True)
                raise
            finally:
                lock.release(task_id)

        return wrapper
    return decorator
