"""
Tests for sync_lock.py — single-flight lock and decorator.

All tests mock Redis (no live Redis needed).
"""
from unittest.mock import MagicMock, patch

from dirsync.tasks.sync_lock import LOCK_KEY, SyncLock, single_flight


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_lock(lock_value=None, ttl=3600):
    """Create a SyncLock with a mocked Redis client."""
    with patch("dirsync.tasks.sync_lock.settings") as mock_settings:
        mock_settings.redis_host = "localhost"
        mock_settings.redis_port = 6379
        mock_settings.redis_db = 0
        mock_settings.sync_lock_timeout = 3600

        with patch("dirsync.tasks.sync_lock.redis.Redis") as MockRedis:
            mock_redis = MagicMock()
            MockRedis.return_value = mock_redis

            mock_release_script = MagicMock()
            mock_redis.register_script.return_value = mock_release_script

            lock = SyncLock()

            if lock_value is not None:
                mock_redis.get.return_value = lock_value.encode()
            else:
                mock_redis.get.return_value = None

            mock_redis.ttl.return_value = ttl

    return lock, mock_redis, mock_release_script


# ---------------------------------------------------------------------------
# Lock Mechanism Tests
# ---------------------------------------------------------------------------

class TestAcquire:
    def test_acquire_fresh(self):
        lock, mock_redis, _ = _make_lock()
        mock_redis.set.return_value = True

        assert lock.acquire("run_background_sync", "task-123") is True

        args, kwargs = mock_redis.set.call_args
        assert args[0] == LOCK_KEY
        assert "run_background_sync:task-123:" in args[1]
        assert kwargs == {"nx": True, "ex": 3600}

    def test_acquire_busy(self):
        lock, mock_redis, _ = _make_lock(
            lock_value="run_background_sync:other-id:2024-01-01T00:00:00"
        )
        mock_redis.set.return_value = False

        assert lock.acquire("run_background_sync", "my-id") is False


class TestRelease:
    def test_release_atomic(self):
        lock, _, mock_release_script = _make_lock()
        mock_release_script.return_value = 1

        assert lock.release("task-123") is True
        mock_release_script.assert_called_once_with(keys=[LOCK_KEY], args=[":task-123:"])

    def test_release_wrong_owner(self):
        lock, _, mock_release_script = _make_lock()
        mock_release_script.return_value = 0

        assert lock.release("wrong-id") is False

    def test_force_release_ignores_owner(self):
        lock, mock_redis, mock_release_script = _make_lock(
            lock_value="run_background_sync:dead-worker:2024-01-01T00:00:00"
        )
        mock_redis.delete.return_value = 1

        assert lock.force_release() is True
        mock_redis.delete.assert_called_once_with(LOCK_KEY)
        mock_release_script.assert_not_called()

    def test_force_release_without_lock(self):
        lock, mock_redis, _ = _make_lock()
        mock_redis.delete.return_value = 0

        assert lock.force_release() is False


class TestCurrentHolder:
    def test_parses_holder(self):
        lock, _, _ = _make_lock(lock_value="run_background_sync:abc:2024-01-01T10:20:30", ttl=42)

        holder = lock.get_current_holder()

        assert holder == {
            "task_name": "run_background_sync",
            "task_id": "abc",
            "started_at": "2024-01-01T10:20:30",
            "ttl_seconds": 42,
        }

    def test_no_holder(self):
        lock, _, _ = _make_lock()
        assert lock.get_current_holder() is None


# ---------------------------------------------------------------------------
# Decorator Tests
# ---------------------------------------------------------------------------

class TestSingleFlightDecorator:
    @patch("dirsync.tasks.sync_lock.SyncLock.get_instance")
    def test_runs_and_releases(self, mock_get_instance):
        mock_lock = MagicMock()
        mock_lock.acquire.return_value = True
        mock_get_instance.return_value = mock_lock

        @single_flight("test_task")
        def my_func():
            return "ok"

        assert my_func() == "ok"
        mock_lock.release.assert_called_once_with("unknown")

    @patch("dirsync.tasks.sync_lock.SyncLock.get_instance")
    def test_releases_on_error(self, mock_get_instance):
        mock_lock = MagicMock()
        mock_lock.acquire.return_value = True
        mock_get_instance.return_value = mock_lock

        @single_flight("test_task")
        def my_func():
            raise ValueError("boom")

        try:
            my_func()
        except ValueError:
            pass

        mock_lock.release.assert_called_once()

    @patch("dirsync.tasks.sync_lock.SyncLock.get_instance")
    def test_skips_when_busy(self, mock_get_instance):
        mock_lock = MagicMock()
        mock_lock.acquire.return_value = False
        mock_get_instance.return_value = mock_lock
        body = MagicMock()

        @single_flight("test_task")
        def my_func():
            body()

        result = my_func()

        assert result["skipped"] is True
        body.assert_not_called()
        mock_lock.release.assert_not_called()

    @patch("dirsync.tasks.sync_lock.SyncLock.get_instance")
    def test_uses_celery_task_id(self, mock_get_instance):
        mock_lock = MagicMock()
        mock_lock.acquire.return_value = True
        mock_get_instance.return_value = mock_lock

        task_self = MagicMock()
        task_self.request.id = "celery-42"

        @single_flight("test_task")
        def my_task(self):
            return "done"

        my_task(task_self)

        mock_lock.acquire.assert_called_once_with("test_task", "celery-42")
        mock_lock.release.assert_called_once_with("celery-42")
