"""
Configuration settings for the directory sync service.
Loads environment variables and provides application settings.
"""
from pathlib import Path
from pydantic_settings import BaseSettings

# settings.py is at backend/dirsync/config/settings.py → 4 levels up
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - use absolute path to avoid working directory issues
    database_url: str = f"sqlite:///{_PROJECT_ROOT}/data/dirsync.db"

    # Celery / Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    celery_timezone: str = "UTC"

    # Background sync
    sync_config_namespace: str = "user_ldap"  # Namespace holding profiles and cycle state
    sync_queue_name: str = "directory_sync"
    sync_beat_seconds: int = 300  # How often beat checks whether a sync run is due
    sync_lock_timeout: int = 3600  # Max single-flight lock time (seconds)
    sync_worker_hostname_prefix: str = "dirsync"  # Only these workers clear a stale lock on startup
    sync_min_interval: int = 30 * 60  # 30 minutes
    sync_max_interval: int = 12 * 60 * 60  # 12 hours
    sync_config_change_cooldown: int = 30 * 60  # Settling period after a profile edit

    # LDAP client
    ldap_connect_timeout: int = 10  # seconds
    ldap_receive_timeout: int = 30  # seconds
    ldap_default_paging_size: int = 500  # Used when a profile has no explicit paging size

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
