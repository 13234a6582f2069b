"""Dependency injection bootstrap — the single place that binds ports to adapters.

Tasks and scripts never import concrete implementations directly; they
ask these factories for fully wired objects::

    from dirsync.wiring.bootstrap import get_uow, get_sync_cycle_controller

    result = get_sync_cycle_controller().execute(get_uow())
"""

from __future__ import annotations

from dirsync.config import settings
from dirsync.database import SessionLocal
from dirsync.domain.sync.models import IntervalConfig
from dirsync.domain.sync.ports import DirectoryClientFactory
from dirsync.infra.db.uow import SqlUnitOfWork
from dirsync.infra.directory.ldap_client import Ldap3DirectoryClientFactory
from dirsync.use_cases.sync.fetch_batch import BatchFetcher
from dirsync.use_cases.sync.run_sync_cycle import SyncCycleController


# ── Unit of Work ─────────────────────────────────────────────────────────


def get_uow() -> SqlUnitOfWork:
    """Return a fresh SqlUnitOfWork bound to SessionLocal."""
    return SqlUnitOfWork(SessionLocal)


# ── Directory access ─────────────────────────────────────────────────────

_directory_client_factory: Ldap3DirectoryClientFactory | None = None


def get_directory_client_factory() -> DirectoryClientFactory:
    """Return a singleton Ldap3DirectoryClientFactory."""
    global _directory_client_factory
    if _directory_client_factory is None:
        _directory_client_factory = Ldap3DirectoryClientFactory()
    return _directory_client_factory


# ── Use Cases ────────────────────────────────────────────────────────────


def get_interval_bounds() -> IntervalConfig:
    return IntervalConfig(
        min_seconds=settings.sync_min_interval,
        max_seconds=settings.sync_max_interval,
        current_seconds=settings.sync_min_interval,
    )


def get_sync_cycle_controller() -> SyncCycleController:
    """Build a SyncCycleController wired with infrastructure adapters."""
    return SyncCycleController(
        BatchFetcher(get_directory_client_factory()),
        namespace=settings.sync_config_namespace,
        bounds=get_interval_bounds(),
        cooldown_seconds=settings.sync_config_change_cooldown,
        default_paging_size=settings.ldap_default_paging_size,
    )
