"""Cycle State Store — durable progress of the background sync.

Everything is kept in the config store so that progress survives worker
restarts.  Layout (namespace = the sync namespace unless noted)::

    background_sync_prefix      active profile prefix
    background_sync_offset      record offset within that profile
    background_sync_interval    self-tuned interval, seconds
    background_sync_last_run    unix time of the last due run
    <prefix>_lastChange         unix time of the last profile edit
    <prefix>ldap_paging_size    per-profile page size
    core/backgroundjobs_mode    "ajax" (manual) or "cron" (background)
"""

from __future__ import annotations

from .models import CycleState, IntervalConfig
from .ports import ConfigStore
from .registry import PAGING_SIZE_KEY, ProfileRegistry, config_int

PREFIX_KEY = "background_sync_prefix"
OFFSET_KEY = "background_sync_offset"
INTERVAL_KEY = "background_sync_interval"
LAST_RUN_KEY = "background_sync_last_run"
LAST_CHANGE_SUFFIX = "_lastChange"

CORE_NAMESPACE = "core"
JOBS_MODE_KEY = "backgroundjobs_mode"
MANUAL_JOBS_MODE = "ajax"


class CycleStateStore:
    """Typed accessors over the sync's persisted keys."""

    def __init__(
        self, config: ConfigStore, registry: ProfileRegistry, namespace: str
    ) -> None:
        self._config = config
        self._registry = registry
        self._namespace = namespace

    # ── Cycle ────────────────────────────────────────────────────────────

    def get_cycle(self) -> CycleState | None:
        """Return the recorded cycle, or None if there is no usable one.

        A recorded prefix that is no longer an enabled profile counts as
        no cycle.
        """
        prefixes = self._registry.list_enabled_profiles()
        if not prefixes:
            return None

        prefix = self._config.get_value(self._namespace, PREFIX_KEY)
        if prefix is None or prefix not in prefixes:
            return None

        offset = self._int(OFFSET_KEY)
        return CycleState(prefix=prefix, offset=max(offset, 0))

    def set_cycle(self, state: CycleState) -> None:
        self._config.set_values(
            self._namespace,
            {PREFIX_KEY: state.prefix, OFFSET_KEY: state.offset},
        )

    # ── Profile metadata ─────────────────────────────────────────────────

    def get_last_change(self, prefix: str) -> int:
        return self._int(prefix + LAST_CHANGE_SUFFIX)

    def get_min_paging_size(self) -> int:
        """Smallest paging size configured for any profile, 0 if none is set."""
        sizes = [
            self._int(key)
            for key in self._config.list_keys(self._namespace, contains=PAGING_SIZE_KEY)
        ]
        return min(sizes) if sizes else 0

    # ── Scheduling ───────────────────────────────────────────────────────

    def get_interval(self, default: int) -> int:
        return self._int(INTERVAL_KEY, default)

    def get_interval_config(self, bounds: IntervalConfig) -> IntervalConfig:
        """*bounds* with the persisted interval, clamped, as ``current_seconds``."""
        return bounds.with_current(self.get_interval(bounds.min_seconds))

    def set_interval(self, seconds: int) -> None:
        self._config.set_value(self._namespace, INTERVAL_KEY, seconds)

    def get_last_run(self) -> int:
        return self._int(LAST_RUN_KEY)

    def set_last_run(self, timestamp: int) -> None:
        self._config.set_value(self._namespace, LAST_RUN_KEY, timestamp)

    def is_background_mode(self) -> bool:
        mode = self._config.get_value(CORE_NAMESPACE, JOBS_MODE_KEY, MANUAL_JOBS_MODE)
        return mode != MANUAL_JOBS_MODE

    def _int(self, key: str, default: int = 0) -> int:
        return config_int(self._namespace, key, self._config.get_value(self._namespace, key), default)
