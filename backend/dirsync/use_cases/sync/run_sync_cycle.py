"""SyncCycleController — one step of the background directory sync.

Each invocation:
  1. Does nothing unless the host runs background jobs autonomously
  2. Resolves the active cycle, or starts one on the next profile
  3. Skips the batch while the profile is inside its config-change cooldown
  4. Fetches one page; advances the offset on a full page, otherwise moves
     on to the next profile (also when the directory is unreachable)
  5. Recomputes the run interval from the number of mapped identities

All writes of one invocation are committed together at the end.  Only
persistence failures propagate to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from dirsync.domain.common.errors import DirectoryUnavailableError
from dirsync.domain.common.uow import UnitOfWork
from dirsync.domain.sync.cycle_store import CycleStateStore
from dirsync.domain.sync.interval import recompute_interval
from dirsync.domain.sync.models import (
    DEFAULT_MIN_INTERVAL,
    DEFAULT_PAGING_SIZE,
    CycleState,
    IntervalConfig,
    SyncCycleResult,
    SyncOutcome,
)
from dirsync.domain.sync.registry import ProfileRegistry

from .fetch_batch import BatchFetcher

logger = logging.getLogger(__name__)


class SyncCycleController:
    """Drive the profile rotation one batch at a time."""

    def __init__(
        self,
        fetcher: BatchFetcher,
        *,
        namespace: str = "user_ldap",
        bounds: IntervalConfig | None = None,
        cooldown_seconds: int = DEFAULT_MIN_INTERVAL,
        default_paging_size: int = DEFAULT_PAGING_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetcher = fetcher
        self._namespace = namespace
        self._bounds = bounds or IntervalConfig()
        self._cooldown_seconds = cooldown_seconds
        self._default_paging_size = default_paging_size
        self._clock = clock

    def execute(self, uow: UnitOfWork) -> SyncCycleResult:
        with uow:
            registry = ProfileRegistry(
                uow.config, self._namespace, default_paging_size=self._default_paging_size
            )
            store = CycleStateStore(uow.config, registry, self._namespace)

            if not store.is_background_mode():
                logger.debug("Background jobs run in manual mode, skipping directory sync")
                return SyncCycleResult(outcome=SyncOutcome.MANUAL_MODE)

            # ── Resolve cycle ────────────────────────────────────────
            cycle = store.get_cycle()
            if cycle is None:
                cycle = self.determine_next_cycle(registry, store, None)
                if cycle is None:
                    interval = self._update_interval(uow, store)
                    uow.commit()
                    return SyncCycleResult(outcome=SyncOutcome.NO_PROFILES, interval=interval)

            # ── Cooldown after config changes ────────────────────────
            if not self.qualifies_to_run(store, cycle):
                logger.info(
                    f"Profile {cycle.prefix!r} changed within the last "
                    f"{self._cooldown_seconds}s, deferring sync"
                )
                interval = self._update_interval(uow, store)
                uow.commit()
                return SyncCycleResult(
                    outcome=SyncOutcome.INELIGIBLE,
                    prefix=cycle.prefix,
                    offset=cycle.offset,
                    interval=interval,
                )

            # ── Run one batch ────────────────────────────────────────
            profile = registry.get_profile(cycle.prefix)
            batch = None
            try:
                batch = self._fetcher.fetch_batch(uow.identities, profile, cycle.offset)
            except DirectoryUnavailableError as e:
                logger.warning("%s; moving on to the next profile", e)
                outcome = SyncOutcome.UNAVAILABLE
                next_cycle = self.determine_next_cycle(registry, store, cycle)
            else:
                if batch.expects_more_results:
                    outcome = SyncOutcome.ADVANCED
                    next_cycle = cycle.advanced_by(profile.paging_size)
                    store.set_cycle(next_cycle)
                else:
                    outcome = SyncOutcome.RETIRED
                    next_cycle = self.determine_next_cycle(registry, store, cycle)

            interval = self._update_interval(uow, store)
            uow.commit()

        logger.info(
            f"Directory sync step {outcome.value}: profile {cycle.prefix!r} "
            f"-> {next_cycle.prefix!r} offset {next_cycle.offset}, interval {interval}s"
        )
        return SyncCycleResult(
            outcome=outcome,
            prefix=next_cycle.prefix,
            offset=next_cycle.offset,
            interval=interval,
            batch=batch,
        )

    def determine_next_cycle(
        self,
        registry: ProfileRegistry,
        store: CycleStateStore,
        previous: CycleState | None,
    ) -> CycleState | None:
        """Start a cycle on the profile after *previous*, always at offset 0.

        Returns None when no profile is enabled.
        """
        prefix = registry.next_prefix(previous.prefix if previous is not None else None)
        if prefix is None:
            return None
        cycle = CycleState(prefix=prefix, offset=0)
        store.set_cycle(cycle)
        return cycle

    def qualifies_to_run(self, store: CycleStateStore, cycle: CycleState) -> bool:
        last_change = store.get_last_change(cycle.prefix)
        return (self._clock() - last_change) > self._cooldown_seconds

    def _update_interval(self, uow: UnitOfWork, store: CycleStateStore) -> int:
        interval = recompute_interval(
            uow.identities.count_mapped(),
            store.get_min_paging_size(),
            self._bounds,
        )
        store.set_interval(interval)
        return interval
