"""
Celery tasks for the background directory sync.

Beat ticks every ``sync_beat_seconds``; the task itself decides whether a
run is due by comparing the last run with the self-tuned interval, so the
cadence follows whatever the controller last computed.
"""
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..celery_app import celery_app
from ..config import settings
from ..domain.common.uow import UnitOfWork
from ..domain.sync.cycle_store import CycleStateStore
from ..domain.sync.registry import ProfileRegistry
from ..use_cases.sync.run_sync_cycle import SyncCycleController
from ..wiring.bootstrap import get_interval_bounds, get_sync_cycle_controller, get_uow
from .sync_lock import single_flight

logger = logging.getLogger(__name__)


def is_due(last_run: int, interval: int, now: int) -> bool:
    """Whether at least *interval* seconds passed since *last_run*."""
    return now - last_run >= interval


def claim_due_run(uow: UnitOfWork, now: int, *, force: bool = False) -> bool:
    """Record *now* as the last run if a run is due.  Returns whether it was."""
    namespace = settings.sync_config_namespace
    with uow:
        store = CycleStateStore(uow.config, ProfileRegistry(uow.config, namespace), namespace)
        interval = store.get_interval_config(get_interval_bounds()).current_seconds
        last_run = store.get_last_run()
        if not force and not is_due(last_run, interval, now):
            logger.debug(
                f"Directory sync not due yet (last run {now - last_run}s ago, interval {interval}s)"
            )
            return False
        store.set_last_run(now)
        uow.commit()
    return True


def run_background_sync_impl(
    uow_factory: Callable[[], UnitOfWork] = get_uow,
    controller: Optional[SyncCycleController] = None,
    *,
    force: bool = False,
    clock: Callable[[], float] = time.time,
) -> Dict[str, Any]:
    """Run one controller step if due.  Persistence failures propagate."""
    now = int(clock())
    if not claim_due_run(uow_factory(), now, force=force):
        return {
            'skipped': True,
            'reason': 'not due',
            'timestamp': datetime.now().isoformat(),
        }

    controller = controller or get_sync_cycle_controller()
    result = controller.execute(uow_factory())

    return {
        'outcome': result.outcome.value,
        'prefix': result.prefix,
        'offset': result.offset,
        'interval': result.interval,
        'fetched': result.batch.fetched_count if result.batch else None,
        'timestamp': datetime.now().isoformat(),
    }


@celery_app.task(bind=True, name='dirsync.tasks.sync_tasks.run_background_sync')
@single_flight('run_background_sync')
def run_background_sync(self, force: bool = False):
    """
    Advance the directory sync by one batch.

    Args:
        force: Run even if the adaptive interval has not elapsed yet

    Returns:
        Dict with the step outcome, the next cycle pointer and the interval,
        or ``{'skipped': True, ...}`` when nothing ran.
    """
    logger.info("TASK: Directory background sync (force=%s)", force)
    return run_background_sync_impl(force=force)
