#!/usr/bin/env python3
"""Run one directory sync step synchronously, bypassing Celery.

Useful to check a newly configured profile, or to drain a directory faster
than the adaptive interval allows.

Usage:
    cd backend
    source venv/bin/activate

    # Show the persisted cycle pointer and interval
    python scripts/run_sync_cycle.py --status

    # Run one step if the interval has elapsed
    python scripts/run_sync_cycle.py

    # Run three steps back to back, ignoring the interval
    python scripts/run_sync_cycle.py --force --steps 3
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Path setup
# ---------------------------------------------------------------------------
backend_dir = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(backend_dir))

from dirsync.config import settings
from dirsync.database import init_db
from dirsync.domain.sync.cycle_store import CycleStateStore
from dirsync.domain.sync.registry import ProfileRegistry
from dirsync.tasks.sync_tasks import run_background_sync_impl
from dirsync.wiring.bootstrap import get_uow

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _print_status() -> None:
    namespace = settings.sync_config_namespace
    with get_uow() as uow:
        registry = ProfileRegistry(uow.config, namespace)
        store = CycleStateStore(uow.config, registry, namespace)
        cycle = store.get_cycle()
        print(f"Enabled profiles:  {registry.list_enabled_profiles() or '(none)'}")
        print(f"Background mode:   {store.is_background_mode()}")
        print(f"Active profile:    {cycle.prefix if cycle else '(none)'}")
        print(f"Offset:            {cycle.offset if cycle else '-'}")
        print(f"Interval:          {store.get_interval(settings.sync_min_interval)}s")
        print(f"Min paging size:   {store.get_min_paging_size()}")
        print(f"Mapped identities: {uow.identities.count_mapped()}")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--status", action="store_true", help="print persisted state and exit")
    parser.add_argument("--force", action="store_true", help="ignore the adaptive interval")
    parser.add_argument("--steps", type=int, default=1, help="number of steps to run")
    args = parser.parse_args()

    init_db()

    if args.status:
        _print_status()
        return 0

    for step in range(1, args.steps + 1):
        result = run_background_sync_impl(force=args.force)
        logger.info(f"Step {step}/{args.steps}: {result}")
        if result.get("skipped"):
            break
    return 0


if __name__ == "__main__":
    sys.exit(main())
