from .fetch_batch import BatchFetcher
from .run_sync_cycle import SyncCycleController

__all__ = ["BatchFetcher", "SyncCycleController"]
