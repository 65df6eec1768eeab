"""
Celery tasks running storefront sync passes in a worker.

The HTTP trigger claims the progress slot before enqueueing, so tasks run
with ``claimed=True`` and only release it. Workers need the redis progress
store; with the in-memory store the API runs syncs itself
(``run_sync_in_process``).
"""
import logging
from typing import Any, Dict

from celery import Task

from app.celery_app import celery_app
from app.db.session import SessionLocal
from app.services.sync.coordinator import COORDINATORS
from app.services.sync.progress import SyncType

logger = logging.getLogger(__name__)


class DatabaseTask(Task):
    """Base task with database session management."""
    _db = None

    @property
    def db(self):
        if self._db is None:
            self._db = SessionLocal()
        return self._db

    def after_return(self, *args, **kwargs):
        if self._db is not None:
            self._db.close()
            self._db = None


def _run_sync(task: DatabaseTask, sync_type: SyncType, full_sync: bool, claimed: bool) -> Dict[str, Any]:
    logger.info(f"Task {task.name} [{task.request.id}] started (full_sync={full_sync})")
    coordinator = COORDINATORS[sync_type](task.db)
    progress = coordinator.run(full_sync=full_sync, claimed=claimed)
    logger.info(f"Task {task.name} [{task.request.id}] finished: {progress.current_step}")
    return {
        "sync_type": sync_type.value,
        "state": progress.state.value,
        "current_step": progress.current_step,
        "added": progress.stats.added,
        "updated": progress.stats.updated,
        "skipped": progress.stats.skipped,
        "errors": len(progress.error_logs),
    }


@celery_app.task(
    bind=True,
    base=DatabaseTask,
    name="app.tasks.sync_tasks.run_web_product_sync",
    max_retries=0,
)
def run_web_product_sync(self, full_sync: bool = False, claimed: bool = True) -> Dict[str, Any]:
    """Pull catalog changes from every configured storefront."""
    return _run_sync(self, SyncType.PRODUCTS, full_sync, claimed)


@celery_app.task(
    bind=True,
    base=DatabaseTask,
    name="app.tasks.sync_tasks.run_web_order_sync",
    max_retries=0,
)
def run_web_order_sync(self, full_sync: bool = False, claimed: bool = True) -> Dict[str, Any]:
    """Pull order changes from every configured storefront."""
    return _run_sync(self, SyncType.ORDERS, full_sync, claimed)


def run_sync_in_process(sync_type: SyncType, full_sync: bool = False) -> Dict[str, Any]:
    """
    Run a claimed sync inside the API process.

    Used with the in-memory progress store, which a separate worker
    process could neither read nor release.
    """
    db = SessionLocal()
    try:
        progress = COORDINATORS[sync_type](db).run(full_sync=full_sync, claimed=True)
        logger.info(f"In-process {sync_type.value} sync finished: {progress.current_step}")
        return {"sync_type": sync_type.value, "state": progress.state.value}
    finally:
        db.close()


SYNC_TASKS = {
    SyncType.PRODUCTS: run_web_product_sync,
    SyncType.ORDERS: run_web_order_sync,
}
