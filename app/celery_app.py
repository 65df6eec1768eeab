"""
Celery application for the storefront sync service.
"""
from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "retail_sync",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.tasks.sync_tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,

    # Runs are bounded by the same limit that expires the redis run lock
    task_track_started=True,
    task_time_limit=settings.sync_time_limit_seconds,
    task_soft_time_limit=max(settings.sync_time_limit_seconds - 15, 1),

    # One run per sync type at a time, so no point prefetching
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    result_expires=7200,

    task_routes={
        'app.tasks.sync_tasks.*': {
            'queue': 'sync_queue',
        },
    },

    broker_connection_retry_on_startup=True,

    task_always_eager=settings.celery_task_always_eager,
    task_eager_propagates=True,
)

if __name__ == '__main__':
    celery_app.start()
