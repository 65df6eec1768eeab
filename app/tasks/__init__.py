"""
Celery tasks for storefront sync.
"""
from app.tasks.sync_tasks import run_web_order_sync, run_web_product_sync

__all__ = ["run_web_product_sync", "run_web_order_sync"]
