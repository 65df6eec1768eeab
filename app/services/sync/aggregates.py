import logging

from sqlalchemy.orm import Session

from app.repositories.web_order_repository import WebOrderRepository
from app.repositories.web_product_repository import WebProductRepository

logger = logging.getLogger(__name__)


def recompute_web_order_counts(db: Session) -> int:
    """
    Full recompute of ``total_web_orders`` from stored order lines.

    Products with no counted order keep their previous value.
    Returns the number of products updated.
    """
    counts = WebOrderRepository(db).order_counts_by_web_product()
    updated = WebProductRepository(db).set_order_counts(counts)
    logger.info(f"Order counts refreshed for {updated} web products")
    return updated
