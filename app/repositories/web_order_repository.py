"""
Web order repository.

Handles all web order database operations.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select

from app.models import WebOrder, WebOrderLineItem
from app.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

# Orders that count towards a product's order total
COUNTED_ORDER_STATUSES = ("completed", "shipped", "processing", "pending")


class WebOrderRepository(BaseRepository[WebOrder]):
    """Repository for web order operations."""

    model_class = WebOrder

    def upsert_documents(self, documents: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
        """
        Upsert whole order documents by id.

        Each document replaces the stored order including its line items;
        line items missing from the document are deleted.

        Returns:
            (added, updated)
        """
        documents = list(documents)
        existing = self.existing_ids(doc["id"] for doc in documents)
        for document in documents:
            fields = dict(document)
            line_items = [WebOrderLineItem(**line) for line in fields.pop("line_items", [])]
            order = WebOrder(**fields)
            order.line_items = line_items
            self.db.merge(order)
        self.db.flush()
        added = sum(1 for doc in documents if doc["id"] not in existing)
        return added, len(documents) - added

    def get_line_item(self, order_id: str, line_item_id: str) -> Optional[WebOrderLineItem]:
        """Line item by stored id or by its remote line id."""
        order = self.get(order_id)
        if order is None:
            return None
        for line in order.line_items:
            if line.id == line_item_id or str(line.web_line_id) == str(line_item_id):
                return line
        return None

    def find_lines_for_product(
        self,
        web_id: int,
        website: str,
        variation_id: Optional[int] = None
    ) -> List[WebOrderLineItem]:
        """
        Stored lines of one remote product (or one of its variations).

        Without ``variation_id`` only lines with no variation match.
        """
        query = self.db.query(WebOrderLineItem).join(WebOrder).filter(
            WebOrder.website == website,
            WebOrderLineItem.product_id == web_id
        )
        if variation_id:
            query = query.filter(WebOrderLineItem.variation_id == variation_id)
        else:
            query = query.filter(
                (WebOrderLineItem.variation_id.is_(None)) | (WebOrderLineItem.variation_id == 0)
            )
        return query.all()

    def order_counts_by_web_product(self) -> Dict[str, int]:
        """Line items of active/completed orders grouped by resolved web product."""
        rows = self.db.execute(
            select(WebOrderLineItem.web_product_id, func.count(WebOrderLineItem.id))
            .join(WebOrder, WebOrder.id == WebOrderLineItem.order_id)
            .where(func.lower(WebOrder.status).in_(COUNTED_ORDER_STATUSES))
            .where(WebOrderLineItem.web_product_id.is_not(None))
            .group_by(WebOrderLineItem.web_product_id)
        ).all()
        return {web_product_id: count for web_product_id, count in rows}
