"""
Web product repository.

Handles web product and legacy SKU mirror persistence.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from app.models import Sku, WebProduct
from app.repositories.base_repository import BaseRepository
from app.services.sync.identity import product_lookup_key, variation_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebProductSnapshot:
    """Read-only projection used to resolve order lines."""

    id: str
    web_id: Optional[int]
    website: Optional[str]
    image: str = ""
    linked_sku_id: Optional[str] = None
    variations: List[Dict[str, Any]] = field(default_factory=list)

    def find_variation(self, remote_variation_id: Any) -> Optional[Dict[str, Any]]:
        wanted = variation_key(remote_variation_id)
        if wanted is None:
            return None
        for variation in self.variations:
            if variation_key(variation.get("id")) == wanted:
                return variation
        return None


class WebProductRepository(BaseRepository[WebProduct]):
    """Repository for web product operations."""

    model_class = WebProduct

    def load_index(self) -> Dict[str, WebProductSnapshot]:
        """
        All web products keyed by ``{webId}-{website}``.

        Loaded once per order sync run.
        """
        rows = self.db.execute(
            select(
                WebProduct.id,
                WebProduct.web_id,
                WebProduct.website,
                WebProduct.image,
                WebProduct.linked_sku_id,
                WebProduct.variations,
            )
        ).all()
        index = {}
        for row in rows:
            if row.web_id is None:
                continue
            index[product_lookup_key(row.web_id, row.website)] = WebProductSnapshot(
                id=row.id,
                web_id=row.web_id,
                website=row.website,
                image=row.image or "",
                linked_sku_id=row.linked_sku_id,
                variations=list(row.variations or []),
            )
        return index

    def find_by_web_id(self, web_id: int, website: str) -> Optional[WebProduct]:
        return self.db.query(WebProduct).filter(
            WebProduct.web_id == web_id,
            WebProduct.website == website
        ).first()

    def set_order_counts(self, counts: Dict[str, int]) -> int:
        """
        Overwrite ``total_web_orders`` for every product in ``counts``.

        Ids with no stored product are ignored. Returns rows updated.
        """
        known = self.existing_ids(counts.keys())
        mappings = [
            {"id": product_id, "total_web_orders": count}
            for product_id, count in counts.items()
            if product_id in known
        ]
        if mappings:
            self.db.bulk_update_mappings(WebProduct, mappings)
        return len(mappings)


class SkuRepository(BaseRepository[Sku]):
    """Repository for the legacy SKU table."""

    model_class = Sku
