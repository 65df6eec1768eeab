"""
Catalog reconciliation: remote products into web products and SKU mirrors.

Operator-curated ``linked_sku_id`` values survive every re-sync, on the
product and on each variation.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.repositories.web_product_repository import SkuRepository, WebProductRepository
from app.services.sync.identity import variation_key, web_product_id
from app.services.woocommerce.converters import (
    product_to_sku_mirror_fields,
    product_to_web_product_fields,
    variation_to_document,
)

logger = logging.getLogger(__name__)

ADDED = "added"
UPDATED = "updated"


def needs_variations(product: Dict[str, Any]) -> bool:
    return product.get("type") == "variable" and bool(product.get("variations"))


def build_variations(
    storefront: str,
    product: Dict[str, Any],
    remote_variations: List[Dict[str, Any]],
    existing_variations: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Stored form of freshly fetched variations, links copied from the stored ones."""
    links = {
        variation_key(v.get("id")): v.get("linked_sku_id")
        for v in existing_variations
    }
    return [
        variation_to_document(storefront, product, v, links.get(variation_key(v["id"])))
        for v in remote_variations
        if isinstance(v, dict) and "id" in v
    ]


def merge_variations(
    existing: List[Dict[str, Any]],
    incoming: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Merge variation lists by remote variation id.

    Matches are updated in place keeping their link, new ones are appended,
    and stored variations absent from ``incoming`` are kept as they are.
    """
    merged = [dict(v) for v in existing]
    positions = {variation_key(v.get("id")): i for i, v in enumerate(merged)}
    for variation in incoming:
        key = variation_key(variation.get("id"))
        if key in positions:
            current = merged[positions[key]]
            merged[positions[key]] = {
                **current,
                **variation,
                "linked_sku_id": current.get("linked_sku_id") or variation.get("linked_sku_id"),
            }
        else:
            positions[key] = len(merged)
            merged.append(dict(variation))
    return merged


class CatalogReconciler:
    """Upserts one remote product at a time."""

    def __init__(self, db: Session):
        self.db = db
        self.web_products = WebProductRepository(db)
        self.skus = SkuRepository(db)

    def reconcile(
        self,
        storefront: str,
        product: Dict[str, Any],
        remote_variations: Optional[List[Dict[str, Any]]] = None
    ) -> str:
        """
        Upsert the web product and its legacy SKU mirror.

        Returns:
            ADDED when no web product existed under the identity, else UPDATED
        """
        product_id = web_product_id(storefront, product)
        existing = self.web_products.get(product_id)
        existing_variations = list(existing.variations or []) if existing else []

        fetched = build_variations(storefront, product, remote_variations or [], existing_variations)
        variations = merge_variations(existing_variations, fetched)

        fields = product_to_web_product_fields(storefront, product, variations)
        self.web_products.upsert(product_id, fields)
        self.skus.upsert(product_id, product_to_sku_mirror_fields(storefront, product, variations))

        outcome = UPDATED if existing else ADDED
        logger.debug(f"Web product {product_id} {outcome} ({len(variations)} variations)")
        return outcome
