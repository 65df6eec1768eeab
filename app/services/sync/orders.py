"""
Order reconciliation: remote orders into web orders.

Each line is resolved to a web product, then to the internal SKU linked on
the matching variation (or on the product), then to the oldest available
lot of that SKU.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from app.repositories.web_order_repository import WebOrderRepository
from app.repositories.web_product_repository import WebProductSnapshot
from app.services.inventory.lots import LotBalance, get_available_lots_for_skus
from app.services.sync.identity import Reference, Resolved, line_item_id, product_lookup_key, web_order_id
from app.services.woocommerce.converters import line_item_to_document, order_to_document

logger = logging.getLogger(__name__)

# (storefront name, raw remote order)
OrderPair = Tuple[str, Dict[str, Any]]
LotLookup = Callable[[Session, Iterable[str]], Dict[str, List[LotBalance]]]


@dataclass(frozen=True)
class LineResolution:
    web_product: Optional[Reference[WebProductSnapshot]]
    linked_sku_id: Optional[str]


def resolve_line(
    storefront: str,
    item: Dict[str, Any],
    product_index: Dict[str, WebProductSnapshot]
) -> LineResolution:
    """
    Web product and linked SKU of one order line.

    A variation link wins over the product link. An unknown product yields
    an unlinked line, not an error.
    """
    snapshot = product_index.get(product_lookup_key(item.get("product_id"), storefront))
    if snapshot is None:
        return LineResolution(web_product=None, linked_sku_id=None)

    linked_sku_id = snapshot.linked_sku_id
    if item.get("variation_id"):
        variation = snapshot.find_variation(item["variation_id"])
        if variation and variation.get("linked_sku_id"):
            linked_sku_id = variation["linked_sku_id"]
    return LineResolution(web_product=Resolved(snapshot.id, snapshot), linked_sku_id=linked_sku_id or None)


def pick_fifo_lot(
    linked_sku_id: Optional[str],
    lot_map: Dict[str, List[LotBalance]]
) -> Tuple[Optional[str], Optional[float]]:
    """(lot_number, cost) of the oldest available lot, or (None, None)."""
    if not linked_sku_id:
        return None, None
    lots = lot_map.get(linked_sku_id) or []
    if not lots:
        return None, None
    return lots[0].lot_number, lots[0].cost


def collect_sku_ids(
    batch: Iterable[OrderPair],
    product_index: Dict[str, WebProductSnapshot]
) -> Set[str]:
    """Distinct linked SKUs referenced by a batch, for a single lot lookup."""
    sku_ids = set()
    for storefront, order in batch:
        for item in order.get("line_items") or []:
            sku_id = resolve_line(storefront, item, product_index).linked_sku_id
            if sku_id:
                sku_ids.add(sku_id)
    return sku_ids


def transform_order(
    storefront: str,
    order: Dict[str, Any],
    product_index: Dict[str, WebProductSnapshot],
    lot_map: Dict[str, List[LotBalance]]
) -> Dict[str, Any]:
    """Full web order document including resolved line items."""
    order_id = web_order_id(storefront, order["id"])
    document = order_to_document(storefront, order_id, order)

    lines = []
    for position, item in enumerate(order.get("line_items") or []):
        line = line_item_to_document(line_item_id(order_id, item.get("id", position)), position, item)
        resolution = resolve_line(storefront, item, product_index)
        lot_number, cost = pick_fifo_lot(resolution.linked_sku_id, lot_map)
        web_product = resolution.web_product
        line.update(
            web_product_id=web_product.id if web_product else None,
            linked_sku_id=resolution.linked_sku_id,
            lot_number=lot_number,
            cost=cost,
            image=web_product.value.image if isinstance(web_product, Resolved) else "",
        )
        lines.append(line)
    document["line_items"] = lines
    return document


class OrderReconciler:
    """Upserts remote orders batch by batch."""

    def __init__(
        self,
        db: Session,
        product_index: Dict[str, WebProductSnapshot],
        lot_lookup: LotLookup = get_available_lots_for_skus
    ):
        self.db = db
        self.product_index = product_index
        self.lot_lookup = lot_lookup
        self.orders = WebOrderRepository(db)

    def upsert_batch(self, batch: List[OrderPair]) -> Tuple[int, int]:
        """
        Transform and upsert one batch.

        Lots are looked up once for all SKUs of the batch.

        Returns:
            (added, updated)
        """
        sku_ids = collect_sku_ids(batch, self.product_index)
        lot_map = self.lot_lookup(self.db, sku_ids) if sku_ids else {}
        documents = [
            transform_order(storefront, order, self.product_index, lot_map)
            for storefront, order in batch
        ]
        added, updated = self.orders.upsert_documents(documents)
        logger.debug(
            f"Order batch: {len(documents)} orders, {len(sku_ids)} linked SKUs, "
            f"{added} added, {updated} updated"
        )
        return added, updated
