"""
Operator actions on synced records.

Linking a web product (or one of its variations) to an internal SKU, and
overriding the lot chosen for an order line.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import WebProduct
from app.repositories.web_order_repository import WebOrderRepository
from app.repositories.web_product_repository import WebProductRepository
from app.services.inventory.lots import LotBalance, get_available_lots, get_lot_cost
from app.services.sync.identity import RefId, Reference, Resolved, variation_key

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    pass


class UnlinkedLineError(ValueError):
    pass


@dataclass
class LinkResult:
    linked_sku_id: Optional[str]
    variation_id: Optional[int]
    suggested_lot: Optional[LotBalance] = None
    available_lots: List[LotBalance] = field(default_factory=list)
    orders_updated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "linkedSkuId": self.linked_sku_id,
            "variationId": self.variation_id,
            "suggestedLot": self.suggested_lot.to_dict() if self.suggested_lot else None,
            "availableLots": [lot.to_dict() for lot in self.available_lots],
            "ordersUpdated": self.orders_updated,
        }


def _find_variation(variations: List[Dict[str, Any]], variation_id: Any) -> Optional[Dict[str, Any]]:
    wanted = variation_key(variation_id)
    for variation in variations:
        if variation_key(variation.get("id")) == wanted:
            return variation
    return None


def load_web_product(db: Session, reference: Reference[WebProduct]) -> Optional[WebProduct]:
    """Target of a web product reference, loaded when only its id is known."""
    if isinstance(reference, Resolved):
        return reference.value
    return WebProductRepository(db).get(reference.id)


def get_link(db: Session, product_id: str, variation_id: Optional[int] = None) -> LinkResult:
    """Current link of a product or variation plus the lots of the linked SKU."""
    product = WebProductRepository(db).get(product_id)
    if product is None:
        raise RecordNotFoundError(f"Web product {product_id} not found")

    linked_sku_id = product.linked_sku_id
    if variation_id:
        variation = _find_variation(product.variations or [], variation_id)
        if variation is None:
            raise RecordNotFoundError(f"Variation {variation_id} not found on {product_id}")
        linked_sku_id = variation.get("linked_sku_id")

    lots = get_available_lots(db, linked_sku_id) if linked_sku_id else []
    return LinkResult(
        linked_sku_id=linked_sku_id,
        variation_id=variation_id,
        suggested_lot=lots[0] if lots else None,
        available_lots=lots,
    )


def link_sku(
    db: Session,
    product_id: str,
    sku_id: Optional[str],
    variation_id: Optional[int] = None
) -> LinkResult:
    """
    Set or clear the internal SKU linked to a web product or variation.

    Linking also relinks the stored order lines of that product/variation
    and assigns them the oldest available lot. Clearing a link leaves
    historical orders alone. The caller commits.
    """
    products = WebProductRepository(db)
    product = products.get(product_id)
    if product is None:
        raise RecordNotFoundError(f"Web product {product_id} not found")

    sku_id = (sku_id or "").strip() or None
    if variation_id:
        variations = [dict(v) for v in product.variations or []]
        variation = _find_variation(variations, variation_id)
        if variation is None:
            raise RecordNotFoundError(f"Variation {variation_id} not found on {product_id}")
        variation["linked_sku_id"] = sku_id
        # reassign so the JSON column is flagged dirty
        product.variations = variations
    else:
        product.linked_sku_id = sku_id
    db.flush()

    result = LinkResult(linked_sku_id=sku_id, variation_id=variation_id)
    if sku_id is None:
        logger.info(f"Unlinked {product_id} (variation {variation_id})")
        return result

    result.available_lots = get_available_lots(db, sku_id)
    result.suggested_lot = result.available_lots[0] if result.available_lots else None
    suggested_number = result.suggested_lot.lot_number if result.suggested_lot else None
    suggested_cost = result.suggested_lot.cost if result.suggested_lot else 0

    touched_orders = set()
    lines = WebOrderRepository(db).find_lines_for_product(product.web_id, product.website, variation_id)
    for line in lines:
        if line.linked_sku_id != sku_id:
            line.linked_sku_id = sku_id
            line.lot_number = suggested_number
            line.cost = suggested_cost
            touched_orders.add(line.order_id)
        elif not line.lot_number and suggested_number:
            line.lot_number = suggested_number
            line.cost = suggested_cost
            touched_orders.add(line.order_id)
    db.flush()

    result.orders_updated = len(touched_orders)
    logger.info(
        f"Linked {product_id} (variation {variation_id}) to SKU {sku_id}, "
        f"{result.orders_updated} orders updated"
    )
    return result


def update_line_lot(db: Session, order_id: str, line_item_id: str, lot_number: Optional[str]) -> Dict[str, Any]:
    """
    Override the lot of one order line.

    A line without its own link falls back to the link on its web product
    or variation.

    Raises:
        RecordNotFoundError: unknown order or line
        UnlinkedLineError: no SKU to take the lot cost from
    """
    line = WebOrderRepository(db).get_line_item(order_id, line_item_id)
    if line is None:
        raise RecordNotFoundError(f"Line item {line_item_id} not found on order {order_id}")

    sku_id = line.linked_sku_id
    if not sku_id and line.web_product_id:
        # stored lines only keep the id of their web product
        product = load_web_product(db, RefId(line.web_product_id))
        if product is not None:
            sku_id = product.linked_sku_id
            if line.variation_id:
                variation = _find_variation(product.variations or [], line.variation_id)
                if variation and variation.get("linked_sku_id"):
                    sku_id = variation["linked_sku_id"]
    if not sku_id:
        raise UnlinkedLineError("Line item has no linked SKU")

    lot_number = (lot_number or "").strip() or None
    line.linked_sku_id = sku_id
    line.lot_number = lot_number
    line.cost = get_lot_cost(db, sku_id, lot_number) if lot_number else 0
    db.flush()
    logger.info(f"Lot of {line.id} set to {lot_number}")
    return {
        "success": True,
        "lineItemId": line.id,
        "linkedSkuId": sku_id,
        "lotNumber": line.lot_number,
        "cost": line.cost,
    }
