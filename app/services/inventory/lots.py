"""Lot balances of internal SKUs, oldest lot first (FIFO)."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models import InventoryLotEntry

logger = logging.getLogger(__name__)


@dataclass
class LotBalance:
    lot_number: str
    balance: float
    cost: float
    source: str
    date: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "lotNumber": self.lot_number,
            "balance": self.balance,
            "cost": self.cost,
            "source": self.source,
            "date": self.date.isoformat() if self.date else None,
        }


def fold_lot_entries(entries: Iterable[InventoryLotEntry]) -> Dict[str, List[LotBalance]]:
    """
    Fold lot movements into available balances per SKU.

    ``entries`` must be ordered by ``occurred_at``. A lot keeps the date and
    source of its first movement; its cost is the latest non-zero cost seen.
    Lots without a positive balance are dropped.
    """
    lots_by_sku: Dict[str, Dict[str, LotBalance]] = {}
    for entry in entries:
        if not entry.lot_number:
            continue
        lots = lots_by_sku.setdefault(entry.sku_id, {})
        current = lots.get(entry.lot_number)
        if current is None:
            lots[entry.lot_number] = LotBalance(
                lot_number=entry.lot_number,
                balance=entry.quantity or 0,
                cost=entry.cost or 0,
                source=entry.source.value,
                date=entry.occurred_at,
            )
        else:
            current.balance += entry.quantity or 0
            current.cost = entry.cost or current.cost

    result = {}
    for sku_id, lots in lots_by_sku.items():
        available = [lot for lot in lots.values() if lot.balance > 0]
        available.sort(key=lambda lot: (lot.date is None, lot.date or datetime.min))
        result[sku_id] = available
    return result


def get_available_lots_for_skus(db: Session, sku_ids: Iterable[str]) -> Dict[str, List[LotBalance]]:
    """
    Available lots for several SKUs in one query.

    Every requested SKU is present in the result, possibly with an empty list.
    """
    sku_ids = sorted(set(sku_ids))
    if not sku_ids:
        return {}
    entries = db.query(InventoryLotEntry).filter(
        InventoryLotEntry.sku_id.in_(sku_ids)
    ).order_by(InventoryLotEntry.occurred_at, InventoryLotEntry.id).all()
    folded = fold_lot_entries(entries)
    logger.debug(f"Loaded lots for {len(sku_ids)} SKUs ({len(entries)} movements)")
    return {sku_id: folded.get(sku_id, []) for sku_id in sku_ids}


def get_available_lots(db: Session, sku_id: str) -> List[LotBalance]:
    return get_available_lots_for_skus(db, [sku_id]).get(sku_id, [])


def get_lot_cost(db: Session, sku_id: str, lot_number: str) -> float:
    """Recorded cost of one lot, 0 when nothing is known."""
    entries = db.query(InventoryLotEntry).filter(
        InventoryLotEntry.sku_id == sku_id,
        InventoryLotEntry.lot_number == lot_number
    ).order_by(InventoryLotEntry.occurred_at, InventoryLotEntry.id).all()
    cost = 0.0
    for entry in entries:
        cost = entry.cost or cost
    return cost
