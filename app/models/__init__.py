from app.models.inventory_lot import InventoryLotEntry, LotSource
from app.models.sync_checkpoint import SyncCheckpoint
from app.models.web_order import WebOrder, WebOrderLineItem
from app.models.web_product import Sku, WebProduct

__all__ = [
    "InventoryLotEntry",
    "LotSource",
    "Sku",
    "SyncCheckpoint",
    "WebOrder",
    "WebOrderLineItem",
    "WebProduct",
]
