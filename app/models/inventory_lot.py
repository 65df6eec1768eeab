import enum

from sqlalchemy import Column, DateTime, Enum, Float, Integer, String, func

from app.db.base import Base


class LotSource(str, enum.Enum):
    OPENING_BALANCE = "Opening Balance"
    PURCHASE_ORDER = "Purchase Order"
    MANUFACTURING = "Manufacturing"
    AUDIT = "Audit"


class InventoryLotEntry(Base):
    """One lot movement for an internal SKU.

    Receipts carry a positive quantity, audit write-offs a negative one.
    """

    __tablename__ = "inventory_lot_entries"

    id = Column(Integer, primary_key=True, index=True)
    sku_id = Column(String(255), nullable=False, index=True)
    lot_number = Column(String(255), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=0)
    cost = Column(Float, nullable=True)
    source = Column(Enum(LotSource), nullable=False)
    reference = Column(String(255), nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
