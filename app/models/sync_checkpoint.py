from sqlalchemy import JSON, Column, DateTime, Integer, String, func

from app.db.base import Base


class SyncCheckpoint(Base):
    """Last successful sync per (resource type, storefront)."""

    __tablename__ = "sync_checkpoints"

    # "web-products-{website}" or "web-orders-{website}"
    id = Column(String(255), primary_key=True)
    sync_type = Column(String(20), nullable=False, index=True)  # products | orders
    website = Column(String(100), nullable=False)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    last_full_sync_at = Column(DateTime(timezone=True), nullable=True)
    records_count = Column(Integer, default=0)
    # {"added", "updated", "deleted", "duration"}, duration in ms
    last_sync_stats = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
