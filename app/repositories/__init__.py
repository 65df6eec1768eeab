"""
Repository layer for database operations.

This package provides specialized repositories for the synced tables:
- WebProductRepository: Web product operations
- SkuRepository: Legacy SKU mirror operations
- WebOrderRepository: Web order and line item operations
- SyncCheckpointRepository: Per-storefront sync checkpoints

All repositories inherit from BaseRepository for id-keyed operations.
"""
from app.repositories.base_repository import BaseRepository
from app.repositories.web_product_repository import SkuRepository, WebProductRepository, WebProductSnapshot
from app.repositories.web_order_repository import WebOrderRepository
from app.repositories.sync_checkpoint_repository import SyncCheckpointRepository

__all__ = [
    'BaseRepository',
    'WebProductRepository',
    'WebProductSnapshot',
    'SkuRepository',
    'WebOrderRepository',
    'SyncCheckpointRepository',
]
