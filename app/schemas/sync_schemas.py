"""
Schemas for storefront sync endpoints
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class SyncStartResponse(BaseModel):
    message: str = "Sync started"
    mode: str = Field(..., description="full or incremental")


class SyncCheckpointOut(BaseModel):
    """One row of the sync metadata listing"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    sync_type: str
    website: str
    last_sync_at: Optional[datetime] = None
    last_full_sync_at: Optional[datetime] = None
    records_count: int = 0
    last_sync_stats: Optional[Dict[str, Any]] = None


class SyncMetaWebsite(BaseModel):
    """Per-checkpoint line of the summary"""
    website: str
    type: str
    lastSyncAt: Optional[datetime] = None
    lastFullSyncAt: Optional[datetime] = None
    recordsCount: int = 0
    lastStats: Optional[Dict[str, Any]] = None


class SyncMetaSummary(BaseModel):
    totalRecords: int = 0
    lastSync: Optional[datetime] = None
    websites: List[SyncMetaWebsite] = []


class SyncMetaResponse(BaseModel):
    success: bool = True
    data: List[SyncCheckpointOut] = []
    summary: SyncMetaSummary


class LinkSkuRequest(BaseModel):
    skuId: Optional[str] = Field(None, description="Internal SKU id; empty or null clears the link")
    variationId: Optional[int] = None


class UpdateLotRequest(BaseModel):
    lotNumber: Optional[str] = None
