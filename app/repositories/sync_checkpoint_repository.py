"""
Sync checkpoint repository.

Persists the last successful sync per (resource type, storefront).
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.models import SyncCheckpoint
from app.repositories.base_repository import BaseRepository
from app.services.sync.identity import checkpoint_id

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes come back naive from SQLite; they are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SyncCheckpointRepository(BaseRepository[SyncCheckpoint]):
    """Repository for sync checkpoint operations."""

    model_class = SyncCheckpoint

    def get_checkpoint(self, sync_type: str, website: str) -> Optional[SyncCheckpoint]:
        return self.get(checkpoint_id(sync_type, website))

    def last_sync_at(self, sync_type: str, website: str) -> Optional[datetime]:
        checkpoint = self.get_checkpoint(sync_type, website)
        return as_utc(checkpoint.last_sync_at) if checkpoint else None

    def record_run(
        self,
        sync_type: str,
        website: str,
        synced_at: datetime,
        full_sync: bool,
        records_count: int,
        stats: Dict[str, int]
    ) -> SyncCheckpoint:
        """
        Advance the checkpoint after a successful run.

        ``last_full_sync_at`` only moves on full runs.
        """
        fields = {
            "sync_type": sync_type,
            "website": website,
            "last_sync_at": synced_at,
            "records_count": records_count,
            "last_sync_stats": {
                "added": stats.get("added", 0),
                "updated": stats.get("updated", 0),
                "deleted": stats.get("deleted", 0),
                "duration": stats.get("duration", 0),
            },
        }
        if full_sync:
            fields["last_full_sync_at"] = synced_at
        checkpoint, _ = self.upsert(checkpoint_id(sync_type, website), fields)
        return checkpoint

    def list_checkpoints(self, sync_type: Optional[str] = None) -> List[SyncCheckpoint]:
        """All checkpoints, most recently synced first."""
        query = self.db.query(SyncCheckpoint)
        if sync_type:
            query = query.filter(SyncCheckpoint.sync_type == sync_type)
        checkpoints = query.all()
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            checkpoints,
            key=lambda c: as_utc(c.last_sync_at) or oldest,
            reverse=True,
        )
