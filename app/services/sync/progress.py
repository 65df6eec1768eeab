"""
Live progress of sync runs.

One snapshot per sync type lives in a ``ProgressStore``. The coordinator
owns a private working copy for the duration of a run and publishes it
after every mutation; readers always get an independent copy.
"""
import copy
import enum
import json
import logging
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import LockError

from app.core.config import settings

logger = logging.getLogger(__name__)

STEP_CONNECTING = "Connecting to databases..."
STEP_COMPLETE = "Complete"
STEP_NO_CHANGES = "Complete - No changes detected"
STEP_FAILED = "Failed"
ERROR_PREFIX = "ERROR"


class SyncType(str, enum.Enum):
    PRODUCTS = "products"
    ORDERS = "orders"


class SyncState(str, enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    FETCHING = "fetching"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATES = (SyncState.COMPLETE, SyncState.FAILED)


class SyncAlreadyRunningError(Exception):
    def __init__(self, sync_type: SyncType):
        self.sync_type = sync_type
        super().__init__(f"{sync_type.value} sync already in progress")


@dataclass
class SyncStats:
    added: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass
class SyncProgress:
    sync_type: SyncType
    is_syncing: bool = False
    state: SyncState = SyncState.IDLE
    current_step: str = ""
    progress: int = 0
    total: int = 0
    logs: List[str] = field(default_factory=list)
    start_time: Optional[float] = None
    finished_at: Optional[float] = None
    is_full_sync: bool = False
    current_site: str = ""
    # camelCase fields describing the record being processed, merged into to_dict()
    current_item: Dict[str, Any] = field(default_factory=dict)
    fetching_phase: bool = False
    fetching_page: int = 0
    fetching_found: int = 0
    fetching_site: str = ""
    stats: SyncStats = field(default_factory=SyncStats)
    # owner token of the single-flight claim
    run_id: Optional[str] = None

    @classmethod
    def started(cls, sync_type: SyncType, is_full_sync: bool) -> "SyncProgress":
        return cls(
            sync_type=sync_type,
            is_syncing=True,
            state=SyncState.CONNECTING,
            current_step=STEP_CONNECTING,
            start_time=time.time(),
            is_full_sync=is_full_sync,
            run_id=uuid.uuid4().hex,
        )

    def log(self, message: str):
        self.logs.append(message)
        overflow = len(self.logs) - settings.sync_log_limit
        if overflow > 0:
            del self.logs[:overflow]

    def log_error(self, message: str):
        self.log(f"{ERROR_PREFIX} {message}")

    @property
    def error_logs(self) -> List[str]:
        return [line for line in self.logs if line.startswith(ERROR_PREFIX)]

    def to_dict(self) -> Dict[str, Any]:
        """Polling payload, camelCase for the UI."""
        payload = {
            "syncType": self.sync_type.value,
            "isSyncing": self.is_syncing,
            "state": self.state.value,
            "currentStep": self.current_step,
            "progress": self.progress,
            "total": self.total,
            "logs": list(self.logs),
            "startTime": self.start_time,
            "finishedAt": self.finished_at,
            "isFullSync": self.is_full_sync,
            "currentSite": self.current_site,
            "fetchingPhase": self.fetching_phase,
            "fetchingPage": self.fetching_page,
            "fetchingFound": self.fetching_found,
            "fetchingSite": self.fetching_site,
            "stats": asdict(self.stats),
        }
        payload.update(self.current_item)
        payload["debug"] = {
            "logsCount": len(self.logs),
            "lastLog": self.logs[-1] if self.logs else None,
        }
        return payload

    def to_json(self) -> str:
        data = asdict(self)
        data["sync_type"] = self.sync_type.value
        data["state"] = self.state.value
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "SyncProgress":
        data = json.loads(raw)
        data["sync_type"] = SyncType(data["sync_type"])
        data["state"] = SyncState(data["state"])
        data["stats"] = SyncStats(**data.get("stats", {}))
        return cls(**data)


class ProgressStore:
    """Single-slot snapshot store, one slot per sync type."""

    def get(self, sync_type: SyncType) -> SyncProgress:
        raise NotImplementedError

    def begin(self, sync_type: SyncType, is_full_sync: bool) -> SyncProgress:
        """
        Claim the slot for a new run and reset it to a fresh snapshot.

        Raises:
            SyncAlreadyRunningError: a run of this type is in flight; the
                existing snapshot is left untouched.
        """
        raise NotImplementedError

    def publish(self, snapshot: SyncProgress):
        raise NotImplementedError

    def release(self, snapshot: SyncProgress):
        """Free the claim held by ``snapshot`` once it has published a terminal state."""
        raise NotImplementedError


class InMemoryProgressStore(ProgressStore):
    """Process-local store guarded by a lock. Single-instance deployments only."""

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[SyncType, SyncProgress] = {}

    def get(self, sync_type: SyncType) -> SyncProgress:
        with self._lock:
            snapshot = self._slots.get(sync_type) or SyncProgress(sync_type=sync_type)
            return copy.deepcopy(snapshot)

    def begin(self, sync_type: SyncType, is_full_sync: bool) -> SyncProgress:
        with self._lock:
            current = self._slots.get(sync_type)
            if current is not None and current.is_syncing:
                raise SyncAlreadyRunningError(sync_type)
            fresh = SyncProgress.started(sync_type, is_full_sync)
            self._slots[sync_type] = fresh
            return copy.deepcopy(fresh)

    def publish(self, snapshot: SyncProgress):
        with self._lock:
            self._slots[snapshot.sync_type] = copy.deepcopy(snapshot)

    def release(self, snapshot: SyncProgress):
        # is_syncing on the published snapshot is the claim
        pass


class RedisProgressStore(ProgressStore):
    """
    Store shared between the API process and Celery workers.

    The claim is a redis lock holding the run id, with a timeout equal to the
    run time limit so a worker killed mid-run cannot block its sync type
    forever. Only the run that owns the lock can release it.
    """

    key_prefix = "retail-sync"

    def __init__(self, client: redis.Redis, lock_ttl: Optional[int] = None):
        self.client = client
        self.lock_ttl = lock_ttl or settings.sync_time_limit_seconds

    def _progress_key(self, sync_type: SyncType) -> str:
        return f"{self.key_prefix}:progress:{sync_type.value}"

    def _lock_key(self, sync_type: SyncType) -> str:
        return f"{self.key_prefix}:lock:{sync_type.value}"

    def get(self, sync_type: SyncType) -> SyncProgress:
        raw = self.client.get(self._progress_key(sync_type))
        if not raw:
            return SyncProgress(sync_type=sync_type)
        return SyncProgress.from_json(raw)

    def _lock(self, sync_type: SyncType):
        # the API process claims, the worker releases
        return self.client.lock(self._lock_key(sync_type), timeout=self.lock_ttl, thread_local=False)

    def begin(self, sync_type: SyncType, is_full_sync: bool) -> SyncProgress:
        fresh = SyncProgress.started(sync_type, is_full_sync)
        if not self._lock(sync_type).acquire(blocking=False, token=fresh.run_id):
            raise SyncAlreadyRunningError(sync_type)
        self.publish(fresh)
        return fresh

    def publish(self, snapshot: SyncProgress):
        self.client.set(self._progress_key(snapshot.sync_type), snapshot.to_json())

    def release(self, snapshot: SyncProgress):
        lock = self._lock(snapshot.sync_type)
        lock.local.token = snapshot.run_id
        try:
            lock.release()
        except LockError:
            logger.warning(
                f"{snapshot.sync_type.value} run {snapshot.run_id} no longer owns the sync lock"
            )


_store: Optional[ProgressStore] = None
_store_lock = threading.Lock()


def get_progress_store() -> ProgressStore:
    """Process-wide store for the configured backend."""
    global _store
    with _store_lock:
        if _store is None:
            if settings.progress_backend == "redis":
                client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
                _store = RedisProgressStore(client)
                logger.info("Sync progress stored in redis")
            else:
                _store = InMemoryProgressStore()
        return _store


def set_progress_store(store: Optional[ProgressStore]):
    """Swap the process-wide store (tests, alternative backends)."""
    global _store
    with _store_lock:
        _store = store
