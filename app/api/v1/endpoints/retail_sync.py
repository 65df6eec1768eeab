"""
Storefront sync endpoints.

Triggers and progress polling for the web product and web order syncs,
sync metadata, and the operator actions on synced records.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.repositories.sync_checkpoint_repository import SyncCheckpointRepository
from app.schemas.sync_schemas import (
    LinkSkuRequest,
    SyncCheckpointOut,
    SyncMetaResponse,
    SyncMetaSummary,
    SyncMetaWebsite,
    SyncStartResponse,
    UpdateLotRequest,
)
from app.services.sync.linking import (
    RecordNotFoundError,
    UnlinkedLineError,
    get_link,
    link_sku,
    update_line_lot,
)
from app.services.sync.progress import (
    STEP_FAILED,
    SyncAlreadyRunningError,
    SyncState,
    SyncType,
    get_progress_store,
)
from app.tasks.sync_tasks import SYNC_TASKS, run_sync_in_process

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== Sync triggers ====================

def start_sync(sync_type: SyncType, full: bool, background_tasks: BackgroundTasks) -> SyncStartResponse:
    """
    Claim the slot for ``sync_type`` then start the run.

    With the in-memory progress store the run stays in this process so the
    snapshot it publishes is the one clients poll; with redis it goes to a
    Celery worker.
    """
    store = get_progress_store()
    try:
        snapshot = store.begin(sync_type, full)
    except SyncAlreadyRunningError:
        raise HTTPException(status_code=409, detail="Sync already in progress")

    mode = "full" if full else "incremental"
    if settings.progress_backend == "memory":
        background_tasks.add_task(run_sync_in_process, sync_type, full)
        logger.info(f"{sync_type.value} sync started in process ({mode})")
        return SyncStartResponse(mode=mode)

    try:
        SYNC_TASKS[sync_type].delay(full_sync=full, claimed=True)
    except Exception as e:
        logger.error(f"Could not enqueue {sync_type.value} sync: {e}", exc_info=True)
        snapshot.is_syncing = False
        snapshot.state = SyncState.FAILED
        snapshot.current_step = STEP_FAILED
        snapshot.finished_at = time.time()
        snapshot.log_error(f"Could not start sync: {e}")
        store.publish(snapshot)
        store.release(snapshot)
        raise HTTPException(status_code=503, detail="Sync worker unavailable")

    logger.info(f"{sync_type.value} sync started ({mode})")
    return SyncStartResponse(mode=mode)


@router.post("/web-products/sync", response_model=SyncStartResponse)
def trigger_web_product_sync(
    background_tasks: BackgroundTasks,
    full: bool = Query(False, description="Ignore checkpoints and fetch everything")
):
    return start_sync(SyncType.PRODUCTS, full, background_tasks)


@router.get("/web-products/sync")
def web_product_sync_progress():
    return get_progress_store().get(SyncType.PRODUCTS).to_dict()


@router.post("/web-orders/sync", response_model=SyncStartResponse)
def trigger_web_order_sync(
    background_tasks: BackgroundTasks,
    full: bool = Query(False, description="Ignore checkpoints and fetch everything")
):
    return start_sync(SyncType.ORDERS, full, background_tasks)


@router.get("/web-orders/sync")
def web_order_sync_progress():
    return get_progress_store().get(SyncType.ORDERS).to_dict()


@router.get("/sync-meta", response_model=SyncMetaResponse)
def list_sync_meta(
    type: Optional[SyncType] = Query(None, description="products or orders"),
    db: Session = Depends(get_db)
):
    checkpoints = SyncCheckpointRepository(db).list_checkpoints(type.value if type else None)
    return SyncMetaResponse(
        data=[SyncCheckpointOut.model_validate(c) for c in checkpoints],
        summary=SyncMetaSummary(
            totalRecords=sum(c.records_count or 0 for c in checkpoints),
            lastSync=checkpoints[0].last_sync_at if checkpoints else None,
            websites=[
                SyncMetaWebsite(
                    website=c.website,
                    type=c.sync_type,
                    lastSyncAt=c.last_sync_at,
                    lastFullSyncAt=c.last_full_sync_at,
                    recordsCount=c.records_count or 0,
                    lastStats=c.last_sync_stats,
                )
                for c in checkpoints
            ],
        ),
    )


# ==================== Operator actions ====================

@router.get("/web-products/{product_id}/link-sku")
def read_sku_link(
    product_id: str,
    variationId: Optional[int] = Query(None),
    db: Session = Depends(get_db)
):
    try:
        return get_link(db, product_id, variationId).to_dict()
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/web-products/{product_id}/link-sku")
def update_sku_link(product_id: str, payload: LinkSkuRequest, db: Session = Depends(get_db)):
    try:
        result = link_sku(db, product_id, payload.skuId, payload.variationId)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    db.commit()
    return result.to_dict()


@router.patch("/web-orders/{order_id}/line-items/{line_item_id}/lot")
def update_line_item_lot(
    order_id: str,
    line_item_id: str,
    payload: UpdateLotRequest,
    db: Session = Depends(get_db)
):
    try:
        result = update_line_lot(db, order_id, line_item_id, payload.lotNumber)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnlinkedLineError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return result
