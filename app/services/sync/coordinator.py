"""
Sync run orchestration.

A run walks ``Connecting -> Fetching -> Processing -> Finalizing`` and ends
``Complete`` or ``Failed``. Storefronts, products and order batches each
fail in isolation; only an error escaping those guards fails the run.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import StorefrontConfig, settings
from app.repositories.sync_checkpoint_repository import SyncCheckpointRepository
from app.repositories.web_order_repository import WebOrderRepository
from app.repositories.web_product_repository import WebProductRepository
from app.services.inventory.lots import get_available_lots_for_skus
from app.services.sync.aggregates import recompute_web_order_counts
from app.services.sync.catalog import ADDED, CatalogReconciler, needs_variations
from app.services.sync.orders import LotLookup, OrderReconciler
from app.services.sync.progress import (
    STEP_COMPLETE,
    STEP_FAILED,
    STEP_NO_CHANGES,
    ProgressStore,
    SyncProgress,
    SyncState,
    SyncType,
    get_progress_store,
)
from app.services.woocommerce.client import StorefrontFeedClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[StorefrontConfig], StorefrontFeedClient]
# (storefront, raw remote record)
FetchedRecord = Tuple[StorefrontConfig, Dict[str, Any]]


def record_ref(record: Any) -> Any:
    """Remote id for log lines; feeds occasionally send non-objects."""
    return record.get("id") if isinstance(record, dict) else repr(record)


class SyncCoordinator:
    """
    Base class for one sync run of a resource type.

    Subclasses set ``sync_type`` and implement ``fetch`` and ``process``.
    """

    sync_type: SyncType = None
    resource_label = "records"

    def __init__(
        self,
        db: Session,
        progress_store: Optional[ProgressStore] = None,
        storefronts: Optional[List[StorefrontConfig]] = None,
        client_factory: ClientFactory = StorefrontFeedClient,
    ):
        if self.sync_type is None:
            raise NotImplementedError(f"{self.__class__.__name__} must define sync_type")
        self.db = db
        self.store = progress_store or get_progress_store()
        self.storefronts = settings.storefronts if storefronts is None else storefronts
        self.client_factory = client_factory
        self.clients: Dict[str, StorefrontFeedClient] = {}
        self.progress: SyncProgress = SyncProgress(sync_type=self.sync_type)
        self.checkpoints = SyncCheckpointRepository(db)

    # ==================== Progress helpers ====================

    def publish(self):
        self.store.publish(self.progress)

    def set_step(self, step: str, state: Optional[SyncState] = None):
        if state is not None:
            self.progress.state = state
        self.progress.current_step = step
        self.publish()

    def on_page(self, page: int, found: int):
        self.progress.fetching_page = page
        self.progress.fetching_found = found
        self.publish()

    # ==================== Run ====================

    def run(self, full_sync: bool = False, claimed: bool = False) -> SyncProgress:
        """
        Execute one run to completion and return its terminal snapshot.

        ``claimed`` means the caller already reset the slot with
        ``ProgressStore.begin`` (the HTTP trigger does, before enqueueing).

        Raises:
            SyncAlreadyRunningError: when not claimed and a run is in flight
        """
        if claimed:
            self.progress = self.store.get(self.sync_type)
        else:
            self.progress = self.store.begin(self.sync_type, full_sync)

        try:
            self._run(full_sync)
        except Exception as e:
            logger.error(f"{self.sync_type.value} sync failed: {e}", exc_info=True)
            self.db.rollback()
            self.progress.is_syncing = False
            self.progress.fetching_phase = False
            self.progress.finished_at = time.time()
            self.progress.log_error(f"Global error: {e}")
            self.set_step(STEP_FAILED, SyncState.FAILED)
        finally:
            self.store.release(self.progress)
        return self.progress

    def _run(self, full_sync: bool):
        started = time.time()
        run_started_at = datetime.now(timezone.utc)
        logger.info(f"Starting {'full' if full_sync else 'incremental'} {self.sync_type.value} sync")

        self.prepare()

        active: List[StorefrontConfig] = []
        fetched: List[FetchedRecord] = []
        for storefront in self.storefronts:
            if not storefront.is_complete:
                self.progress.log(f"Skipping {storefront.name}: missing credentials")
                logger.warning(f"Skipping storefront {storefront.name}: missing credentials")
                continue
            active.append(storefront)
            fetched.extend(self._fetch_storefront(storefront, full_sync))

        self.progress.fetching_phase = False
        self.progress.total = len(fetched)

        if not fetched:
            self.progress.is_syncing = False
            self.progress.finished_at = time.time()
            self.progress.log(f"No changes detected: all {self.resource_label} are up to date")
            self.set_step(STEP_NO_CHANGES, SyncState.COMPLETE)
            logger.info(f"{self.sync_type.value} sync: no changes")
            return

        self.set_step(f"Processing {len(fetched)} {self.resource_label}...", SyncState.PROCESSING)
        self.process(fetched)

        self.set_step("Updating product order counts...", SyncState.FINALIZING)
        try:
            recompute_web_order_counts(self.db)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Order count update failed: {e}", exc_info=True)
            self.progress.log_error(f"Order count update failed: {e}")

        duration_ms = int((time.time() - started) * 1000)
        stats = self.progress.stats
        for storefront in active:
            self.checkpoints.record_run(
                sync_type=self.sync_type.value,
                website=storefront.name,
                synced_at=run_started_at,
                full_sync=full_sync,
                records_count=self.count_records(storefront.name),
                stats={"added": stats.added, "updated": stats.updated, "deleted": 0, "duration": duration_ms},
            )
        self.db.commit()

        seconds = max(time.time() - started, 0.001)
        self.progress.is_syncing = False
        self.progress.finished_at = time.time()
        self.progress.log(
            f"Sync complete: {stats.added} added, {stats.updated} updated, {stats.skipped} skipped"
        )
        self.progress.log(
            f"Duration: {seconds:.1f}s ({len(fetched) / seconds:.0f} {self.resource_label}/sec)"
        )
        self.set_step(STEP_COMPLETE, SyncState.COMPLETE)
        logger.info(
            f"{self.sync_type.value} sync complete in {seconds:.1f}s: "
            f"{stats.added} added, {stats.updated} updated, {stats.skipped} skipped"
        )

    def _fetch_storefront(self, storefront: StorefrontConfig, full_sync: bool) -> List[FetchedRecord]:
        """Fetch one storefront; any failure is logged and yields nothing."""
        cursor = None if full_sync else self.checkpoints.last_sync_at(self.sync_type.value, storefront.name)
        if cursor:
            self.progress.log(f"{storefront.name}: incremental sync since {cursor.isoformat()}")
            step = f"Fetching {self.resource_label} changed in {storefront.name} since {cursor:%Y-%m-%d}..."
        else:
            self.progress.log(f"{storefront.name}: full sync")
            step = f"Fetching all {self.resource_label} from {storefront.name}..."

        self.progress.fetching_phase = True
        self.progress.fetching_site = storefront.name
        self.progress.fetching_page = 0
        self.progress.fetching_found = 0
        self.set_step(step, SyncState.FETCHING)

        try:
            client = self.client_factory(storefront)
            self.clients[storefront.name] = client
            records = self.fetch(client, cursor)
        except Exception as e:
            logger.warning(f"Fetching {self.resource_label} from {storefront.name} failed: {e}")
            self.progress.log_error(f"{storefront.name}: {e}")
            return []
        finally:
            self.progress.fetching_phase = False

        label = "changed" if cursor else "total"
        self.progress.log(f"{storefront.name}: {len(records)} {label} {self.resource_label}")
        self.publish()
        return [(storefront, record) for record in records]

    # ==================== Subclass hooks ====================

    def prepare(self):
        """Load whatever the run needs before fetching."""

    def fetch(self, client: StorefrontFeedClient, modified_after: Optional[datetime]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def process(self, fetched: List[FetchedRecord]):
        raise NotImplementedError

    def count_records(self, website: str) -> int:
        raise NotImplementedError


class ProductSyncCoordinator(SyncCoordinator):
    """Catalog sync: one product at a time."""

    sync_type = SyncType.PRODUCTS
    resource_label = "products"

    def fetch(self, client: StorefrontFeedClient, modified_after: Optional[datetime]) -> List[Dict[str, Any]]:
        return client.fetch_products(modified_after, on_page=self.on_page)

    def process(self, fetched: List[FetchedRecord]):
        reconciler = CatalogReconciler(self.db)
        stats = self.progress.stats
        self.progress.current_step = "Syncing product details and variations..."

        for position, (storefront, product) in enumerate(fetched, start=1):
            self.progress.progress = position
            self.progress.current_site = storefront.name
            try:
                self.progress.current_item = {
                    "currentProductName": str(product.get("name") or "")[:50] or f"Product {product.get('id')}",
                }
                variations = None
                if needs_variations(product):
                    variations = self.clients[storefront.name].fetch_variations(product["id"])
                outcome = reconciler.reconcile(storefront.name, product, variations)
                self.db.commit()
                if outcome == ADDED:
                    stats.added += 1
                else:
                    stats.updated += 1
            except Exception as e:
                self.db.rollback()
                stats.skipped += 1
                ref = record_ref(product)
                logger.error(f"Product {ref} ({storefront.name}) failed: {e}", exc_info=True)
                self.progress.log_error(f"Product {ref} ({storefront.name}): {e}")
            self.publish()

    def count_records(self, website: str) -> int:
        return WebProductRepository(self.db).count(website=website)


class OrderSyncCoordinator(SyncCoordinator):
    """Order sync: fixed-size batches, one lot lookup per batch."""

    sync_type = SyncType.ORDERS
    resource_label = "orders"

    def __init__(self, db: Session, lot_lookup: LotLookup = get_available_lots_for_skus, **kwargs):
        super().__init__(db, **kwargs)
        self.lot_lookup = lot_lookup
        self.batch_size = settings.order_batch_size
        self.product_index = {}

    def prepare(self):
        self.set_step("Loading web products...")
        self.product_index = WebProductRepository(self.db).load_index()
        self.progress.log(f"Loaded {len(self.product_index)} web products")

    def fetch(self, client: StorefrontFeedClient, modified_after: Optional[datetime]) -> List[Dict[str, Any]]:
        return client.fetch_orders(modified_after, on_page=self.on_page)

    def process(self, fetched: List[FetchedRecord]):
        reconciler = OrderReconciler(self.db, self.product_index, self.lot_lookup)
        stats = self.progress.stats
        self.progress.log(f"Processing {len(fetched)} orders in batches of {self.batch_size}")

        for batch_start in range(0, len(fetched), self.batch_size):
            batch = fetched[batch_start:batch_start + self.batch_size]
            batch_number = batch_start // self.batch_size + 1
            self.progress.progress = batch_start + len(batch)
            self.set_step(f"Processing batch {batch_number}...")

            try:
                self._describe_order(*batch[-1])
                added, updated = reconciler.upsert_batch(
                    [(storefront.name, order) for storefront, order in batch]
                )
                self.db.commit()
                stats.added += added
                stats.updated += updated
            except Exception as e:
                self.db.rollback()
                stats.skipped += len(batch)
                logger.error(f"Order batch {batch_number} failed: {e}", exc_info=True)
                self.progress.log_error(f"Batch {batch_number} ({len(batch)} orders): {e}")
            self.publish()

    def _describe_order(self, storefront: StorefrontConfig, order: Dict[str, Any]):
        billing = order.get("billing") or {}
        try:
            total = float(order.get("total") or 0)
        except (TypeError, ValueError):
            total = 0.0
        self.progress.current_site = storefront.name
        self.progress.current_item = {
            "currentOrderNumber": str(order.get("number") or order.get("id")),
            "currentOrderDate": order.get("date_created") or "",
            "currentOrderTotal": total,
            "currentOrderCustomer": f"{billing.get('first_name') or ''} {billing.get('last_name') or ''}".strip(),
        }

    def count_records(self, website: str) -> int:
        return WebOrderRepository(self.db).count(website=website)


COORDINATORS = {
    SyncType.PRODUCTS: ProductSyncCoordinator,
    SyncType.ORDERS: OrderSyncCoordinator,
}
