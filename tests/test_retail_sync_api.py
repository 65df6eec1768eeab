"""HTTP endpoints under /retail."""
from unittest.mock import MagicMock, patch

from app.core.config import settings
from app.models import InventoryLotEntry, LotSource, SyncCheckpoint, WebOrder, WebOrderLineItem, WebProduct
from app.services.sync.identity import RefId, Resolved
from app.services.sync.linking import load_web_product
from app.services.sync.progress import STEP_FAILED, STEP_NO_CHANGES, SyncType

from conftest import utc


# ==================== Sync triggers ====================

def test_trigger_runs_sync_and_reports_mode(client, progress_store):
    response = client.post("/retail/web-products/sync?full=true")

    assert response.status_code == 200
    assert response.json() == {"message": "Sync started", "mode": "full"}
    # the background run finishes before TestClient returns
    snapshot = client.get("/retail/web-products/sync").json()
    assert snapshot["isSyncing"] is False
    assert snapshot["currentStep"] == STEP_NO_CHANGES
    assert snapshot["isFullSync"] is True
    assert snapshot["debug"]["logsCount"] == len(snapshot["logs"])
    assert snapshot["debug"]["lastLog"] == snapshot["logs"][-1]


def test_incremental_is_the_default_mode(client):
    assert client.post("/retail/web-orders/sync").json()["mode"] == "incremental"


def test_trigger_conflicts_while_running(client, progress_store):
    running = progress_store.begin(SyncType.ORDERS, is_full_sync=False)
    running.progress = 120
    running.total = 900
    running.log("Processing batch 1...")
    progress_store.publish(running)

    response = client.post("/retail/web-orders/sync?full=true")

    assert response.status_code == 409
    assert response.json() == {"detail": "Sync already in progress"}
    snapshot = client.get("/retail/web-orders/sync").json()
    assert snapshot["isSyncing"] is True
    assert snapshot["isFullSync"] is False
    assert (snapshot["progress"], snapshot["total"]) == (120, 900)
    assert snapshot["logs"] == ["Processing batch 1..."]


def test_products_and_orders_run_independently(client, progress_store):
    progress_store.begin(SyncType.ORDERS, is_full_sync=False)
    assert client.post("/retail/web-products/sync").status_code == 200


def test_enqueue_failure_marks_run_failed(client, progress_store, monkeypatch):
    monkeypatch.setattr(settings, "progress_backend", "redis")
    unreachable = MagicMock()
    unreachable.delay.side_effect = ConnectionError("broker down")
    with patch.dict("app.tasks.sync_tasks.SYNC_TASKS", {SyncType.PRODUCTS: unreachable}):
        response = client.post("/retail/web-products/sync")

    assert response.status_code == 503
    snapshot = client.get("/retail/web-products/sync").json()
    assert snapshot["currentStep"] == STEP_FAILED
    assert snapshot["isSyncing"] is False
    assert snapshot["logs"][-1].startswith("ERROR")
    # a later trigger may claim the slot again
    progress_store.begin(SyncType.PRODUCTS, is_full_sync=False)


def test_single_process_run_never_touches_the_broker(client, progress_store):
    broker = MagicMock()
    with patch.dict("app.tasks.sync_tasks.SYNC_TASKS", {SyncType.ORDERS: broker}):
        first = client.post("/retail/web-orders/sync")
        snapshot = client.get("/retail/web-orders/sync").json()
        second = client.post("/retail/web-orders/sync?full=true")

    assert first.status_code == 200
    assert snapshot["isSyncing"] is False
    assert snapshot["currentStep"] == STEP_NO_CHANGES
    assert second.status_code == 200
    assert second.json()["mode"] == "full"
    broker.delay.assert_not_called()
    assert progress_store.get(SyncType.ORDERS).is_full_sync is True


# ==================== Sync metadata ====================

def seed_checkpoints(db):
    db.add_all([
        SyncCheckpoint(id="web-products-Alpha", sync_type="products", website="Alpha",
                       last_sync_at=utc(2024, 5, 1), records_count=10,
                       last_sync_stats={"added": 1, "updated": 2, "deleted": 0, "duration": 900}),
        SyncCheckpoint(id="web-orders-Alpha", sync_type="orders", website="Alpha",
                       last_sync_at=utc(2024, 5, 3), records_count=40),
        SyncCheckpoint(id="web-products-Beta", sync_type="products", website="Beta",
                       last_sync_at=utc(2024, 5, 2), records_count=5),
    ])
    db.commit()


def test_sync_meta_lists_newest_first(client, db):
    seed_checkpoints(db)

    body = client.get("/retail/sync-meta").json()

    assert body["success"] is True
    assert [c["id"] for c in body["data"]] == ["web-orders-Alpha", "web-products-Beta", "web-products-Alpha"]
    assert body["summary"]["totalRecords"] == 55
    assert body["summary"]["lastSync"].startswith("2024-05-03")
    websites = body["summary"]["websites"]
    assert [(w["website"], w["type"]) for w in websites] == [
        ("Alpha", "orders"), ("Beta", "products"), ("Alpha", "products"),
    ]
    assert websites[2] == {
        "website": "Alpha",
        "type": "products",
        "lastSyncAt": websites[2]["lastSyncAt"],
        "lastFullSyncAt": None,
        "recordsCount": 10,
        "lastStats": {"added": 1, "updated": 2, "deleted": 0, "duration": 900},
    }
    assert websites[2]["lastSyncAt"].startswith("2024-05-01")
    assert websites[0]["lastStats"] is None


def test_sync_meta_filters_by_type(client, db):
    seed_checkpoints(db)

    body = client.get("/retail/sync-meta?type=products").json()

    assert [c["id"] for c in body["data"]] == ["web-products-Beta", "web-products-Alpha"]
    assert body["data"][1]["last_sync_stats"]["duration"] == 900
    assert body["summary"]["totalRecords"] == 15


def test_sync_meta_rejects_unknown_type(client):
    assert client.get("/retail/sync-meta?type=customers").status_code == 422


def test_sync_meta_empty(client):
    body = client.get("/retail/sync-meta").json()
    assert body["data"] == []
    assert body["summary"] == {"totalRecords": 0, "lastSync": None, "websites": []}


# ==================== Operator actions ====================

def seed_catalog(db):
    db.add(WebProduct(
        id="TEA-01", name="Tea", web_id=1, website="Alpha", linked_sku_id=None,
        variations=[{"id": 11, "name": "Small", "linked_sku_id": None}],
    ))
    db.add_all([
        InventoryLotEntry(sku_id="SKU1", lot_number="L1", quantity=5, cost=5,
                          source=LotSource.PURCHASE_ORDER, occurred_at=utc(2024, 1, 1)),
        InventoryLotEntry(sku_id="SKU1", lot_number="L2", quantity=5, cost=7,
                          source=LotSource.PURCHASE_ORDER, occurred_at=utc(2024, 2, 1)),
    ])
    order = WebOrder(id="WC-Alpha-500", website="Alpha", web_id=500, status="processing")
    order.line_items = [
        WebOrderLineItem(id="WC-Alpha-500-1", position=0, web_line_id=1, product_id=1, variation_id=None),
        WebOrderLineItem(id="WC-Alpha-500-2", position=1, web_line_id=2, product_id=1, variation_id=11),
    ]
    other = WebOrder(id="WC-Alpha-501", website="Alpha", web_id=501, status="completed")
    other.line_items = [
        WebOrderLineItem(id="WC-Alpha-501-3", position=0, web_line_id=3, product_id=1, variation_id=None,
                         linked_sku_id="SKU1", lot_number=None),
    ]
    db.add_all([order, other])
    db.commit()


def test_link_product_relinks_its_order_lines(client, db):
    seed_catalog(db)

    response = client.post("/retail/web-products/TEA-01/link-sku", json={"skuId": "SKU1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["linkedSkuId"] == "SKU1"
    assert body["suggestedLot"]["lotNumber"] == "L1"
    assert [lot["lotNumber"] for lot in body["availableLots"]] == ["L1", "L2"]
    assert body["ordersUpdated"] == 2

    db.expire_all()
    assert db.get(WebProduct, "TEA-01").linked_sku_id == "SKU1"
    line = db.get(WebOrderLineItem, "WC-Alpha-500-1")
    assert (line.linked_sku_id, line.lot_number, line.cost) == ("SKU1", "L1", 5)
    # already linked, lot filled in
    assert db.get(WebOrderLineItem, "WC-Alpha-501-3").lot_number == "L1"
    # the variation line is not the product's
    assert db.get(WebOrderLineItem, "WC-Alpha-500-2").linked_sku_id is None


def test_link_variation(client, db):
    seed_catalog(db)

    body = client.post(
        "/retail/web-products/TEA-01/link-sku", json={"skuId": "SKU1", "variationId": 11}
    ).json()

    assert body["variationId"] == 11
    assert body["ordersUpdated"] == 1
    db.expire_all()
    product = db.get(WebProduct, "TEA-01")
    assert product.linked_sku_id is None
    assert product.variations[0]["linked_sku_id"] == "SKU1"
    assert db.get(WebOrderLineItem, "WC-Alpha-500-2").lot_number == "L1"

    current = client.get("/retail/web-products/TEA-01/link-sku?variationId=11").json()
    assert current["linkedSkuId"] == "SKU1"
    assert current["suggestedLot"]["lotNumber"] == "L1"


def test_unlink_leaves_orders_alone(client, db):
    seed_catalog(db)
    client.post("/retail/web-products/TEA-01/link-sku", json={"skuId": "SKU1"})

    body = client.post("/retail/web-products/TEA-01/link-sku", json={"skuId": None}).json()

    assert body["linkedSkuId"] is None
    assert body["ordersUpdated"] == 0
    db.expire_all()
    assert db.get(WebProduct, "TEA-01").linked_sku_id is None
    assert db.get(WebOrderLineItem, "WC-Alpha-500-1").linked_sku_id == "SKU1"


def test_link_unknown_product(client, db):
    assert client.post("/retail/web-products/NOPE/link-sku", json={"skuId": "SKU1"}).status_code == 404
    seed_catalog(db)
    response = client.post("/retail/web-products/TEA-01/link-sku", json={"skuId": "SKU1", "variationId": 99})
    assert response.status_code == 404


def test_override_line_lot(client, db):
    seed_catalog(db)
    client.post("/retail/web-products/TEA-01/link-sku", json={"skuId": "SKU1"})

    response = client.patch(
        "/retail/web-orders/WC-Alpha-500/line-items/WC-Alpha-500-1/lot", json={"lotNumber": "L2"}
    )

    assert response.status_code == 200
    assert response.json()["cost"] == 7
    db.expire_all()
    line = db.get(WebOrderLineItem, "WC-Alpha-500-1")
    assert (line.lot_number, line.cost) == ("L2", 7)


def test_override_lot_falls_back_to_product_link(client, db):
    seed_catalog(db)
    product = db.get(WebProduct, "TEA-01")
    product.variations = [{"id": 11, "name": "Small", "linked_sku_id": "SKU1"}]
    line = db.get(WebOrderLineItem, "WC-Alpha-500-2")
    line.web_product_id = "TEA-01"
    db.commit()

    # remote line id works too
    response = client.patch("/retail/web-orders/WC-Alpha-500/line-items/2/lot", json={"lotNumber": "L1"})

    assert response.status_code == 200
    assert response.json()["linkedSkuId"] == "SKU1"


def test_override_lot_on_unlinked_line(client, db):
    seed_catalog(db)
    response = client.patch(
        "/retail/web-orders/WC-Alpha-500/line-items/WC-Alpha-500-1/lot", json={"lotNumber": "L1"}
    )
    assert response.status_code == 400


def test_override_lot_unknown_line(client, db):
    seed_catalog(db)
    response = client.patch("/retail/web-orders/WC-Alpha-500/line-items/404/lot", json={"lotNumber": "L1"})
    assert response.status_code == 404


def test_web_product_reference_loads_only_when_unresolved(db):
    seed_catalog(db)
    product = db.get(WebProduct, "TEA-01")

    assert load_web_product(db, RefId("TEA-01")) is product
    assert load_web_product(db, RefId("NOPE")) is None
    with patch("app.services.sync.linking.WebProductRepository") as repository:
        assert load_web_product(db, Resolved("TEA-01", product)) is product
    repository.assert_not_called()
