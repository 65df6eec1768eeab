"""Catalog reconciliation into web products and the legacy SKU mirror."""
from app.models import Sku, WebProduct
from app.services.sync.catalog import ADDED, UPDATED, CatalogReconciler, merge_variations, needs_variations
from app.services.sync.identity import web_order_id, web_product_id

from conftest import remote_product, remote_variation


def test_web_product_identity():
    assert web_product_id("Alpha", {"id": 7, "sku": "  TEA-01 "}) == "TEA-01"
    assert web_product_id("Alpha", {"id": 7, "sku": ""}) == "WC-Alpha-7"
    assert web_product_id("Alpha", {"id": 7, "sku": None}) == "WC-Alpha-7"
    assert web_order_id("Beta", 99) == "WC-Beta-99"


def test_needs_variations():
    assert needs_variations({"type": "variable", "variations": [11]})
    assert not needs_variations({"type": "variable", "variations": []})
    assert not needs_variations({"type": "simple", "variations": [11]})


def test_new_product_is_added_with_mirror(db):
    outcome = CatalogReconciler(db).reconcile("Alpha", remote_product(1, sku="TEA-01"))
    db.commit()

    assert outcome == ADDED
    product = db.get(WebProduct, "TEA-01")
    assert product.web_id == 1
    assert product.website == "Alpha"
    assert product.price == 10.0
    assert product.sale_price == 10.0
    assert product.image == "https://img.example.com/1.jpg"
    assert product.web_categories == [{"id": 3, "name": "Tea", "slug": "tea"}]

    mirror = db.get(Sku, "TEA-01")
    assert mirror.is_web_product is True
    assert mirror.category == "Alpha"
    assert mirror.regular_price == 12.0


def test_resync_is_an_update(db):
    reconciler = CatalogReconciler(db)
    reconciler.reconcile("Alpha", remote_product(1))
    db.commit()
    outcome = reconciler.reconcile("Alpha", remote_product(1, name="Renamed"))
    db.commit()

    assert outcome == UPDATED
    assert db.query(WebProduct).count() == 1
    assert db.get(WebProduct, "WC-Alpha-1").name == "Renamed"


def test_links_survive_resync(db):
    reconciler = CatalogReconciler(db)
    product = remote_product(1, sku="TEA-01", type="variable", variations=[11])
    reconciler.reconcile("Alpha", product, [remote_variation(11, "Small")])
    db.commit()

    stored = db.get(WebProduct, "TEA-01")
    stored.linked_sku_id = "X"
    variations = [dict(v) for v in stored.variations]
    variations[0]["linked_sku_id"] = "Y"
    stored.variations = variations
    db.commit()

    reconciler.reconcile("Alpha", product, [remote_variation(11, "Small", price="8.50")])
    db.commit()
    db.expire_all()

    stored = db.get(WebProduct, "TEA-01")
    assert stored.linked_sku_id == "X"
    assert stored.variations[0]["linked_sku_id"] == "Y"
    assert stored.variations[0]["price"] == 8.5


def test_variation_merge_keeps_absent_variations(db):
    reconciler = CatalogReconciler(db)
    product = remote_product(1, type="variable", variations=[11, 12])
    reconciler.reconcile("Alpha", product, [remote_variation(11, "Small"), remote_variation(12, "Medium")])
    db.commit()

    reconciler.reconcile(
        "Alpha",
        remote_product(1, type="variable", variations=[11, 13]),
        [remote_variation(11, "Small", price="9.99"), remote_variation(13, "Large")],
    )
    db.commit()
    db.expire_all()

    variations = db.get(WebProduct, "WC-Alpha-1").variations
    assert [v["id"] for v in variations] == [11, 12, 13]
    assert variations[0]["price"] == 9.99
    assert variations[1]["name"] == "Medium"
    assert variations[2]["name"] == "Large"


def test_merge_variations_matches_string_and_int_ids():
    existing = [{"id": "11", "name": "Small", "linked_sku_id": "Y"}]
    incoming = [{"id": 11, "name": "Small v2", "linked_sku_id": None}]
    merged = merge_variations(existing, incoming)
    assert merged == [{"id": 11, "name": "Small v2", "linked_sku_id": "Y"}]


def test_variation_name_falls_back(db):
    variation = remote_variation(11, "Small", attributes=[])
    CatalogReconciler(db).reconcile(
        "Alpha", remote_product(1, type="variable", variations=[11]), [variation]
    )
    db.commit()
    assert db.get(WebProduct, "WC-Alpha-1").variations[0]["name"] == "VAR-11"
