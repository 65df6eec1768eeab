"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import LockError, LockNotOwnedError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.celery_app import celery_app
from app.core.config import StorefrontConfig
from app.db.base import Base
from app.db.session import get_db
from app.main import app
# Import all models to ensure they're registered with Base.metadata
from app.models import *
from app.services.sync.progress import InMemoryProgressStore, set_progress_store

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class FakeFeedClient:
    """Stands in for ``StorefrontFeedClient``, serving canned records."""

    def __init__(
        self,
        storefront: StorefrontConfig,
        products: Optional[List[Dict[str, Any]]] = None,
        orders: Optional[List[Dict[str, Any]]] = None,
        variations: Optional[Dict[int, List[Dict[str, Any]]]] = None,
        error: Optional[Exception] = None,
    ):
        self.storefront = storefront
        self.products = products or []
        self.orders = orders or []
        self.variations = variations or {}
        self.error = error
        self.modified_after = []

    def _serve(self, records, modified_after, on_page):
        self.modified_after.append(modified_after)
        if self.error:
            raise self.error
        if on_page:
            on_page(1, 0)
            on_page(1, len(records))
        return list(records)

    def fetch_products(self, modified_after=None, on_page=None):
        return self._serve(self.products, modified_after, on_page)

    def fetch_orders(self, modified_after=None, on_page=None):
        return self._serve(self.orders, modified_after, on_page)

    def fetch_variations(self, product_id):
        return list(self.variations.get(product_id, []))


class FakeRedis:
    """Dict-backed redis shared by several progress stores, as processes would share a server."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True

    def delete(self, key):
        self.data.pop(key, None)

    def lock(self, name, timeout=None, thread_local=True):
        return FakeLock(self, name)


class FakeLock:
    """Token-checked lock with the release semantics of ``redis.lock.Lock``."""

    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.local = SimpleNamespace(token=None)

    def acquire(self, blocking=None, token=None):
        if self.client.set(self.name, token, nx=True) is None:
            return False
        self.local.token = token
        return True

    def release(self):
        token = self.local.token
        if token is None:
            raise LockError("Cannot release an unlocked lock")
        if self.client.data.get(self.name) != token:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        del self.client.data[self.name]


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def progress_store() -> Generator[InMemoryProgressStore, None, None]:
    """Fresh process-wide progress store for every test."""
    store = InMemoryProgressStore()
    set_progress_store(store)
    yield store
    set_progress_store(None)


@pytest.fixture(scope="function")
def client(db: Session, session_factory, monkeypatch) -> Generator[TestClient, None, None]:
    """Test client with database override and Celery running tasks inline."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr("app.tasks.sync_tasks.SessionLocal", session_factory)
    monkeypatch.setattr("app.core.config.settings.storefronts", [])
    monkeypatch.setattr("app.core.config.settings.progress_backend", "memory")
    celery_app.conf.task_always_eager = True
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    celery_app.conf.task_always_eager = False
    app.dependency_overrides.clear()


@pytest.fixture
def storefronts() -> List[StorefrontConfig]:
    return [
        StorefrontConfig(
            name=name,
            base_url=f"https://{name.lower()}.example.com/wp-json/wc/v3",
            consumer_key=f"ck_{name.lower()}",
            consumer_secret=f"cs_{name.lower()}",
        )
        for name in ("Alpha", "Beta", "Gamma")
    ]


@pytest.fixture
def feeds():
    """
    Canned feed per storefront name.

    Tests fill ``feeds.data[name] = {...FakeFeedClient kwargs}`` and pass
    ``feeds.factory`` as the coordinator's client factory.
    """
    class Feeds:
        def __init__(self):
            self.data: Dict[str, Dict[str, Any]] = {}
            self.clients: Dict[str, FakeFeedClient] = {}

        def factory(self, storefront: StorefrontConfig) -> FakeFeedClient:
            fake = FakeFeedClient(storefront, **self.data.get(storefront.name, {}))
            self.clients[storefront.name] = fake
            return fake

    return Feeds()


def remote_product(product_id: int, sku: str = "", **fields) -> Dict[str, Any]:
    product = {
        "id": product_id,
        "name": f"Product {product_id}",
        "sku": sku,
        "type": "simple",
        "status": "publish",
        "price": "10.00",
        "regular_price": "12.00",
        "sale_price": "",
        "stock_quantity": 5,
        "stock_status": "instock",
        "images": [{"id": 1, "src": f"https://img.example.com/{product_id}.jpg"}],
        "categories": [{"id": 3, "name": "Tea", "slug": "tea"}],
        "variations": [],
        "date_created": "2024-01-02T10:00:00",
        "date_modified": "2024-01-03T10:00:00",
    }
    product.update(fields)
    return product


def remote_variation(variation_id: int, option: str, **fields) -> Dict[str, Any]:
    variation = {
        "id": variation_id,
        "sku": f"VAR-{variation_id}",
        "price": "8.00",
        "regular_price": "9.00",
        "sale_price": "",
        "status": "publish",
        "stock_quantity": 2,
        "stock_status": "instock",
        "attributes": [{"name": "Size", "option": option}],
    }
    variation.update(fields)
    return variation


def remote_order(order_id: int, lines: List[Dict[str, Any]], status: str = "processing", **fields) -> Dict[str, Any]:
    order = {
        "id": order_id,
        "number": str(order_id),
        "status": status,
        "currency": "USD",
        "total": "25.00",
        "date_created": "2024-02-01T09:30:00",
        "billing": {"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"},
        "shipping": {"first_name": "Ada", "last_name": "Lovelace"},
        "line_items": lines,
    }
    order.update(fields)
    return order


def remote_line(line_id: int, product_id: int, variation_id: int = 0, quantity: int = 1) -> Dict[str, Any]:
    return {
        "id": line_id,
        "name": f"Line {line_id}",
        "product_id": product_id,
        "variation_id": variation_id,
        "quantity": quantity,
        "subtotal": "10.00",
        "total": "10.00",
        "price": 10,
        "sku": "",
    }


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
