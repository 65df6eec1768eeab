"""
Deterministic identities for synced records.

Every upsert in the sync pipeline is keyed by one of these functions, so
re-running a sync over the same remote data can only overwrite, never
duplicate.
"""
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")

WEB_ID_PREFIX = "WC"
PRODUCTS_CHECKPOINT_PREFIX = "web-products"
ORDERS_CHECKPOINT_PREFIX = "web-orders"


def web_product_id(storefront: str, remote_product: Dict[str, Any]) -> str:
    """Trimmed storefront SKU code, or ``WC-{storefront}-{remoteId}`` without one."""
    sku = (remote_product.get("sku") or "").strip()
    if sku:
        return sku
    return f"{WEB_ID_PREFIX}-{storefront}-{remote_product['id']}"


def web_order_id(storefront: str, remote_order_id: Any) -> str:
    return f"{WEB_ID_PREFIX}-{storefront}-{remote_order_id}"


def line_item_id(order_id: str, remote_line_id: Any) -> str:
    return f"{order_id}-{remote_line_id}"


def product_lookup_key(remote_product_id: Any, storefront: str) -> str:
    """Key of the prefetched web product index used while reconciling orders."""
    return f"{remote_product_id}-{storefront}"


def checkpoint_id(sync_type: str, storefront: str) -> str:
    prefix = PRODUCTS_CHECKPOINT_PREFIX if sync_type == "products" else ORDERS_CHECKPOINT_PREFIX
    return f"{prefix}-{storefront}"


def variation_key(value: Any) -> Optional[int]:
    """Remote variation id as an int, whether it arrives as 42 or "42"."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class RefId(Generic[T]):
    """A reference known only by id."""

    id: str


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A reference whose target has been loaded."""

    id: str
    value: T


Reference = Union[RefId[T], Resolved[T]]
