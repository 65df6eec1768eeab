"""Data converters from WooCommerce payloads to stored records."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

__logger__ = logging.getLogger(__name__)


def to_float(value: Any) -> float:
    """WooCommerce sends money as strings; unparsable or empty becomes 0."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_wc_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a WooCommerce ISO8601 date. Dates without offset are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        __logger__.debug(f"Unparsable WooCommerce date: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def first_image_src(product: Dict[str, Any]) -> str:
    images = product.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("src") or ""
    return ""


def variation_to_document(
    storefront: str,
    product: Dict[str, Any],
    variation: Dict[str, Any],
    linked_sku_id: Optional[str] = None
) -> Dict[str, Any]:
    """Stored form of one product variation."""
    attributes = variation.get("attributes") or []
    options = [a.get("option") for a in attributes if isinstance(a, dict) and a.get("option")]
    name = " / ".join(options) or variation.get("sku") or f"Var {variation['id']}"
    image = (variation.get("image") or {}).get("src") or first_image_src(product)
    return {
        "id": variation["id"],
        "name": name,
        "website": storefront,
        "image": image,
        "sku": variation.get("sku"),
        "price": to_float(variation.get("price")),
        "regular_price": to_float(variation.get("regular_price")),
        "sale_price": to_float(variation.get("sale_price")),
        "status": variation.get("status"),
        "stock_quantity": variation.get("stock_quantity"),
        "stock_status": variation.get("stock_status"),
        "attributes": attributes,
        "date_created": variation.get("date_created"),
        "date_modified": variation.get("date_modified"),
        "permalink": variation.get("permalink"),
        "linked_sku_id": linked_sku_id,
    }


def product_to_web_product_fields(
    storefront: str,
    product: Dict[str, Any],
    variations: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Catalog columns of a web product.

    Never contains ``linked_sku_id``: links are operator data.
    """
    return {
        "name": product.get("name") or f"Product {product['id']}",
        "image": first_image_src(product),
        "website": storefront,
        "web_id": product["id"],
        "slug": product.get("slug"),
        "permalink": product.get("permalink"),
        "date_created": parse_wc_datetime(product.get("date_created")),
        "date_modified": parse_wc_datetime(product.get("date_modified")),
        "type": product.get("type") or "simple",
        "status": product.get("status"),
        "featured": product.get("featured"),
        "catalog_visibility": product.get("catalog_visibility"),
        "description": product.get("description"),
        "short_description": product.get("short_description"),
        "sku_code": product.get("sku"),
        "price": to_float(product.get("price")),
        "regular_price": to_float(product.get("regular_price")),
        "sale_price": to_float(product.get("sale_price") or product.get("price")),
        "date_on_sale_from": parse_wc_datetime(product.get("date_on_sale_from")),
        "date_on_sale_to": parse_wc_datetime(product.get("date_on_sale_to")),
        "on_sale": product.get("on_sale"),
        "purchasable": product.get("purchasable"),
        "total_sales": product.get("total_sales"),
        "virtual": product.get("virtual"),
        "downloadable": product.get("downloadable"),
        "tax_status": product.get("tax_status"),
        "tax_class": product.get("tax_class"),
        "manage_stock": product.get("manage_stock"),
        "stock_quantity": product.get("stock_quantity"),
        "stock_status": product.get("stock_status"),
        "backorders": product.get("backorders"),
        "low_stock_amount": product.get("low_stock_amount"),
        "sold_individually": product.get("sold_individually"),
        "weight": product.get("weight"),
        "dimensions": product.get("dimensions"),
        "shipping_required": product.get("shipping_required"),
        "shipping_taxable": product.get("shipping_taxable"),
        "shipping_class": product.get("shipping_class"),
        "reviews_allowed": product.get("reviews_allowed"),
        "average_rating": product.get("average_rating"),
        "rating_count": product.get("rating_count"),
        "upsell_ids": product.get("upsell_ids"),
        "cross_sell_ids": product.get("cross_sell_ids"),
        "parent_id": product.get("parent_id"),
        "tags": product.get("tags"),
        "web_categories": [
            {"id": c.get("id"), "name": c.get("name"), "slug": c.get("slug")}
            for c in product.get("categories") or []
        ],
        "web_images": [
            {
                "id": img.get("id"),
                "src": img.get("src"),
                "name": img.get("name"),
                "alt": img.get("alt"),
                "date_created": img.get("date_created"),
                "date_modified": img.get("date_modified"),
            }
            for img in product.get("images") or []
        ],
        "web_attributes": product.get("attributes"),
        "meta_data": product.get("meta_data"),
        "variations": variations,
    }


def product_to_sku_mirror_fields(
    storefront: str,
    product: Dict[str, Any],
    variations: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Reduced copy written to the legacy SKU table."""
    return {
        "name": product.get("name") or f"Product {product['id']}",
        "image": first_image_src(product),
        "website": storefront,
        "category": storefront,
        "is_web_product": True,
        "web_id": product["id"],
        "slug": product.get("slug"),
        "permalink": product.get("permalink"),
        "type": product.get("type"),
        "status": product.get("status"),
        "sale_price": to_float(product.get("price")),
        "regular_price": to_float(product.get("regular_price")),
        "stock_quantity": product.get("stock_quantity"),
        "stock_status": product.get("stock_status"),
        "variances": variations,
    }


def _address(block: Optional[Dict[str, Any]], with_contact: bool) -> Dict[str, Any]:
    block = block or {}
    address = {
        "first_name": block.get("first_name"),
        "last_name": block.get("last_name"),
        "company": block.get("company"),
        "address_1": block.get("address_1"),
        "address_2": block.get("address_2"),
        "city": block.get("city"),
        "state": block.get("state"),
        "postcode": block.get("postcode"),
        "country": block.get("country"),
    }
    if with_contact:
        address["email"] = block.get("email")
        address["phone"] = block.get("phone")
    return address


def order_to_document(storefront: str, order_id: str, order: Dict[str, Any]) -> Dict[str, Any]:
    """Order columns without line items."""
    return {
        "id": order_id,
        "website": storefront,
        "web_id": order["id"],
        "parent_id": order.get("parent_id"),
        "number": str(order.get("number") or order["id"]),
        "order_key": order.get("order_key"),
        "created_via": order.get("created_via"),
        "version": order.get("version"),
        "status": order.get("status"),
        "currency": order.get("currency"),
        "date_created": parse_wc_datetime(order.get("date_created")),
        "date_modified": parse_wc_datetime(order.get("date_modified")),
        "discount_total": to_float(order.get("discount_total")),
        "discount_tax": to_float(order.get("discount_tax")),
        "shipping_total": to_float(order.get("shipping_total")),
        "shipping_tax": to_float(order.get("shipping_tax")),
        "cart_tax": to_float(order.get("cart_tax")),
        "total": to_float(order.get("total")),
        "total_tax": to_float(order.get("total_tax")),
        "prices_include_tax": order.get("prices_include_tax"),
        "customer_id": order.get("customer_id"),
        "customer_ip_address": order.get("customer_ip_address"),
        "customer_user_agent": order.get("customer_user_agent"),
        "customer_note": order.get("customer_note"),
        "billing": _address(order.get("billing"), with_contact=True),
        "shipping": _address(order.get("shipping"), with_contact=False),
        "payment_method": order.get("payment_method"),
        "payment_method_title": order.get("payment_method_title"),
        "transaction_id": order.get("transaction_id"),
        "date_paid": parse_wc_datetime(order.get("date_paid")),
        "date_completed": parse_wc_datetime(order.get("date_completed")),
        "cart_hash": order.get("cart_hash"),
        "meta_data": order.get("meta_data"),
        "shipping_lines": order.get("shipping_lines"),
        "fee_lines": order.get("fee_lines"),
        "coupon_lines": order.get("coupon_lines"),
        "refunds": order.get("refunds"),
    }


def line_item_to_document(line_id: str, position: int, item: Dict[str, Any]) -> Dict[str, Any]:
    """Line item columns before product/SKU/lot resolution."""
    return {
        "id": line_id,
        "position": position,
        "web_line_id": item.get("id"),
        "name": item.get("name"),
        "product_id": item.get("product_id"),
        "variation_id": item.get("variation_id") or None,
        "quantity": item.get("quantity") or 0,
        "tax_class": item.get("tax_class"),
        "subtotal": to_float(item.get("subtotal")),
        "subtotal_tax": to_float(item.get("subtotal_tax")),
        "total": to_float(item.get("total")),
        "total_tax": to_float(item.get("total_tax")),
        "taxes": item.get("taxes"),
        "meta_data": item.get("meta_data"),
        "sku": item.get("sku"),
        "price": to_float(item.get("price")),
    }
