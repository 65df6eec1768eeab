"""WooCommerce services package."""

from app.services.woocommerce.client import (
    StorefrontFeedClient,
    WooCommerceAPIError,
    format_modified_after,
)

from app.services.woocommerce.converters import (
    line_item_to_document,
    order_to_document,
    product_to_sku_mirror_fields,
    product_to_web_product_fields,
    variation_to_document,
)

__all__ = [
    # Client
    'StorefrontFeedClient',
    'WooCommerceAPIError',
    'format_modified_after',
    # Converters
    'line_item_to_document',
    'order_to_document',
    'product_to_sku_mirror_fields',
    'product_to_web_product_fields',
    'variation_to_document',
]
