from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text, func

from app.db.base import Base


class WebProduct(Base):
    """Storefront product mirrored from WooCommerce.

    ``variations`` is a JSON list of dicts, each keyed by the remote
    variation ``id`` and carrying its own optional ``linked_sku_id``.
    """

    __tablename__ = "web_products"

    # sku code from the storefront, or "WC-{website}-{web_id}"
    id = Column(String(255), primary_key=True)
    name = Column(String(500), nullable=False)
    image = Column(String(1000), default="")
    website = Column(String(100), index=True)

    web_id = Column(Integer, index=True)
    slug = Column(String(500))
    permalink = Column(String(1000))
    date_created = Column(DateTime(timezone=True), nullable=True)
    date_modified = Column(DateTime(timezone=True), nullable=True)
    type = Column(String(50), default="simple")
    status = Column(String(50))
    featured = Column(Boolean)
    catalog_visibility = Column(String(50))
    description = Column(Text)
    short_description = Column(Text)
    sku_code = Column(String(255))
    price = Column(Float, default=0)
    regular_price = Column(Float, default=0)
    sale_price = Column(Float, default=0)
    date_on_sale_from = Column(DateTime(timezone=True), nullable=True)
    date_on_sale_to = Column(DateTime(timezone=True), nullable=True)
    on_sale = Column(Boolean)
    purchasable = Column(Boolean)
    total_sales = Column(Integer)
    virtual = Column(Boolean)
    downloadable = Column(Boolean)
    tax_status = Column(String(50))
    tax_class = Column(String(100))
    manage_stock = Column(Boolean)
    stock_quantity = Column(Integer, nullable=True)
    stock_status = Column(String(50))
    backorders = Column(String(50))
    low_stock_amount = Column(Integer, nullable=True)
    sold_individually = Column(Boolean)
    weight = Column(String(50))
    dimensions = Column(JSON)
    shipping_required = Column(Boolean)
    shipping_taxable = Column(Boolean)
    shipping_class = Column(String(100))
    reviews_allowed = Column(Boolean)
    average_rating = Column(String(20))
    rating_count = Column(Integer)
    upsell_ids = Column(JSON)
    cross_sell_ids = Column(JSON)
    parent_id = Column(Integer)
    tags = Column(JSON)
    web_categories = Column(JSON)
    web_images = Column(JSON)
    web_attributes = Column(JSON)
    meta_data = Column(JSON)

    variations = Column(JSON, default=list)

    # Set by operators only, never by the feed
    linked_sku_id = Column(String(255), nullable=True, index=True)
    total_web_orders = Column(Integer, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Sku(Base):
    """Legacy SKU table.

    Holds internal inventory SKUs as well as a mirror of every web product
    (``is_web_product=True``) for older readers.
    """

    __tablename__ = "skus"

    id = Column(String(255), primary_key=True)
    name = Column(String(500), nullable=False)
    image = Column(String(1000), default="")
    category = Column(String(100))
    website = Column(String(100), index=True)
    is_web_product = Column(Boolean, default=False, index=True)

    web_id = Column(Integer)
    slug = Column(String(500))
    permalink = Column(String(1000))
    type = Column(String(50))
    status = Column(String(50))
    sale_price = Column(Float, default=0)
    regular_price = Column(Float, default=0)
    stock_quantity = Column(Integer, nullable=True)
    stock_status = Column(String(50))
    variances = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
