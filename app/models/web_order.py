from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base import Base


class WebOrder(Base):
    __tablename__ = "web_orders"

    # "WC-{website}-{web_id}"
    id = Column(String(255), primary_key=True)
    website = Column(String(100), index=True)
    web_id = Column(Integer, index=True)
    parent_id = Column(Integer)
    number = Column(String(100))
    order_key = Column(String(255))
    created_via = Column(String(100))
    version = Column(String(50))
    # pending, processing, on-hold, completed, cancelled, refunded, failed and trash
    status = Column(String(50), index=True)
    currency = Column(String(10))
    date_created = Column(DateTime(timezone=True), nullable=True)
    date_modified = Column(DateTime(timezone=True), nullable=True)

    discount_total = Column(Float, default=0)
    discount_tax = Column(Float, default=0)
    shipping_total = Column(Float, default=0)
    shipping_tax = Column(Float, default=0)
    cart_tax = Column(Float, default=0)
    total = Column(Float, default=0)
    total_tax = Column(Float, default=0)
    prices_include_tax = Column(Boolean)

    customer_id = Column(Integer)
    customer_ip_address = Column(String(100))
    customer_user_agent = Column(Text)
    customer_note = Column(Text)
    billing = Column(JSON)
    shipping = Column(JSON)

    payment_method = Column(String(100))
    payment_method_title = Column(String(255))
    transaction_id = Column(String(255))
    date_paid = Column(DateTime(timezone=True), nullable=True)
    date_completed = Column(DateTime(timezone=True), nullable=True)
    cart_hash = Column(String(255))

    meta_data = Column(JSON)
    shipping_lines = Column(JSON)
    fee_lines = Column(JSON)
    coupon_lines = Column(JSON)
    refunds = Column(JSON)

    line_items = relationship(
        "WebOrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="WebOrderLineItem.position",
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WebOrderLineItem(Base):
    __tablename__ = "web_order_line_items"

    # "{order_id}-{web_line_id}"
    id = Column(String(300), primary_key=True)
    order_id = Column(String(255), ForeignKey("web_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, default=0)

    web_line_id = Column(Integer)
    name = Column(String(500))
    product_id = Column(Integer)
    variation_id = Column(Integer)
    web_product_id = Column(String(255), nullable=True, index=True)
    linked_sku_id = Column(String(255), nullable=True, index=True)
    lot_number = Column(String(255), nullable=True)
    cost = Column(Float, nullable=True)

    quantity = Column(Integer, default=0)
    tax_class = Column(String(100))
    subtotal = Column(Float, default=0)
    subtotal_tax = Column(Float, default=0)
    total = Column(Float, default=0)
    total_tax = Column(Float, default=0)
    taxes = Column(JSON)
    meta_data = Column(JSON)
    sku = Column(String(255))
    price = Column(Float)
    image = Column(String(1000), default="")

    order = relationship("WebOrder", back_populates="line_items")
