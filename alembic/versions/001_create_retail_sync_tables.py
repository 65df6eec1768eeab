"""Create web catalog, web order, checkpoint and lot tables

Revision ID: 001_retail_sync
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_retail_sync'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    ]


def upgrade():
    op.create_table(
        'web_products',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('website', sa.String(100), nullable=True),
        sa.Column('web_id', sa.Integer(), nullable=True),
        sa.Column('slug', sa.String(500), nullable=True),
        sa.Column('permalink', sa.String(1000), nullable=True),
        sa.Column('date_created', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_modified', sa.DateTime(timezone=True), nullable=True),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('featured', sa.Boolean(), nullable=True),
        sa.Column('catalog_visibility', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('sku_code', sa.String(255), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('regular_price', sa.Float(), nullable=True),
        sa.Column('sale_price', sa.Float(), nullable=True),
        sa.Column('date_on_sale_from', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_on_sale_to', sa.DateTime(timezone=True), nullable=True),
        sa.Column('on_sale', sa.Boolean(), nullable=True),
        sa.Column('purchasable', sa.Boolean(), nullable=True),
        sa.Column('total_sales', sa.Integer(), nullable=True),
        sa.Column('virtual', sa.Boolean(), nullable=True),
        sa.Column('downloadable', sa.Boolean(), nullable=True),
        sa.Column('tax_status', sa.String(50), nullable=True),
        sa.Column('tax_class', sa.String(100), nullable=True),
        sa.Column('manage_stock', sa.Boolean(), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=True),
        sa.Column('stock_status', sa.String(50), nullable=True),
        sa.Column('backorders', sa.String(50), nullable=True),
        sa.Column('low_stock_amount', sa.Integer(), nullable=True),
        sa.Column('sold_individually', sa.Boolean(), nullable=True),
        sa.Column('weight', sa.String(50), nullable=True),
        sa.Column('dimensions', sa.JSON(), nullable=True),
        sa.Column('shipping_required', sa.Boolean(), nullable=True),
        sa.Column('shipping_taxable', sa.Boolean(), nullable=True),
        sa.Column('shipping_class', sa.String(100), nullable=True),
        sa.Column('reviews_allowed', sa.Boolean(), nullable=True),
        sa.Column('average_rating', sa.String(20), nullable=True),
        sa.Column('rating_count', sa.Integer(), nullable=True),
        sa.Column('upsell_ids', sa.JSON(), nullable=True),
        sa.Column('cross_sell_ids', sa.JSON(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('web_categories', sa.JSON(), nullable=True),
        sa.Column('web_images', sa.JSON(), nullable=True),
        sa.Column('web_attributes', sa.JSON(), nullable=True),
        sa.Column('meta_data', sa.JSON(), nullable=True),
        sa.Column('variations', sa.JSON(), nullable=True),
        sa.Column('linked_sku_id', sa.String(255), nullable=True),
        sa.Column('total_web_orders', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_web_products_website'), 'web_products', ['website'], unique=False)
    op.create_index(op.f('ix_web_products_web_id'), 'web_products', ['web_id'], unique=False)
    op.create_index(op.f('ix_web_products_linked_sku_id'), 'web_products', ['linked_sku_id'], unique=False)

    op.create_table(
        'skus',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('website', sa.String(100), nullable=True),
        sa.Column('is_web_product', sa.Boolean(), nullable=True),
        sa.Column('web_id', sa.Integer(), nullable=True),
        sa.Column('slug', sa.String(500), nullable=True),
        sa.Column('permalink', sa.String(1000), nullable=True),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('sale_price', sa.Float(), nullable=True),
        sa.Column('regular_price', sa.Float(), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=True),
        sa.Column('stock_status', sa.String(50), nullable=True),
        sa.Column('variances', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_skus_website'), 'skus', ['website'], unique=False)
    op.create_index(op.f('ix_skus_is_web_product'), 'skus', ['is_web_product'], unique=False)

    op.create_table(
        'web_orders',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('website', sa.String(100), nullable=True),
        sa.Column('web_id', sa.Integer(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('number', sa.String(100), nullable=True),
        sa.Column('order_key', sa.String(255), nullable=True),
        sa.Column('created_via', sa.String(100), nullable=True),
        sa.Column('version', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('currency', sa.String(10), nullable=True),
        sa.Column('date_created', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_modified', sa.DateTime(timezone=True), nullable=True),
        sa.Column('discount_total', sa.Float(), nullable=True),
        sa.Column('discount_tax', sa.Float(), nullable=True),
        sa.Column('shipping_total', sa.Float(), nullable=True),
        sa.Column('shipping_tax', sa.Float(), nullable=True),
        sa.Column('cart_tax', sa.Float(), nullable=True),
        sa.Column('total', sa.Float(), nullable=True),
        sa.Column('total_tax', sa.Float(), nullable=True),
        sa.Column('prices_include_tax', sa.Boolean(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('customer_ip_address', sa.String(100), nullable=True),
        sa.Column('customer_user_agent', sa.Text(), nullable=True),
        sa.Column('customer_note', sa.Text(), nullable=True),
        sa.Column('billing', sa.JSON(), nullable=True),
        sa.Column('shipping', sa.JSON(), nullable=True),
        sa.Column('payment_method', sa.String(100), nullable=True),
        sa.Column('payment_method_title', sa.String(255), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('date_paid', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_completed', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cart_hash', sa.String(255), nullable=True),
        sa.Column('meta_data', sa.JSON(), nullable=True),
        sa.Column('shipping_lines', sa.JSON(), nullable=True),
        sa.Column('fee_lines', sa.JSON(), nullable=True),
        sa.Column('coupon_lines', sa.JSON(), nullable=True),
        sa.Column('refunds', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_web_orders_website'), 'web_orders', ['website'], unique=False)
    op.create_index(op.f('ix_web_orders_web_id'), 'web_orders', ['web_id'], unique=False)
    op.create_index(op.f('ix_web_orders_status'), 'web_orders', ['status'], unique=False)

    op.create_table(
        'web_order_line_items',
        sa.Column('id', sa.String(300), nullable=False),
        sa.Column('order_id', sa.String(255), nullable=False),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('web_line_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(500), nullable=True),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('variation_id', sa.Integer(), nullable=True),
        sa.Column('web_product_id', sa.String(255), nullable=True),
        sa.Column('linked_sku_id', sa.String(255), nullable=True),
        sa.Column('lot_number', sa.String(255), nullable=True),
        sa.Column('cost', sa.Float(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('tax_class', sa.String(100), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=True),
        sa.Column('subtotal_tax', sa.Float(), nullable=True),
        sa.Column('total', sa.Float(), nullable=True),
        sa.Column('total_tax', sa.Float(), nullable=True),
        sa.Column('taxes', sa.JSON(), nullable=True),
        sa.Column('meta_data', sa.JSON(), nullable=True),
        sa.Column('sku', sa.String(255), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['web_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_web_order_line_items_order_id'), 'web_order_line_items', ['order_id'], unique=False)
    op.create_index(op.f('ix_web_order_line_items_web_product_id'), 'web_order_line_items', ['web_product_id'], unique=False)
    op.create_index(op.f('ix_web_order_line_items_linked_sku_id'), 'web_order_line_items', ['linked_sku_id'], unique=False)

    op.create_table(
        'sync_checkpoints',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('sync_type', sa.String(20), nullable=False),
        sa.Column('website', sa.String(100), nullable=False),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_full_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('records_count', sa.Integer(), nullable=True),
        sa.Column('last_sync_stats', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sync_checkpoints_sync_type'), 'sync_checkpoints', ['sync_type'], unique=False)

    op.create_table(
        'inventory_lot_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku_id', sa.String(255), nullable=False),
        sa.Column('lot_number', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('cost', sa.Float(), nullable=True),
        sa.Column(
            'source',
            sa.Enum('OPENING_BALANCE', 'PURCHASE_ORDER', 'MANUFACTURING', 'AUDIT', name='lotsource'),
            nullable=False
        ),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_inventory_lot_entries_id'), 'inventory_lot_entries', ['id'], unique=False)
    op.create_index(op.f('ix_inventory_lot_entries_sku_id'), 'inventory_lot_entries', ['sku_id'], unique=False)
    op.create_index(op.f('ix_inventory_lot_entries_lot_number'), 'inventory_lot_entries', ['lot_number'], unique=False)


def downgrade():
    op.drop_table('inventory_lot_entries')
    op.drop_table('sync_checkpoints')
    op.drop_table('web_order_line_items')
    op.drop_table('web_orders')
    op.drop_table('skus')
    op.drop_table('web_products')
