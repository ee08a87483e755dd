"""Initial schema: catalog, purchasing, sales, customers, pack storage, staff

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17

This migration creates:
1. Catalog: categories, suppliers, inventory, stock_movements
2. Purchasing: purchase_orders, po_items, document_sequences
3. Sales: customer_orders, customer_order_items
4. Customers: customers, events, event_registrations
5. Pack storage: pack_storage (balances), pack_transactions (ledger)
6. Staff logins: staff, session_tokens
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_initial'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(precision=14, scale=4)


def upgrade():
    # ==========================================================================
    # 1. CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True,
    )

    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('payment_terms', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True,
    )

    op.create_table('inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('game_title', sa.String(length=128), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('card_id', sa.String(length=64), nullable=True),
        sa.Column('card_name', sa.String(length=255), nullable=False),
        sa.Column('set_name', sa.String(length=255), nullable=True),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost_price', MONEY, nullable=False),
        sa.Column('stock_quantity', sa.Integer(), nullable=False),
        sa.Column('packs_per_box', sa.Integer(), nullable=False),
        sa.Column('boxes_per_case', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_inventory_game_title', 'inventory', ['game_title'])
    op.create_index('ix_inventory_category_id', 'inventory', ['category_id'])
    op.create_index('ix_inventory_game_card', 'inventory', ['game_title', 'card_name'])

    op.create_table('stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('inventory_id', sa.Integer(), nullable=False),
        sa.Column('quantity_delta', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['inventory_id'], ['inventory.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stock_movements_item_created', 'stock_movements', ['inventory_id', 'created_at'])

    # ==========================================================================
    # 2. PURCHASING
    # ==========================================================================
    op.create_table('purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('po_number', sa.String(length=64), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('payment_status', sa.String(length=32), nullable=False),
        sa.Column('total_cost', MONEY, nullable=False),
        sa.Column('paid_amount', MONEY, nullable=False),
        sa.Column('invoice_no', sa.String(length=64), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('po_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_orders_supplier_id', 'purchase_orders', ['supplier_id'])
    op.create_index('ix_purchase_orders_status_date', 'purchase_orders', ['status', 'order_date'])

    op.create_table('po_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_id', sa.Integer(), nullable=False),
        sa.Column('inventory_id', sa.Integer(), nullable=False),
        sa.Column('ordered_qty', sa.Integer(), nullable=False),
        sa.Column('received_qty', sa.Integer(), nullable=False),
        sa.Column('allocated_qty', sa.Integer(), nullable=False),
        sa.Column('unit_cost', MONEY, nullable=False),
        sa.ForeignKeyConstraint(['po_id'], ['purchase_orders.id']),
        sa.ForeignKeyConstraint(['inventory_id'], ['inventory.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_po_items_po_id', 'po_items', ['po_id'])
    op.create_index('ix_po_items_inventory', 'po_items', ['inventory_id'])

    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_type'),
    )

    # ==========================================================================
    # 3. CUSTOMERS AND EVENTS
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('mobile_number', sa.String(length=32), nullable=True),
        sa.Column('bandai_id', sa.String(length=64), nullable=True),
        sa.Column('bushiroad_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('loyalty_points', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customers_name', 'customers', ['name'])

    op.create_table('events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('game_title', sa.String(length=128), nullable=True),
        sa.Column('event_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('entry_fee', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_events_event_date', 'events', ['event_date'])

    op.create_table('event_registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'customer_id', name='uq_event_registrations_event_customer'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_event_registrations_event_id', 'event_registrations', ['event_id'])
    op.create_index('ix_event_registrations_customer_id', 'event_registrations', ['customer_id'])

    # ==========================================================================
    # 4. SALES
    # ==========================================================================
    op.create_table('customer_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('order_type', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('deposit_amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_orders_customer_id', 'customer_orders', ['customer_id'])
    op.create_index('ix_customer_orders_order_date', 'customer_orders', ['order_date'])
    op.create_index('ix_customer_orders_type_status', 'customer_orders', ['order_type', 'status'])

    op.create_table('customer_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('inventory_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['customer_orders.id']),
        sa.ForeignKeyConstraint(['inventory_id'], ['inventory.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_order_items_order_id', 'customer_order_items', ['order_id'])
    op.create_index('ix_customer_order_items_inventory_id', 'customer_order_items', ['inventory_id'])

    # ==========================================================================
    # 5. PACK STORAGE
    # ==========================================================================
    op.create_table('pack_storage',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('game_title', sa.String(length=128), nullable=False),
        sa.Column('pack_type', sa.String(length=128), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id', 'game_title', 'pack_type', name='uq_pack_storage_key'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_pack_storage_customer_id', 'pack_storage', ['customer_id'])

    op.create_table('pack_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('game_title', sa.String(length=128), nullable=False),
        sa.Column('pack_type', sa.String(length=128), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_pack_transactions_key', 'pack_transactions', ['customer_id', 'game_title', 'pack_type'])
    op.create_index('ix_pack_transactions_event_id', 'pack_transactions', ['event_id'])

    # ==========================================================================
    # 6. STAFF LOGINS
    # ==========================================================================
    op.create_table('staff',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sqlite_autoincrement=True,
    )

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_staff_id', 'session_tokens', ['staff_id'])


def downgrade():
    op.drop_index('ix_session_tokens_staff_id', table_name='session_tokens')
    op.drop_table('session_tokens')
    op.drop_table('staff')

    op.drop_index('ix_pack_transactions_event_id', table_name='pack_transactions')
    op.drop_index('ix_pack_transactions_key', table_name='pack_transactions')
    op.drop_table('pack_transactions')
    op.drop_index('ix_pack_storage_customer_id', table_name='pack_storage')
    op.drop_table('pack_storage')

    op.drop_index('ix_customer_order_items_inventory_id', table_name='customer_order_items')
    op.drop_index('ix_customer_order_items_order_id', table_name='customer_order_items')
    op.drop_table('customer_order_items')
    op.drop_index('ix_customer_orders_type_status', table_name='customer_orders')
    op.drop_index('ix_customer_orders_order_date', table_name='customer_orders')
    op.drop_index('ix_customer_orders_customer_id', table_name='customer_orders')
    op.drop_table('customer_orders')

    op.drop_index('ix_event_registrations_customer_id', table_name='event_registrations')
    op.drop_index('ix_event_registrations_event_id', table_name='event_registrations')
    op.drop_table('event_registrations')
    op.drop_index('ix_events_event_date', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')

    op.drop_table('document_sequences')
    op.drop_index('ix_po_items_inventory', table_name='po_items')
    op.drop_index('ix_po_items_po_id', table_name='po_items')
    op.drop_table('po_items')
    op.drop_index('ix_purchase_orders_status_date', table_name='purchase_orders')
    op.drop_index('ix_purchase_orders_supplier_id', table_name='purchase_orders')
    op.drop_table('purchase_orders')

    op.drop_index('ix_stock_movements_item_created', table_name='stock_movements')
    op.drop_table('stock_movements')
    op.drop_index('ix_inventory_game_card', table_name='inventory')
    op.drop_index('ix_inventory_category_id', table_name='inventory')
    op.drop_index('ix_inventory_game_title', table_name='inventory')
    op.drop_table('inventory')
    op.drop_table('suppliers')
    op.drop_table('categories')
