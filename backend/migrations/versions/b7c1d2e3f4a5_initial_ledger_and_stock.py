"""initial ledger and stock schema

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-01-11 00:00:00.000000

Creates the tabstock schema from scratch:
- users: members of the shared tab
- products: shared stock, qty >= 0 enforced by CHECK
- orders: committed purchases, tagged with their month key
- monthly_debts: one closed-month bill per (month_key, user_id)
- restock_movements / restock_movement_lines: append-only restock log
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_active_name', 'users', ['is_active', 'name'])

    # ============================================================================
    # products: quantity on hand, never negative
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('qty >= 0', name='ck_products_qty_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_active_name', 'products', ['is_active', 'name'])

    # ============================================================================
    # orders: written by checkout, read by the live summary
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('month_key', sa.String(length=7), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='committed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_user_month_status', 'orders', ['user_id', 'month_key', 'status'])

    # ============================================================================
    # monthly_debts: status invoiced|paid, paid_at set iff paid
    # ============================================================================
    op.create_table(
        'monthly_debts',
        sa.Column('month_key', sa.String(length=7), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='invoiced'),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('month_key', 'user_id'),
        sa.CheckConstraint("status IN ('invoiced', 'paid')", name='ck_monthly_debts_status'),
        sa.CheckConstraint(
            "(status = 'paid' AND paid_at IS NOT NULL) OR (status = 'invoiced' AND paid_at IS NULL)",
            name='ck_monthly_debts_paid_at',
        ),
    )
    op.create_index('ix_monthly_debts_user_status', 'monthly_debts', ['user_id', 'status'])

    # ============================================================================
    # restock_movements: append-only
    # ============================================================================
    op.create_table(
        'restock_movements',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('comment', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'restock_movement_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('move_id', sa.String(length=32), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('qty_delta', sa.Integer(), nullable=False),
        sa.Column('qty_after', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['move_id'], ['restock_movements.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('move_id', 'position', name='uq_restock_lines_move_position'),
        sa.CheckConstraint('qty_delta <> 0', name='ck_restock_lines_delta_non_zero'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_restock_movement_lines_move_id', 'restock_movement_lines', ['move_id'])
    op.create_index('ix_restock_movement_lines_product_id', 'restock_movement_lines', ['product_id'])


def downgrade():
    op.drop_index('ix_restock_movement_lines_product_id', table_name='restock_movement_lines')
    op.drop_index('ix_restock_movement_lines_move_id', table_name='restock_movement_lines')
    op.drop_table('restock_movement_lines')
    op.drop_table('restock_movements')
    op.drop_index('ix_monthly_debts_user_status', table_name='monthly_debts')
    op.drop_table('monthly_debts')
    op.drop_index('ix_orders_user_month_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_products_active_name', table_name='products')
    op.drop_table('products')
    op.drop_index('ix_users_active_name', table_name='users')
    op.drop_table('users')
