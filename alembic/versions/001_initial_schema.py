"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('customer_master'):
        op.create_table('customer_master',
        sa.Column('customer_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('customer_id')
        )

    if not inspector.has_table('product_master'):
        op.create_table('product_master',
        sa.Column('product_code', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('dimensions', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('product_code')
        )

    for order_table, detail_table, extra_columns in (
        ('purchase_orders', 'purchase_order_details', []),
        ('sales_orders', 'sales_order_details', [sa.Column('shipment_address', sa.Text(), nullable=True)]),
    ):
        if not inspector.has_table(order_table):
            op.create_table(order_table,
            sa.Column('order_id', sa.Integer(), autoincrement=False, nullable=False),
            sa.Column('processing_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('customer_id', sa.Integer(), nullable=False),
            *extra_columns,
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
            sa.Column('created_by', sa.String(length=100), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('order_id')
            )
            op.create_index(op.f(f'ix_{order_table}_customer_id'), order_table, ['customer_id'], unique=False)

        if not inspector.has_table(detail_table):
            op.create_table(detail_table,
            sa.Column('order_detail_id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('order_id', sa.Integer(), nullable=False),
            sa.Column('product_code', sa.String(length=100), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
            sa.ForeignKeyConstraint(['order_id'], [f'{order_table}.order_id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('order_detail_id')
            )
            op.create_index(op.f(f'ix_{detail_table}_order_id'), detail_table, ['order_id'], unique=False)

    if not inspector.has_table('sync_results'):
        op.create_table('sync_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sync_date', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_sync_results_entity', 'sync_results', ['entity_type', 'entity_id'], unique=False)
        op.create_index(op.f('ix_sync_results_sync_date'), 'sync_results', ['sync_date'], unique=False)

    if not inspector.has_table('sync_status'):
        op.create_table('sync_status',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('last_sync_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entity_type', 'entity_id', name='uq_sync_status_entity')
        )
        op.create_index(op.f('ix_sync_status_status'), 'sync_status', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in (
        'sync_status',
        'sync_results',
        'sales_order_details',
        'sales_orders',
        'purchase_order_details',
        'purchase_orders',
        'product_master',
        'customer_master',
    ):
        if inspector.has_table(table):
            op.drop_table(table)
