"""orders received, orders placed, fulfillment links

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('orders_received',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('owner_id', sa.UUID(), nullable=False),
    sa.Column('order_number', sa.Integer(), nullable=False),
    sa.Column('customer_name', sa.String(length=255), nullable=False),
    sa.Column('item_name', sa.String(length=255), nullable=False),
    sa.Column('sku', sa.String(length=100), nullable=True),
    sa.Column('ordered_quantity', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('unit', sa.String(length=50), nullable=False),
    sa.Column('rate', sa.Numeric(precision=18, scale=4), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('custom_fields', sa.JSON(), nullable=True),
    sa.Column('dispatched_quantity', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('owner_id', 'order_number', name='uq_orders_received_owner_number')
    )
    op.create_index('ix_orders_received_owner_id', 'orders_received', ['owner_id'])

    op.create_table('orders_placed',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('owner_id', sa.UUID(), nullable=False),
    sa.Column('order_number', sa.Integer(), nullable=False),
    sa.Column('party_name', sa.String(length=255), nullable=False),
    sa.Column('item_name', sa.String(length=255), nullable=False),
    sa.Column('sku', sa.String(length=100), nullable=True),
    sa.Column('ordered_quantity', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('received_quantity', sa.Numeric(precision=18, scale=4), nullable=True),
    sa.Column('unit', sa.String(length=50), nullable=False),
    sa.Column('rate', sa.Numeric(precision=18, scale=4), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('custom_fields', sa.JSON(), nullable=True),
    sa.Column('remaining_quantity', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('owner_id', 'order_number', name='uq_orders_placed_owner_number')
    )
    op.create_index('ix_orders_placed_owner_id', 'orders_placed', ['owner_id'])

    op.create_table('order_fulfillment_links',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('owner_id', sa.UUID(), nullable=False),
    sa.Column('order_received_id', sa.UUID(), nullable=False),
    sa.Column('order_placed_id', sa.UUID(), nullable=False),
    sa.Column('quantity_fulfilled', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('quantity_fulfilled > 0', name='ck_fulfillment_links_quantity_positive'),
    sa.ForeignKeyConstraint(['order_received_id'], ['orders_received.id'], ondelete='RESTRICT'),
    sa.ForeignKeyConstraint(['order_placed_id'], ['orders_placed.id'], ondelete='RESTRICT'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_fulfillment_links_owner_id', 'order_fulfillment_links', ['owner_id'])
    op.create_index('ix_order_fulfillment_links_order_received_id', 'order_fulfillment_links', ['order_received_id'])
    op.create_index('ix_order_fulfillment_links_order_placed_id', 'order_fulfillment_links', ['order_placed_id'])


def downgrade() -> None:
    op.drop_table('order_fulfillment_links')
    op.drop_table('orders_placed')
    op.drop_table('orders_received')
