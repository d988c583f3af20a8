"""create users and shipments

Revision ID: 3a7c1e9b2d40
Revises:
Create Date: 2026-09-28 09:12:41.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a7c1e9b2d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('role', sa.String(length=50), server_default='user', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('username', name='uq_users_username'),
    )

    op.create_table(
        'shipments',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=False),
        sa.Column('order_ref', sa.String(length=255), nullable=True),
        sa.Column('final_pod', sa.String(length=255), nullable=True),
        sa.Column('product_name', sa.String(length=500), nullable=True),
        sa.Column('latest_status', sa.String(length=50), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=True),
        sa.Column('selected_week_date', sa.Date(), nullable=True),
        sa.Column('quantity', sa.Numeric(15, 3), nullable=True),
        sa.Column('pallet_qty', sa.Numeric(15, 3), server_default='1', nullable=False),
        sa.Column('receiving_warehouse', sa.String(length=255), nullable=True),
        sa.Column('forwarding_agent', sa.String(length=255), nullable=True),
        sa.Column('vessel_name', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),

        # Post-arrival workflow
        sa.Column('unloading_start_date', sa.DateTime(), nullable=True),
        sa.Column('unloading_completed_date', sa.DateTime(), nullable=True),
        sa.Column('inspection_status', sa.String(length=50), nullable=True),
        sa.Column('inspection_date', sa.DateTime(), nullable=True),
        sa.Column('inspection_notes', sa.Text(), nullable=True),
        sa.Column('inspected_by', sa.String(length=255), nullable=True),
        sa.Column('receiving_status', sa.String(length=50), nullable=True),
        sa.Column('receiving_date', sa.DateTime(), nullable=True),
        sa.Column('receiving_notes', sa.Text(), nullable=True),
        sa.Column('received_by', sa.String(length=255), nullable=True),
        sa.Column('received_quantity', sa.Numeric(15, 3), nullable=True),
        sa.Column('discrepancies', sa.JSON(), nullable=True),

        # Side states
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_by', sa.String(length=255), nullable=True),
        sa.Column('rejection_date', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=255), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('status_before_archive', sa.String(length=50), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),

        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_shipments_supplier'), 'shipments', ['supplier'], unique=False)
    op.create_index(op.f('ix_shipments_order_ref'), 'shipments', ['order_ref'], unique=False)
    op.create_index(op.f('ix_shipments_latest_status'), 'shipments', ['latest_status'], unique=False)
    op.create_index(op.f('ix_shipments_week_number'), 'shipments', ['week_number'], unique=False)
    op.create_index(op.f('ix_shipments_receiving_warehouse'), 'shipments', ['receiving_warehouse'], unique=False)
    op.create_index(op.f('ix_shipments_inspection_status'), 'shipments', ['inspection_status'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_shipments_inspection_status'), table_name='shipments')
    op.drop_index(op.f('ix_shipments_receiving_warehouse'), table_name='shipments')
    op.drop_index(op.f('ix_shipments_week_number'), table_name='shipments')
    op.drop_index(op.f('ix_shipments_latest_status'), table_name='shipments')
    op.drop_index(op.f('ix_shipments_order_ref'), table_name='shipments')
    op.drop_index(op.f('ix_shipments_supplier'), table_name='shipments')
    op.drop_table('shipments')
    op.drop_table('users')
