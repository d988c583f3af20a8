"""add warehouse capacity ledger

Revision ID: 8f4d2b6a1c93
Revises: 3a7c1e9b2d40
Create Date: 2026-09-28 09:40:17.583302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4d2b6a1c93'
down_revision: Union[str, Sequence[str], None] = '3a7c1e9b2d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    capacity = op.create_table(
        'warehouse_capacity',
        sa.Column('warehouse_name', sa.String(length=255), nullable=False),
        sa.Column('total_capacity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('bins_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('available_bins', sa.Integer(), server_default='0', nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('warehouse_name'),
    )

    op.create_table(
        'warehouse_capacity_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('warehouse_name', sa.String(length=255), nullable=False),
        sa.Column('bins_used', sa.Integer(), nullable=False),
        sa.Column('previous_value', sa.Integer(), nullable=True),
        sa.Column('changed_by', sa.Integer(), nullable=True),
        sa.Column('changed_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_warehouse_capacity_history_warehouse_name'),
        'warehouse_capacity_history',
        ['warehouse_name'],
        unique=False,
    )
    op.create_index(
        op.f('ix_warehouse_capacity_history_changed_at'),
        'warehouse_capacity_history',
        ['changed_at'],
        unique=False,
    )

    # Default receiving warehouses, all bins free.
    op.bulk_insert(
        capacity,
        [
            {'warehouse_name': 'PRETORIA', 'total_capacity': 650, 'bins_used': 0, 'available_bins': 650},
            {'warehouse_name': 'KLAPMUTS', 'total_capacity': 384, 'bins_used': 0, 'available_bins': 384},
            {'warehouse_name': 'Offsite', 'total_capacity': 384, 'bins_used': 0, 'available_bins': 384},
        ],
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_warehouse_capacity_history_changed_at'), table_name='warehouse_capacity_history')
    op.drop_index(op.f('ix_warehouse_capacity_history_warehouse_name'), table_name='warehouse_capacity_history')
    op.drop_table('warehouse_capacity_history')
    op.drop_table('warehouse_capacity')
