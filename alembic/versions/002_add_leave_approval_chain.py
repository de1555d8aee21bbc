"""Add leave_approval_chain table

Revision ID: 002_add_leave_approval_chain
Revises: 001_initial_leave_engine
Create Date: 2026-10-20

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_add_leave_approval_chain'
down_revision: Union[str, None] = '001_initial_leave_engine'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'leave_approval_chain',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('leave_request_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('approver_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['leave_request_id'], ['leave_requests.id'], ),
        sa.ForeignKeyConstraint(['approver_id'], ['employees.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('leave_request_id', 'level', name='uq_leave_approval_chain_request_level'),
        sa.CheckConstraint('level >= 1', name='check_approval_chain_level_positive')
    )
    op.create_index(op.f('ix_leave_approval_chain_id'), 'leave_approval_chain', ['id'], unique=False)
    op.create_index(
        op.f('ix_leave_approval_chain_leave_request_id'), 'leave_approval_chain', ['leave_request_id'], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_leave_approval_chain_leave_request_id'), table_name='leave_approval_chain')
    op.drop_index(op.f('ix_leave_approval_chain_id'), table_name='leave_approval_chain')
    op.drop_table('leave_approval_chain')
