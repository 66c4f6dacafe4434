"""create employees and api_app_table

Revision ID: 3c1f0e7a9b21
Revises:
Create Date: 2026-10-19 10:40:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0e7a9b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('refresh_token', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_employees_id', 'employees', ['id'])
    op.create_index('ix_employees_username', 'employees', ['username'], unique=True)
    op.create_index('ix_employees_refresh_token', 'employees', ['refresh_token'])

    op.create_table(
        'api_app_table',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_api_app_table_id', 'api_app_table', ['id'])
    op.create_index('ix_api_app_table_name', 'api_app_table', ['name'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_api_app_table_name', table_name='api_app_table')
    op.drop_index('ix_api_app_table_id', table_name='api_app_table')
    op.drop_table('api_app_table')
    op.drop_index('ix_employees_refresh_token', table_name='employees')
    op.drop_index('ix_employees_username', table_name='employees')
    op.drop_index('ix_employees_id', table_name='employees')
    op.drop_table('employees')
