"""create members table

Revision ID: 3a9e1c5d7b20
Revises:
Create Date: 2026-10-18 15:40:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a9e1c5d7b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('nickname', sa.String(length=50), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column(
            'role',
            sa.Enum('USER', 'ADMIN', name='ck_members_role', native_enum=False, length=20, create_constraint=True),
            nullable=False,
        ),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_modified_date', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ux_members_username', 'members', ['username'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ux_members_username', table_name='members')
    op.drop_table('members')
