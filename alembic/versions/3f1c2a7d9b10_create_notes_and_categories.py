"""Create notes and categories tables

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2025-10-02 18:12:05.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('creator_email', sa.String(length=320), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('history', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_notes_category', 'notes', ['category'])
    op.create_index('idx_notes_timestamp', 'notes', ['timestamp'])

    op.create_table(
        'categories',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_categories_name', 'categories', ['name'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_categories_name', table_name='categories')
    op.drop_table('categories')
    op.drop_index('idx_notes_timestamp', table_name='notes')
    op.drop_index('idx_notes_category', table_name='notes')
    op.drop_table('notes')
