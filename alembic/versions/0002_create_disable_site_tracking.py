"""create disable_site_tracking table

Revision ID: 0002_disable_site_tracking
Revises: 0001_sites_events
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_disable_site_tracking'
down_revision: Union[str, Sequence[str], None] = '0001_sites_events'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'disable_site_tracking',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('siteId', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),  # NULL = currently disabled
    )
    op.create_index('ix_disable_site_tracking_siteId', 'disable_site_tracking', ['siteId'])

    # One open record per site, where the dialect has partial indexes
    dialect = op.get_bind().dialect.name
    if dialect in ('sqlite', 'postgresql'):
        op.create_index(
            'uq_disable_site_tracking_open',
            'disable_site_tracking',
            ['siteId'],
            unique=True,
            sqlite_where=sa.text('deleted_at IS NULL'),
            postgresql_where=sa.text('deleted_at IS NULL'),
        )


def downgrade() -> None:
    """Downgrade schema."""
    dialect = op.get_bind().dialect.name
    if dialect in ('sqlite', 'postgresql'):
        op.drop_index('uq_disable_site_tracking_open', table_name='disable_site_tracking')
    op.drop_index('ix_disable_site_tracking_siteId', table_name='disable_site_tracking')
    op.drop_table('disable_site_tracking')
