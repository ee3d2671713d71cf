"""create sites and tracking_events tables

Revision ID: 0001_sites_events
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_sites_events'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'sites',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('main_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_sites_id', 'sites', ['id'])
    op.create_index('ix_sites_name', 'sites', ['name'])

    op.create_table(
        'tracking_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('site_id', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('action_name', sa.String(), nullable=True),
        sa.Column('client_ip', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_tracking_events_id', 'tracking_events', ['id'])
    op.create_index('ix_tracking_events_site_id', 'tracking_events', ['site_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_tracking_events_site_id', table_name='tracking_events')
    op.drop_index('ix_tracking_events_id', table_name='tracking_events')
    op.drop_table('tracking_events')
    op.drop_index('ix_sites_name', table_name='sites')
    op.drop_index('ix_sites_id', table_name='sites')
    op.drop_table('sites')
