"""Add business_day to demand events

Revision ID: 002_demand_event_business_day
Revises: 001_initial
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002_demand_event_business_day'
down_revision = '001_initial'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('demand_events', sa.Column('business_day', sa.Integer(), nullable=True))

    # Existing bot events tied to a thread get their business day (UTC+3)
    op.execute(
        "UPDATE demand_events "
        "SET business_day = (created_at + 10800000) / 86400000 "
        "WHERE source = 'bot' AND thread_id IS NOT NULL"
    )

    # Keep the earliest of any same-day duplicates before enforcing uniqueness
    op.execute(
        "DELETE FROM demand_events WHERE business_day IS NOT NULL AND id NOT IN ("
        "SELECT MIN(id) FROM demand_events WHERE business_day IS NOT NULL "
        "GROUP BY source, thread_id, phone_type, business_day)"
    )

    op.create_index(
        'uq_demand_events_bot_thread_day',
        'demand_events',
        ['source', 'thread_id', 'phone_type', 'business_day'],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index('uq_demand_events_bot_thread_day', table_name='demand_events')
    op.drop_column('demand_events', 'business_day')
