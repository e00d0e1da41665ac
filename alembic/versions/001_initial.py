"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Threads table
    op.create_table(
        'threads',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('telegram_id', sa.String(length=64), nullable=False),
        sa.Column('customer_first_name', sa.String(length=128), nullable=False),
        sa.Column('customer_last_name', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('unread_count', sa.Integer(), nullable=False),
        sa.Column('last_message_at', sa.BigInteger(), nullable=True),
        sa.Column('last_message_preview', sa.Text(), nullable=True),
        sa.Column('last_customer_message_at', sa.BigInteger(), nullable=True),
        sa.Column('last_admin_message_at', sa.BigInteger(), nullable=True),
        sa.Column('first_message_at', sa.BigInteger(), nullable=True),
        sa.Column('has_customer_messaged', sa.Boolean(), nullable=False),
        sa.Column('has_admin_replied', sa.Boolean(), nullable=False),
        sa.Column('last_customer_message_has_budget_keyword', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_threads_status', 'threads', ['status'])
    op.create_index('ix_threads_last_message_at', 'threads', ['last_message_at'])

    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_type', sa.String(length=16), nullable=False),
        sa.Column('brand', sa.String(length=32), nullable=False),
        sa.Column('model', sa.String(length=128), nullable=False),
        sa.Column('phone_type', sa.String(length=80), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('stock_quantity', sa.Integer(), nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_products_is_archived_created_at', 'products', ['is_archived', 'created_at'])

    # Exchanges table
    op.create_table(
        'exchanges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('thread_id', sa.Integer(), nullable=False),
        sa.Column('desired_phone_id', sa.Integer(), nullable=False),
        sa.Column('trade_in_brand', sa.String(length=32), nullable=False),
        sa.Column('trade_in_model', sa.String(length=128), nullable=False),
        sa.Column('trade_in_storage', sa.String(length=32), nullable=False),
        sa.Column('trade_in_condition', sa.String(length=16), nullable=False),
        sa.Column('budget_mentioned_in_submission', sa.Boolean(), nullable=False),
        sa.Column('final_difference', sa.Float(), nullable=False),
        sa.Column('priority_value_etb', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('clicked_continue', sa.Boolean(), nullable=False),
        sa.Column('quoted_at', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=True),
        sa.Column('completed_at', sa.BigInteger(), nullable=True),
        sa.Column('rejected_at', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['thread_id'], ['threads.id']),
        sa.ForeignKeyConstraint(['desired_phone_id'], ['products.id'])
    )
    op.create_index('ix_exchanges_status_created_at', 'exchanges', ['status', 'created_at'])
    op.create_index('ix_exchanges_status_completed_at', 'exchanges', ['status', 'completed_at'])
    op.create_index('ix_exchanges_created_at', 'exchanges', ['created_at'])
    op.create_index('ix_exchanges_thread_created_at', 'exchanges', ['thread_id', 'created_at'])

    # Messages table
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('thread_id', sa.Integer(), nullable=False),
        sa.Column('sender', sa.String(length=16), nullable=False),
        sa.Column('sender_role', sa.String(length=16), nullable=True),
        sa.Column('sender_telegram_id', sa.String(length=64), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('exchange_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['thread_id'], ['threads.id']),
        sa.ForeignKeyConstraint(['exchange_id'], ['exchanges.id'])
    )
    op.create_index('ix_messages_sender_created_at', 'messages', ['sender', 'created_at'])
    op.create_index('ix_messages_thread_created_at', 'messages', ['thread_id', 'created_at'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])

    # Demand events table
    op.create_table(
        'demand_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=16), nullable=False),
        sa.Column('phone_type', sa.String(length=80), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('thread_id', sa.Integer(), nullable=True),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['thread_id'], ['threads.id'])
    )
    op.create_index('ix_demand_events_phone_type_created_at', 'demand_events', ['phone_type', 'created_at'])
    op.create_index('ix_demand_events_created_at', 'demand_events', ['created_at'])


def downgrade() -> None:
    op.drop_table('demand_events')
    op.drop_table('messages')
    op.drop_table('exchanges')
    op.drop_table('products')
    op.drop_table('threads')
