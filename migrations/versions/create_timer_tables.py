"""create timers, activity_log and daily_stats tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:41.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('timers',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('name', sa.String(length=120), nullable=False),
    sa.Column('category', sa.String(length=32), nullable=False),
    sa.Column('status', sa.String(length=16), nullable=False, server_default='idle'),
    sa.Column('duration', sa.BigInteger(), nullable=False, server_default='3600000'),
    sa.Column('remaining_time', sa.BigInteger(), nullable=False, server_default='3600000'),
    sa.Column('elapsed_time', sa.BigInteger(), nullable=False, server_default='0'),
    sa.Column('start_time', sa.BigInteger(), nullable=True),
    sa.Column('remaining_at_start', sa.BigInteger(), nullable=True),
    sa.Column('elapsed_at_start', sa.BigInteger(), nullable=True),
    sa.Column('paid_amount', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('unpaid_amount', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('updated_at', sa.BigInteger(), nullable=False, server_default='0'),
    sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('activity_log',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('timestamp', sa.BigInteger(), nullable=False),
    sa.Column('timer_id', sa.String(length=64), nullable=False),
    sa.Column('timer_name', sa.String(length=120), nullable=False),
    sa.Column('action', sa.String(length=32), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activity_log_timestamp', 'activity_log', ['timestamp'])
    op.create_index('ix_activity_log_timer_id', 'activity_log', ['timer_id'])
    op.create_table('daily_stats',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('period_key', sa.String(length=10), nullable=False),
    sa.Column('timer_stats', sa.JSON(), nullable=False),
    sa.Column('updated_at', sa.BigInteger(), nullable=False, server_default='0'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('period_key')
    )


def downgrade():
    op.drop_table('daily_stats')
    op.drop_index('ix_activity_log_timer_id', table_name='activity_log')
    op.drop_index('ix_activity_log_timestamp', table_name='activity_log')
    op.drop_table('activity_log')
    op.drop_table('timers')
