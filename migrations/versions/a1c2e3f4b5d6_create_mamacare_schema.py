"""create mamacare schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


revision = 'a1c2e3f4b5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(128), nullable=False),
        sa.Column('payload_json', JSONB(), nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('idempotency_key', sa.String(255), nullable=True, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_event_log_account_id', 'event_log', ['account_id'])
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])

    op.create_table(
        'pregnancy_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('last_menstrual_period', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('current_week', sa.SmallInteger(), nullable=False, server_default='1'),
        sa.Column('trimester', sa.SmallInteger(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('height_cm', sa.Numeric(5, 1), nullable=True),
        sa.Column('pre_pregnancy_weight', sa.Numeric(5, 1), nullable=True),
        sa.Column('current_weight', sa.Numeric(5, 1), nullable=True),
        sa.Column('previous_pregnancies', sa.SmallInteger(), nullable=True),
        sa.Column('hospital', sa.String(255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_pregnancy_profiles_account_id', 'pregnancy_profiles', ['account_id'])
    op.create_index(
        'uq_pregnancy_profiles_one_active', 'pregnancy_profiles', ['account_id'],
        unique=True, postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'reminders',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(32), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('milestone_key', sa.String(64), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('priority', sa.String(16), nullable=False, server_default='medium'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notification_sent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('notification_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('profile_id', 'milestone_key', name='uq_reminder_profile_milestone'),
    )
    op.create_index('ix_reminders_account_id', 'reminders', ['account_id'])
    op.create_index('ix_reminders_profile_id', 'reminders', ['profile_id'])
    op.create_index('ix_reminders_scheduled_at', 'reminders', ['scheduled_at'])

    op.create_table(
        'symptom_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=True),
        sa.Column('symptom', sa.String(255), nullable=False),
        sa.Column('severity', sa.String(16), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('resolved', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_symptom_logs_account_id', 'symptom_logs', ['account_id'])

    op.create_table(
        'emergency_contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False),
        sa.Column('relationship', sa.String(64), nullable=False, server_default=''),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_emergency_contacts_account_id', 'emergency_contacts', ['account_id'])
    op.create_index(
        'uq_emergency_contacts_one_primary', 'emergency_contacts', ['account_id'],
        unique=True, postgresql_where=sa.text('is_primary'),
    )

    op.create_table(
        'health_content',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('content_type', sa.String(32), nullable=False),
        sa.Column('trimester', sa.SmallInteger(), nullable=False),
        sa.Column('week_range_start', sa.SmallInteger(), nullable=True),
        sa.Column('week_range_end', sa.SmallInteger(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('video_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_health_content_trimester', 'health_content', ['trimester'])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('plan_type', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='KES'),
        sa.Column('payment_reference', sa.String(64), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_subscriptions_account_id', 'subscriptions', ['account_id'])
    # At most one active subscription per account
    op.create_index(
        'uq_subscriptions_one_active', 'subscriptions', ['account_id'],
        unique=True, postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(64), nullable=False, unique=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='KES'),
        sa.Column('description', sa.String(255), nullable=False, server_default=''),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('payment_method', sa.String(32), nullable=False, server_default='instasend'),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('transaction_id', sa.String(128), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_payments_account_id', 'payments', ['account_id'])


def downgrade():
    op.drop_table('payments')
    op.drop_table('subscriptions')
    op.drop_table('health_content')
    op.drop_table('emergency_contacts')
    op.drop_table('symptom_logs')
    op.drop_table('reminders')
    op.drop_table('pregnancy_profiles')
    op.drop_table('event_log')
    op.drop_table('users')
