"""initial schema: users, check-ins, code inventory, pending queue

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('external_id', sa.String(64), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('current_level', sa.Integer, nullable=False, server_default='1'),
        sa.Column('experience', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_checkins', sa.Integer, nullable=False, server_default='0'),
        sa.Column('consecutive_checkins', sa.Integer, nullable=False, server_default='0'),
        sa.Column('max_consecutive', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_checkin_date', sa.Date, nullable=True, comment='Reporting-day (UTC+8) of the last check-in'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('current_level >= 1', name='ck_users_level_positive'),
        sa.CheckConstraint('experience >= 0', name='ck_users_experience_non_negative'),
        sa.CheckConstraint('total_checkins >= 0', name='ck_users_total_non_negative'),
    )
    op.create_index('ix_users_external_id', 'users', ['external_id'], unique=True)

    op.create_table(
        'upload_batches',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('filename', sa.String(255), nullable=True),
        sa.Column('source', sa.String(20), nullable=False, server_default='upload'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_codes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('valid_codes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('duplicate_codes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('invalid_codes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('uploaded_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'redemption_codes',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(64), nullable=False, unique=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('batch_id', sa.Integer, sa.ForeignKey('upload_batches.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_distributed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('distributed_to', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('distributed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('distribution_type', sa.String(20), nullable=True),
        sa.Column('is_used', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('used_by', sa.String(36), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_redemption_codes_distributed_to', 'redemption_codes', ['distributed_to'])
    op.create_index('ix_codes_available', 'redemption_codes', ['is_distributed', 'is_used', 'id'])
    op.create_index('ix_codes_amount', 'redemption_codes', ['amount'])

    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in_date', sa.Date, nullable=False, comment='Reporting day (UTC+8)'),
        sa.Column('checked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consecutive_days', sa.Integer, nullable=False, server_default='1'),
        sa.Column('base_exp', sa.Integer, nullable=False, server_default='0'),
        sa.Column('level_bonus_exp', sa.Integer, nullable=False, server_default='0'),
        sa.Column('streak_bonus_exp', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_exp', sa.Integer, nullable=False, server_default='0'),
        sa.Column('code_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='completed'),
        sa.Column('redemption_code_id', sa.Integer, sa.ForeignKey('redemption_codes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('redemption_code', sa.String(64), nullable=True),
        # One check-in per user per day
        sa.UniqueConstraint('user_id', 'check_in_date', name='uq_user_checkin_date'),
    )
    op.create_index('ix_check_ins_user_id', 'check_ins', ['user_id'])
    op.create_index('ix_checkin_date', 'check_ins', ['check_in_date'])

    op.create_table(
        'pending_distributions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('check_in_id', sa.Integer, sa.ForeignKey('check_ins.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('check_in_date', sa.Date, nullable=False),
        sa.Column('computed_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('resolved', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('redemption_code_id', sa.Integer, sa.ForeignKey('redemption_codes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_pending_distributions_user_id', 'pending_distributions', ['user_id'])
    op.create_index('ix_pending_queue', 'pending_distributions', ['resolved', 'created_at', 'id'])

    op.create_table(
        'level_thresholds',
        sa.Column('level', sa.Integer, primary_key=True, autoincrement=False),
        sa.Column('required_experience', sa.Integer, nullable=False),
    )

    op.create_table(
        'distribution_logs',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('operation_type', sa.String(20), nullable=False),
        sa.Column('operator', sa.String(64), nullable=True),
        sa.Column('target_users', sa.JSON, nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('codes_distributed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('codes_failed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_distribution_logs_operation_type', 'distribution_logs', ['operation_type'])


def downgrade() -> None:
    op.drop_index('ix_distribution_logs_operation_type', table_name='distribution_logs')
    op.drop_table('distribution_logs')
    op.drop_table('level_thresholds')
    op.drop_index('ix_pending_queue', table_name='pending_distributions')
    op.drop_index('ix_pending_distributions_user_id', table_name='pending_distributions')
    op.drop_table('pending_distributions')
    op.drop_index('ix_checkin_date', table_name='check_ins')
    op.drop_index('ix_check_ins_user_id', table_name='check_ins')
    op.drop_table('check_ins')
    op.drop_index('ix_codes_amount', table_name='redemption_codes')
    op.drop_index('ix_codes_available', table_name='redemption_codes')
    op.drop_index('ix_redemption_codes_distributed_to', table_name='redemption_codes')
    op.drop_table('redemption_codes')
    op.drop_table('upload_batches')
    op.drop_index('ix_users_external_id', table_name='users')
    op.drop_table('users')
