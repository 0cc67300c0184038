"""Create referrals, system_settings and monthly_agent_reports tables

Revision ID: 20261018_000001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.DECIMAL(14, 2), nullable=False, server_default='0')


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def upgrade() -> None:
    # Referral ledger (property and lead referrals)
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('subject_type', sa.String(20), nullable=False, server_default='property'),
        sa.Column('subject_id', sa.Integer(), nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('kind', sa.String(20), nullable=False, server_default='employee'),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('external', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "subject_type IN ('property', 'lead')",
            name='referrals_subject_type_check',
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_referrals_subject_date', 'referrals', ['subject_type', 'subject_id', 'date'])
    op.create_index('idx_referrals_referrer', 'referrals', ['referrer_id'])

    # Commission percentages and other admin settings
    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('setting_key', sa.String(100), nullable=False),
        sa.Column('setting_value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_system_settings_setting_key', 'system_settings', ['setting_key'], unique=True)

    # Per-agent reports
    op.create_table(
        'monthly_agent_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('agent_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        _counter('listings_count'),
        sa.Column('lead_sources', JSON_TYPE, nullable=False, server_default='{}'),
        _counter('viewings_count'),
        _counter('sales_count'),
        _money('sales_amount'),
        _money('agent_commission'),
        _money('finders_commission'),
        _money('referral_commission'),
        _money('team_leader_commission'),
        _money('administration_commission'),
        _money('total_commission'),
        _counter('referral_received_count'),
        _money('referral_received_commission'),
        _counter('referrals_on_properties_count'),
        _money('referrals_on_properties_commission'),
        _money('boosts'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['agent_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('agent_id', 'start_date', 'end_date', name='uq_monthly_agent_reports_agent_range'),
        sa.CheckConstraint('year >= 2000', name='monthly_agent_reports_year_check'),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='monthly_agent_reports_month_check'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_monthly_agent_reports_agent_id', 'monthly_agent_reports', ['agent_id'])
    op.create_index('idx_monthly_agent_reports_range', 'monthly_agent_reports', ['start_date', 'end_date'])


def downgrade() -> None:
    op.drop_index('idx_monthly_agent_reports_range', 'monthly_agent_reports')
    op.drop_index('ix_monthly_agent_reports_agent_id', 'monthly_agent_reports')
    op.drop_table('monthly_agent_reports')

    op.drop_index('ix_system_settings_setting_key', 'system_settings')
    op.drop_table('system_settings')

    op.drop_index('idx_referrals_referrer', 'referrals')
    op.drop_index('idx_referrals_subject_date', 'referrals')
    op.drop_table('referrals')
