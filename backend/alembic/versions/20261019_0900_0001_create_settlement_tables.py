"""Create QR code, sales agent and settlement tables

Revision ID: 0001_create_settlement_tables
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_create_settlement_tables'
down_revision = None
branch_labels = None
depends_on = None


qr_code_type = sa.Enum('DISCOUNT', 'LOYALTY', 'INFO', name='qrcodetype')
commission_source = sa.Enum(
    'TRANSACTION', 'TEAM_OVERRIDE', 'SIGNUP_BONUS', 'RECRUITMENT_BONUS',
    name='commissionsource'
)
commission_status = sa.Enum('PENDING', 'PAID', name='commissionstatus')
agent_tier = sa.Enum('BRONZE', 'SILVER', 'GOLD', 'PLATINUM', 'DIAMOND', name='agenttier')
transaction_type = sa.Enum(
    'PURCHASE', 'BOOKING', 'SUBSCRIPTION', 'QR_REDEMPTION', name='transactiontype'
)
transaction_status = sa.Enum('SETTLED', name='transactionstatus')


def upgrade():
    # QR codes
    op.create_table(
        'qr_codes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('business_id', sa.String(length=64), nullable=False),
        sa.Column('code_type', qr_code_type, nullable=False),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('points_value', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.Column('scan_limit', sa.Integer(), nullable=True),
        sa.Column('current_scans', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('current_scans >= 0', name='ck_qr_codes_current_scans'),
        sa.CheckConstraint('scan_limit IS NULL OR scan_limit >= 0', name='ck_qr_codes_scan_limit'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qr_codes_business_id', 'qr_codes', ['business_id'])
    op.create_index('idx_qr_codes_business_active', 'qr_codes', ['business_id', 'is_active'])

    # Sales agents and their recruiter tree
    op.create_table(
        'sales_agents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('referral_code', sa.String(length=16), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 4), nullable=True),
        sa.Column('tier', agent_tier, nullable=False),
        sa.Column('lifetime_referrals', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('recruited_by_id', sa.Integer(), nullable=True),
        sa.Column('recruited_at', sa.DateTime(), nullable=True),
        sa.Column('total_earned', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_pending', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['recruited_by_id'], ['sales_agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sales_agents_id', 'sales_agents', ['id'])
    op.create_index('ix_sales_agents_user_id', 'sales_agents', ['user_id'])
    op.create_index('ix_sales_agents_referral_code', 'sales_agents', ['referral_code'], unique=True)
    op.create_index('ix_sales_agents_recruited_by_id', 'sales_agents', ['recruited_by_id'])

    op.create_table(
        'referral_scans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('referral_code', sa.String(length=16), nullable=False),
        sa.Column('agent_id', sa.Integer(), nullable=False),
        sa.Column('scanned_at', sa.DateTime(), nullable=False),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('converted', sa.Boolean(), nullable=False),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['agent_id'], ['sales_agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_referral_scans_id', 'referral_scans', ['id'])
    op.create_index('ix_referral_scans_referral_code', 'referral_scans', ['referral_code'])
    op.create_index('ix_referral_scans_agent_id', 'referral_scans', ['agent_id'])
    op.create_index('idx_referral_scans_agent_converted', 'referral_scans', ['agent_id', 'converted'])

    # Admitted scans
    op.create_table(
        'qr_scans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('qr_code_id', sa.String(length=36), nullable=False),
        sa.Column('customer_id', sa.String(length=64), nullable=False),
        sa.Column('scanned_at', sa.DateTime(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('points_awarded', sa.Integer(), nullable=False),
        sa.Column('discount_applied', sa.Numeric(12, 2), nullable=False),
        sa.Column('order_total', sa.Numeric(12, 2), nullable=True),
        sa.Column('referral_scan_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['qr_code_id'], ['qr_codes.id']),
        sa.ForeignKeyConstraint(['referral_scan_id'], ['referral_scans.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qr_scans_id', 'qr_scans', ['id'])
    op.create_index('ix_qr_scans_qr_code_id', 'qr_scans', ['qr_code_id'])
    op.create_index('ix_qr_scans_customer_id', 'qr_scans', ['customer_id'])

    # Settlement
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('business_id', sa.String(length=64), nullable=False),
        sa.Column('transaction_type', transaction_type, nullable=False),
        sa.Column('gross_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('agent_id', sa.Integer(), nullable=True),
        sa.Column('status', transaction_status, nullable=False),
        sa.Column('settled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('gross_amount > 0', name='ck_transactions_gross_amount'),
        sa.ForeignKeyConstraint(['agent_id'], ['sales_agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('ix_transactions_transaction_id', 'transactions', ['transaction_id'], unique=True)
    op.create_index('ix_transactions_business_id', 'transactions', ['business_id'])
    op.create_index('ix_transactions_agent_id', 'transactions', ['agent_id'])
    op.create_index('ix_transactions_settled_at', 'transactions', ['settled_at'])

    op.create_table(
        'commission_breakdowns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('gross_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('platform_commission', sa.Numeric(12, 2), nullable=False),
        sa.Column('business_payout', sa.Numeric(12, 2), nullable=False),
        sa.Column('agent_id', sa.Integer(), nullable=True),
        sa.Column('agent_commission', sa.Numeric(12, 2), nullable=True),
        sa.Column('agent_rate', sa.Numeric(5, 4), nullable=True),
        sa.Column('override_agent_id', sa.Integer(), nullable=True),
        sa.Column('override_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.transaction_id']),
        sa.ForeignKeyConstraint(['agent_id'], ['sales_agents.id']),
        sa.ForeignKeyConstraint(['override_agent_id'], ['sales_agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_commission_breakdowns_id', 'commission_breakdowns', ['id'])
    op.create_index(
        'ix_commission_breakdowns_transaction_id', 'commission_breakdowns',
        ['transaction_id'], unique=True
    )

    # Agent ledger
    op.create_table(
        'agent_commissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('agent_id', sa.Integer(), nullable=False),
        sa.Column('source', commission_source, nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', commission_status, nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=True),
        sa.Column('referral_scan_id', sa.Integer(), nullable=True),
        sa.Column('recruited_agent_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('amount >= 0', name='ck_agent_commissions_amount'),
        sa.ForeignKeyConstraint(['agent_id'], ['sales_agents.id']),
        sa.ForeignKeyConstraint(['referral_scan_id'], ['referral_scans.id']),
        sa.ForeignKeyConstraint(['recruited_agent_id'], ['sales_agents.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('source', 'transaction_id', 'agent_id', name='uq_agent_commission_transaction'),
        sa.UniqueConstraint('source', 'referral_scan_id', name='uq_agent_commission_referral'),
        sa.UniqueConstraint('source', 'recruited_agent_id', name='uq_agent_commission_recruit')
    )
    op.create_index('ix_agent_commissions_id', 'agent_commissions', ['id'])
    op.create_index('ix_agent_commissions_agent_id', 'agent_commissions', ['agent_id'])
    op.create_index('ix_agent_commissions_transaction_id', 'agent_commissions', ['transaction_id'])


def downgrade():
    op.drop_table('agent_commissions')
    op.drop_table('commission_breakdowns')
    op.drop_table('transactions')
    op.drop_table('qr_scans')
    op.drop_table('referral_scans')
    op.drop_table('sales_agents')
    op.drop_table('qr_codes')

    # Drop enum types
    bind = op.get_bind()
    for enum_type in (
        transaction_status, transaction_type, commission_status,
        commission_source, agent_tier, qr_code_type,
    ):
        enum_type.drop(bind, checkfirst=True)
