"""create users, accounts, investments, debts, inclusions and net worth history tables

Revision ID: 3c1f9b7e2d10
Revises: 
Create Date: 2026-10-19 09:12:44.518230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9b7e2d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


account_type = sa.Enum('CHECKING', 'SAVINGS', 'CURRENT', 'SALARY', 'OTHER', name='accounttype')
investment_type = sa.Enum(
    'STOCKS', 'CRYPTO', 'MUTUAL_FUNDS', 'BONDS', 'REAL_ESTATE', 'GOLD', 'FIXED_DEPOSIT',
    'PROVIDENT_FUNDS', 'SAFE_KEEPINGS', 'EMERGENCY_FUND', 'MARRIAGE', 'VACATION', 'OTHER',
    name='investmenttype'
)
debt_status = sa.Enum('ACTIVE', 'PARTIALLY_PAID', 'FULLY_PAID', 'OVERDUE', 'DEFAULTED', name='debtstatus')
worth_entity_type = sa.Enum('ACCOUNT', 'INVESTMENT', 'DEBT', name='worthentitytype')
record_type = sa.Enum('AUTOMATIC', 'MANUAL', name='networthrecordtype')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('email', name='uq_user_email'),
        sa.UniqueConstraint('username', name='uq_user_username'),
    )
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('bank_name', sa.String(255), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('balance', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'account_name', name='uq_user_account_name'),
    )
    op.create_index('idx_accounts_user_bank', 'accounts', ['user_id', 'bank_name'])

    op.create_table(
        'investments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('account_id', sa.Integer, sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('investment_type', investment_type, nullable=False),
        sa.Column('symbol', sa.String(20), nullable=True),
        sa.Column('quantity', sa.DECIMAL(15, 6), nullable=False),
        sa.Column('purchase_price', sa.DECIMAL(15, 4), nullable=False),
        sa.Column('current_price', sa.DECIMAL(15, 4), nullable=False),
        sa.Column('purchase_date', sa.Date, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_investments_user', 'investments', ['user_id'])
    op.create_index('idx_investments_account', 'investments', ['account_id'])

    op.create_table(
        'debts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('borrower_name', sa.String(255), nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('interest_rate', sa.DECIMAL(7, 4), nullable=False),
        sa.Column('lent_date', sa.Date, nullable=False),
        sa.Column('due_date', sa.Date, nullable=True),
        sa.Column('status', debt_status, nullable=False),
        sa.Column('purpose', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_debts_user_status', 'debts', ['user_id', 'status'])

    op.create_table(
        'debt_repayments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('debt_id', sa.Integer, sa.ForeignKey('debts.id'), nullable=False),
        sa.Column('amount', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('repayment_date', sa.Date, nullable=False),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=True),
    )
    op.create_index('idx_debt_repayments_debt', 'debt_repayments', ['debt_id'])

    op.create_table(
        'net_worth_inclusions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('entity_type', worth_entity_type, nullable=False),
        sa.Column('entity_id', sa.Integer, nullable=False),
        sa.Column('include_in_net_worth', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'entity_type', 'entity_id', name='uq_user_entity_inclusion'),
    )
    op.create_index('idx_inclusions_user_entity_type', 'net_worth_inclusions', ['user_id', 'entity_type'])
    op.create_index('idx_inclusions_user_included', 'net_worth_inclusions', ['user_id', 'include_in_net_worth'])

    op.create_table(
        'networth_history',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('total_account_balance', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('total_investment_value', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('total_investment_cost', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('total_investment_gain', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('total_investment_gain_percentage', sa.DECIMAL(12, 4), nullable=False),
        sa.Column('total_money_lent', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('total_assets', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('net_worth', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('snapshot_date', sa.Date, nullable=False),
        sa.Column('record_type', record_type, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.UniqueConstraint('user_id', 'snapshot_date', name='uq_user_snapshot_date'),
    )
    op.create_index('idx_networth_history_user_date', 'networth_history', ['user_id', 'snapshot_date'])
    op.create_index('idx_networth_history_user_type', 'networth_history', ['user_id', 'record_type'])
    op.create_index('idx_networth_history_user_created', 'networth_history', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('networth_history')
    op.drop_table('net_worth_inclusions')
    op.drop_table('debt_repayments')
    op.drop_table('debts')
    op.drop_table('investments')
    op.drop_table('accounts')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (record_type, worth_entity_type, debt_status, investment_type, account_type):
        enum_type.drop(bind, checkfirst=True)
