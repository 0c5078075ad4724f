"""
Initial schema: accounts, categories, recurring patterns, transactions,
budgets, bills, goals, goal contributions

Revision ID: 0f3a9c2b7d41
Revises:
Create Date: 2026-10-19 10:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0f3a9c2b7d41'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('balance', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('currency', sa.String(), nullable=False, server_default='USD'),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "type IN ('checking', 'savings', 'credit', 'cash', 'investment')", name='ck_accounts_type'
        ),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('parent_id', sa.String(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.CheckConstraint("type IN ('income', 'expense')", name='ck_categories_type'),
    )
    op.create_index('idx_categories_type', 'categories', ['type'])

    op.create_table(
        'recurring_patterns',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('frequency', sa.String(), nullable=False),
        sa.Column('interval', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        sa.Column('month_of_year', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Integer(), nullable=False),
        sa.Column('end_date', sa.Integer(), nullable=True),
        sa.Column('last_processed', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'yearly')", name='ck_recurring_patterns_frequency'
        ),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_recurring_patterns_dow'),
        sa.CheckConstraint('day_of_month >= 1 AND day_of_month <= 31', name='ck_recurring_patterns_dom'),
        sa.CheckConstraint('month_of_year >= 1 AND month_of_year <= 12', name='ck_recurring_patterns_moy'),
    )

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('date', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column(
            'recurring_pattern_id',
            sa.String(),
            sa.ForeignKey('recurring_patterns.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.CheckConstraint("type IN ('income', 'expense', 'transfer')", name='ck_transactions_type'),
    )
    op.create_index('idx_transactions_account_id', 'transactions', ['account_id'])
    op.create_index('idx_transactions_category_id', 'transactions', ['category_id'])
    op.create_index('idx_transactions_date', 'transactions', ['date'])
    op.create_index('idx_transactions_type', 'transactions', ['type'])

    op.create_table(
        'budgets',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('period', sa.String(), nullable=False),
        sa.Column('start_date', sa.Integer(), nullable=False),
        sa.Column('end_date', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.CheckConstraint("period IN ('weekly', 'monthly', 'yearly')", name='ck_budgets_period'),
    )
    op.create_index('idx_budgets_category_id', 'budgets', ['category_id'])

    op.create_table(
        'bills',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('account_id', sa.String(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('due_day', sa.Integer(), nullable=False),
        sa.Column('frequency', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False, server_default='expense'),
        sa.Column('next_due_date', sa.Integer(), nullable=False),
        sa.Column('reminder_days', sa.Integer(), nullable=False, server_default=sa.text('3')),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('is_paid', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.CheckConstraint('due_day >= 1 AND due_day <= 31', name='ck_bills_due_day'),
        sa.CheckConstraint("frequency IN ('monthly', 'quarterly', 'yearly')", name='ck_bills_frequency'),
        sa.CheckConstraint("type IN ('income', 'expense')", name='ck_bills_type'),
    )
    op.create_index('idx_bills_next_due_date', 'bills', ['next_due_date'])
    op.create_index('idx_bills_type', 'bills', ['type'])

    op.create_table(
        'goals',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.Column('current_amount', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('deadline', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default=sa.text('5')),
        sa.Column('icon', sa.String(), nullable=True, server_default='🎯'),
        sa.Column('color', sa.String(), nullable=True, server_default='#3b82f6'),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.CheckConstraint('priority >= 1 AND priority <= 10', name='ck_goals_priority'),
        sa.CheckConstraint(
            "status IN ('active', 'paused', 'completed', 'abandoned')", name='ck_goals_status'
        ),
    )
    op.create_index('idx_goals_status', 'goals', ['status'])
    op.create_index('idx_goals_priority', 'goals', ['priority'])
    op.create_index('idx_goals_deadline', 'goals', ['deadline'])

    op.create_table(
        'goal_contributions',
        sa.Column('id', sa.String(), primary_key=True, nullable=False),
        sa.Column('goal_id', sa.String(), sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('date', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "source IN ('manual', 'automatic', 'adjustment')", name='ck_goal_contributions_source'
        ),
    )
    op.create_index('idx_goal_contributions_goal_id', 'goal_contributions', ['goal_id'])
    op.create_index('idx_goal_contributions_date', 'goal_contributions', ['date'])


def downgrade() -> None:
    for table in (
        'goal_contributions',
        'goals',
        'bills',
        'budgets',
        'transactions',
        'recurring_patterns',
        'categories',
        'accounts',
    ):
        op.drop_table(table)
