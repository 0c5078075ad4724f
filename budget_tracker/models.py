from __future__ import annotations

import time
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .core.database import Base


def now_ms() -> int:
    """Current time as epoch milliseconds (the unit every date column uses)."""
    return int(time.time() * 1000)


def _in_list(column: str, choices: type[Enum]) -> str:
    values = ", ".join(f"'{member.value}'" for member in choices)
    return f"{column} IN ({values})"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    CASH = "cash"
    INVESTMENT = "investment"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TxnType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class RecurringFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BillFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ContributionSource(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    ADJUSTMENT = "adjustment"


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    balance: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String, default="USD", nullable=False)
    # 0/1 integers rather than booleans so exported snapshots round-trip unchanged
    is_active: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("type", AccountType), name="ck_accounts_type"),
    )


class Category(Base):
    """Income/expense category; ``parent_id`` builds an optional hierarchy."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    icon: Mapped[str | None] = mapped_column(String)
    color: Mapped[str | None] = mapped_column(String)
    parent_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("type", CategoryType), name="ck_categories_type"),
        Index("idx_categories_type", "type"),
    )


class RecurringPattern(Base):
    __tablename__ = "recurring_patterns"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    frequency: Mapped[str] = mapped_column(String, nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    day_of_week: Mapped[int | None] = mapped_column(Integer)
    day_of_month: Mapped[int | None] = mapped_column(Integer)
    month_of_year: Mapped[int | None] = mapped_column(Integer)
    start_date: Mapped[int] = mapped_column(Integer, nullable=False)
    end_date: Mapped[int | None] = mapped_column(Integer)
    last_processed: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("frequency", RecurringFrequency), name="ck_recurring_patterns_frequency"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_recurring_patterns_dow"),
        CheckConstraint("day_of_month >= 1 AND day_of_month <= 31", name="ck_recurring_patterns_dom"),
        CheckConstraint("month_of_year >= 1 AND month_of_year <= 12", name="ck_recurring_patterns_moy"),
    )


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    is_recurring: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recurring_pattern_id: Mapped[str | None] = mapped_column(
        ForeignKey("recurring_patterns.id", ondelete="SET NULL")
    )
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("type", TxnType), name="ck_transactions_type"),
        Index("idx_transactions_account_id", "account_id"),
        Index("idx_transactions_category_id", "category_id"),
        Index("idx_transactions_date", "date"),
        Index("idx_transactions_type", "type"),
    )


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    period: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[int] = mapped_column(Integer, nullable=False)
    end_date: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("period", BudgetPeriod), name="ck_budgets_period"),
        Index("idx_budgets_category_id", "category_id"),
    )


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))
    account_id: Mapped[str | None] = mapped_column(ForeignKey("accounts.id", ondelete="SET NULL"))
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False)
    frequency: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, default=CategoryType.EXPENSE.value, nullable=False)
    next_due_date: Mapped[int] = mapped_column(Integer, nullable=False)
    reminder_days: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    is_active: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_paid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint("due_day >= 1 AND due_day <= 31", name="ck_bills_due_day"),
        CheckConstraint(_in_list("frequency", BillFrequency), name="ck_bills_frequency"),
        CheckConstraint(_in_list("type", CategoryType), name="ck_bills_type"),
        Index("idx_bills_next_due_date", "next_due_date"),
        Index("idx_bills_type", "type"),
    )


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    target_amount: Mapped[float] = mapped_column(Float, nullable=False)
    current_amount: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    deadline: Mapped[int | None] = mapped_column(Integer)
    priority: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    icon: Mapped[str | None] = mapped_column(String, default="🎯")
    color: Mapped[str | None] = mapped_column(String, default="#3b82f6")
    status: Mapped[str] = mapped_column(String, default=GoalStatus.ACTIVE.value, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint("priority >= 1 AND priority <= 10", name="ck_goals_priority"),
        CheckConstraint(_in_list("status", GoalStatus), name="ck_goals_status"),
        Index("idx_goals_status", "status"),
        Index("idx_goals_priority", "priority"),
        Index("idx_goals_deadline", "deadline"),
    )


class GoalContribution(Base):
    __tablename__ = "goal_contributions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    goal_id: Mapped[str] = mapped_column(ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str | None] = mapped_column(String)
    notes: Mapped[str | None] = mapped_column(Text)
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, default=now_ms, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("source", ContributionSource), name="ck_goal_contributions_source"),
        Index("idx_goal_contributions_goal_id", "goal_id"),
        Index("idx_goal_contributions_date", "date"),
    )
