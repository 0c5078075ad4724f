from __future__ import annotations

from sqlalchemy.orm import Session

from .core.database import SessionLocal
from .models import Category, CategoryType, now_ms


# (id, name, type, icon, color)
DEFAULT_CATEGORIES: tuple[tuple[str, str, CategoryType, str, str], ...] = (
    ("cat-income-salary", "Salary", CategoryType.INCOME, "💰", "#22c55e"),
    ("cat-income-freelance", "Freelance", CategoryType.INCOME, "💼", "#16a34a"),
    ("cat-income-investments", "Investments", CategoryType.INCOME, "📈", "#15803d"),
    ("cat-income-other", "Other Income", CategoryType.INCOME, "💵", "#14532d"),
    ("cat-expense-housing", "Housing", CategoryType.EXPENSE, "🏠", "#ef4444"),
    ("cat-expense-utilities", "Utilities", CategoryType.EXPENSE, "💡", "#f97316"),
    ("cat-expense-groceries", "Groceries", CategoryType.EXPENSE, "🛒", "#eab308"),
    ("cat-expense-transportation", "Transportation", CategoryType.EXPENSE, "🚗", "#84cc16"),
    ("cat-expense-entertainment", "Entertainment", CategoryType.EXPENSE, "🎬", "#06b6d4"),
    ("cat-expense-dining", "Dining Out", CategoryType.EXPENSE, "🍽️", "#8b5cf6"),
    ("cat-expense-shopping", "Shopping", CategoryType.EXPENSE, "🛍️", "#ec4899"),
    ("cat-expense-health", "Health", CategoryType.EXPENSE, "🏥", "#f43f5e"),
    ("cat-expense-subscriptions", "Subscriptions", CategoryType.EXPENSE, "📱", "#6366f1"),
    ("cat-expense-other", "Other Expenses", CategoryType.EXPENSE, "📦", "#64748b"),
)


def seed_default_categories(db: Session) -> int:
    """Insert any missing default categories. Returns how many were created."""
    timestamp = now_ms()
    created = 0
    for cat_id, name, cat_type, icon, color in DEFAULT_CATEGORIES:
        if db.get(Category, cat_id) is not None:
            continue
        db.add(
            Category(
                id=cat_id,
                name=name,
                type=cat_type.value,
                icon=icon,
                color=color,
                parent_id=None,
                created_at=timestamp,
            )
        )
        created += 1
    db.flush()
    return created


def seed() -> None:
    db: Session = SessionLocal()
    try:
        # 기본 카테고리 (이미 있으면 건너뜀)
        seed_default_categories(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
