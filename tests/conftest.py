from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from typing import Generator, Any

# 패키지 import 전에 설정: 기본 data/ 디렉터리에 DB 파일을 만들지 않도록
_fd, _app_db_path = tempfile.mkstemp(prefix="budget_app_", suffix=".sqlite3")
os.close(_fd)
os.environ.setdefault("BUDGET_DATABASE_URL", f"sqlite:///{_app_db_path}")
os.environ.setdefault("BUDGET_TIMEZONE", "UTC")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from budget_tracker.core.database import Base, install_sqlite_hooks
from budget_tracker import models  # noqa: F401
from budget_tracker.services import BackupExportService, BackupImportService, EntityStore


FIXED_NOW = datetime(2024, 7, 15, 9, 30, 0, tzinfo=timezone.utc)

# 2024-07-01 / 2024-07-10 / 2024-08-01 00:00 UTC (epoch ms)
JUL_01 = 1719792000000
JUL_10 = 1720569600000
AUG_01 = 1722470400000
CREATED = 1719000000000


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # 사용자 환경을 건드리지 않도록 임시 파일 SQLite 사용
    fd, path = tempfile.mkstemp(prefix="budget_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    for suffix in ("", "-wal", "-shm"):
        try:
            os.remove(path + suffix)
        except OSError:
            pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_engine(test_db_url, connect_args={"check_same_thread": False})
    install_sqlite_hooks(eng)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # 테이블 데이터 정리 (자식 테이블부터)
        with engine.begin() as conn:
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())


@pytest.fixture()
def store(db_session) -> EntityStore:
    return EntityStore(db_session)


@pytest.fixture()
def export_service(store) -> BackupExportService:
    return BackupExportService(store, clock=lambda: FIXED_NOW)


@pytest.fixture()
def import_service(store) -> BackupImportService:
    return BackupImportService(store)


def make_dataset() -> dict[str, list[dict[str, Any]]]:
    """One row or more in every table, wired together by id."""
    return {
        "categories": [
            {"id": "cat-housing", "name": "Housing", "type": "expense", "icon": "🏠", "color": "#ef4444",
             "parent_id": None, "created_at": CREATED},
            {"id": "cat-rent", "name": "Rent", "type": "expense", "icon": None, "color": None,
             "parent_id": "cat-housing", "created_at": CREATED},
            {"id": "cat-salary", "name": "Salary", "type": "income", "icon": "💰", "color": "#22c55e",
             "parent_id": None, "created_at": CREATED},
        ],
        "accounts": [
            {"id": "acc-checking", "name": "Checking", "type": "checking", "balance": 2500.0, "currency": "USD",
             "is_active": 1, "created_at": CREATED, "updated_at": CREATED},
            {"id": "acc-savings", "name": "Savings", "type": "savings", "balance": 10000.0, "currency": "USD",
             "is_active": 1, "created_at": CREATED, "updated_at": CREATED},
        ],
        "recurring_patterns": [
            {"id": "rp-monthly", "frequency": "monthly", "interval": 1, "day_of_week": None, "day_of_month": 1,
             "month_of_year": None, "start_date": JUL_01, "end_date": None, "last_processed": None,
             "created_at": CREATED},
        ],
        "transactions": [
            {"id": "tx-rent", "account_id": "acc-checking", "category_id": "cat-rent", "amount": 1234.5,
             "type": "expense", "date": JUL_01, "description": "Rent, July", "notes": None, "is_recurring": 1,
             "recurring_pattern_id": "rp-monthly", "created_at": CREATED, "updated_at": CREATED},
            {"id": "tx-salary", "account_id": "acc-checking", "category_id": "cat-salary", "amount": 4000,
             "type": "income", "date": JUL_10, "description": "Paycheck", "notes": "net",
             "is_recurring": 0, "recurring_pattern_id": None, "created_at": CREATED, "updated_at": CREATED},
            {"id": "tx-move", "account_id": "acc-savings", "category_id": None, "amount": 250,
             "type": "transfer", "date": AUG_01, "description": None, "notes": None, "is_recurring": 0,
             "recurring_pattern_id": None, "created_at": CREATED, "updated_at": CREATED},
        ],
        "bills": [
            {"id": "bill-power", "name": "Power", "category_id": "cat-housing", "account_id": "acc-checking",
             "amount": 80.0, "due_day": 15, "frequency": "monthly", "type": "expense", "next_due_date": AUG_01,
             "reminder_days": 3, "is_active": 1, "is_paid": 0, "created_at": CREATED, "updated_at": CREATED},
        ],
        "budgets": [
            {"id": "bud-housing", "category_id": "cat-housing", "amount": 1500.0, "period": "monthly",
             "start_date": JUL_01, "end_date": None, "created_at": CREATED, "updated_at": CREATED},
        ],
        "goals": [
            {"id": "goal-trip", "name": "Trip", "description": "Summer trip", "target_amount": 3000.0,
             "current_amount": 500.0, "deadline": AUG_01, "priority": 3, "icon": "✈️", "color": "#3b82f6",
             "status": "active", "created_at": CREATED, "updated_at": CREATED},
        ],
        "goal_contributions": [
            {"id": "gc-1", "goal_id": "goal-trip", "amount": 500.0, "source": "manual", "notes": None,
             "date": JUL_10, "created_at": CREATED},
        ],
    }


def make_snapshot(data: dict[str, list[dict[str, Any]]] | None = None, **overrides: Any) -> dict[str, Any]:
    """Wire-format snapshot (camelCase collection keys) around ``data``."""
    data = make_dataset() if data is None else data
    snapshot = {
        "version": 1,
        "exportedAt": "2024-07-15T09:30:00.000Z",
        "scope": "all",
        "data": {
            "accounts": data.get("accounts", []),
            "categories": data.get("categories", []),
            "transactions": data.get("transactions", []),
            "bills": data.get("bills", []),
            "goals": data.get("goals", []),
            "goalContributions": data.get("goal_contributions", []),
            "budgets": data.get("budgets", []),
            "recurringPatterns": data.get("recurring_patterns", []),
        },
    }
    snapshot.update(overrides)
    return snapshot


@pytest.fixture()
def populated_store(store: EntityStore, db_session) -> EntityStore:
    """Store with the sample dataset committed."""
    dataset = make_dataset()
    for kind in ("categories", "accounts", "recurring_patterns", "transactions",
                 "bills", "budgets", "goals", "goal_contributions"):
        for record in dataset[kind]:
            store.insert(kind, record)
    db_session.commit()
    return store


@pytest.fixture()
def dataset() -> dict[str, list[dict[str, Any]]]:
    return make_dataset()


@pytest.fixture()
def snapshot() -> dict[str, Any]:
    return make_snapshot()
