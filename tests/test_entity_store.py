"""
EntityStore 테스트
"""

import pytest

from budget_tracker.core.exceptions import PersistenceError, TransactionFailure
from budget_tracker.services.backup_entities import ACCOUNTS, DELETE_ORDER, ENTITIES, RESTORE_ORDER


class TestEntityRegistry:
    def test_every_table_registered_once(self):
        assert len(ENTITIES) == 8
        assert {spec.kind for spec in RESTORE_ORDER} == {spec.kind for spec in DELETE_ORDER}

    def test_delete_order_is_reverse_dependency(self):
        kinds = [spec.kind for spec in DELETE_ORDER]
        assert kinds.index("goal_contributions") < kinds.index("goals")
        assert kinds.index("transactions") < kinds.index("accounts")
        assert kinds.index("budgets") < kinds.index("categories")

    def test_wire_keys_are_camel_case(self):
        assert ENTITIES["goal_contributions"].wire_key == "goalContributions"
        assert ENTITIES["recurring_patterns"].wire_key == "recurringPatterns"
        assert ENTITIES["accounts"].wire_key == "accounts"


class TestEntityStore:
    """테이블 단위 읽기/쓰기"""

    def test_select_all_returns_column_dicts(self, populated_store):
        accounts = populated_store.select_all("accounts")
        assert sorted(a["id"] for a in accounts) == ["acc-checking", "acc-savings"]
        checking = next(a for a in accounts if a["id"] == "acc-checking")
        assert checking["name"] == "Checking"
        assert checking["is_active"] == 1

    def test_exists(self, populated_store):
        assert populated_store.exists(ACCOUNTS, "acc-checking") is True
        assert populated_store.exists("accounts", "acc-missing") is False
        assert populated_store.exists("accounts", None) is False

    def test_insert_ignores_unknown_keys(self, store, db_session):
        store.insert(
            "accounts",
            {"id": "a1", "name": "Wallet", "type": "cash", "nickname": "ignored", "created_at": 1, "updated_at": 1},
        )
        db_session.commit()
        row = store.select_all("accounts")[0]
        assert "nickname" not in row
        assert row["currency"] == "USD"

    def test_insert_missing_parent_raises_persistence_error(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.insert(
                "transactions",
                {"id": "t1", "account_id": "nope", "amount": 1, "type": "expense", "date": 0,
                 "created_at": 0, "updated_at": 0},
            )
        assert exc_info.value.entity == "transaction"
        assert exc_info.value.record_id == "t1"
        assert "Failed to insert transaction t1" in exc_info.value.message

    def test_count_and_delete_all(self, populated_store, db_session):
        assert populated_store.count("transactions") == 3
        for spec in DELETE_ORDER:
            populated_store.delete_all(spec)
        db_session.commit()
        assert all(populated_store.count(spec) == 0 for spec in RESTORE_ORDER)


class TestTransactions:
    """atomic / savepoint 동작"""

    def test_atomic_commits(self, store):
        with store.atomic():
            store.insert("goals", {"id": "g1", "name": "Car", "target_amount": 100, "created_at": 0, "updated_at": 0})
        assert store.count("goals") == 1

    def test_atomic_rolls_back_everything(self, populated_store):
        with pytest.raises(TransactionFailure):
            with populated_store.atomic():
                for spec in DELETE_ORDER:
                    populated_store.delete_all(spec)
                raise RuntimeError("boom")
        assert populated_store.count("accounts") == 2
        assert populated_store.count("transactions") == 3

    def test_atomic_keeps_original_cause(self, store):
        with pytest.raises(TransactionFailure) as exc_info:
            with store.atomic():
                store.insert("accounts", {"id": "x", "name": "Bad", "type": "crypto", "created_at": 0, "updated_at": 0})
        assert isinstance(exc_info.value.__cause__, PersistenceError)

    def test_savepoint_undoes_only_its_block(self, store):
        with store.atomic():
            store.insert("goals", {"id": "g1", "name": "Car", "target_amount": 100, "created_at": 0, "updated_at": 0})
            with pytest.raises(PersistenceError):
                with store.savepoint():
                    store.insert("goals", {"id": "g2", "name": "Bad", "target_amount": 1, "priority": 99,
                                           "created_at": 0, "updated_at": 0})
        assert [g["id"] for g in store.select_all("goals")] == ["g1"]

    def test_insert_failure_uses_caller_ref(self, store):
        record = {"id": None, "name": "X", "target_amount": 1, "created_at": 0, "updated_at": 0}
        with pytest.raises(PersistenceError) as exc_info:
            store.insert("goals", record, ref="#4")
        assert exc_info.value.record_id == "#4"

        with pytest.raises(PersistenceError) as exc_info:
            store.insert("goals", record)
        assert exc_info.value.record_id == "?"
