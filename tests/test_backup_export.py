"""
BackupExportService 스냅샷/옵션 테스트
"""

import pytest

from budget_tracker.core.exceptions import BackupError, ExportFailed, InvalidExportOptions, PasswordRequired
from budget_tracker.services import BackupExportService
from budget_tracker.services.backup_crypto import decrypt_envelope

from conftest import AUG_01, FIXED_NOW, JUL_01, JUL_10


COLLECTION_KEYS = {
    "accounts",
    "categories",
    "transactions",
    "bills",
    "goals",
    "goalContributions",
    "budgets",
    "recurringPatterns",
}


class BrokenStore:
    def select_all(self, kind):
        raise RuntimeError("disk I/O error")


class TestExportFull:
    def test_snapshot_header(self, export_service, populated_store):
        snap = export_service.export_full()
        assert snap["version"] == 1
        assert snap["exportedAt"] == "2024-07-15T09:30:00.000Z"
        assert snap["scope"] == "all"
        assert set(snap["data"]) == COLLECTION_KEYS

    def test_every_collection_exported(self, export_service, populated_store, dataset):
        snap = export_service.export_full()
        assert len(snap["data"]["categories"]) == len(dataset["categories"])
        assert len(snap["data"]["goalContributions"]) == 1
        assert len(snap["data"]["recurringPatterns"]) == 1
        assert len(snap["data"]["budgets"]) == 1

    def test_metadata_matches_data(self, export_service, populated_store):
        snap = export_service.export_full()
        assert snap["metadata"] == {
            "totalAccounts": 2,
            "totalTransactions": 3,
            "totalGoals": 1,
            "totalBills": 1,
        }

    def test_empty_store(self, export_service):
        snap = export_service.export_full()
        assert all(snap["data"][key] == [] for key in COLLECTION_KEYS)
        assert snap["metadata"]["totalAccounts"] == 0

    def test_records_keep_column_values(self, export_service, populated_store, dataset):
        snap = export_service.export_full()
        rent = next(tx for tx in snap["data"]["transactions"] if tx["id"] == "tx-rent")
        assert rent["account_id"] == "acc-checking"
        assert rent["recurring_pattern_id"] == "rp-monthly"
        assert rent["date"] == JUL_01


class TestExportScoped:
    def test_accounts_scope(self, export_service, populated_store):
        snap = export_service.export_scoped("accounts")
        assert snap["scope"] == "accounts"
        assert len(snap["data"]["accounts"]) == 2
        assert snap["data"]["transactions"] == []
        assert snap["data"]["categories"] == []
        assert snap["metadata"]["totalAccounts"] == 2
        assert snap["metadata"]["totalTransactions"] == 0

    def test_categories_scope(self, export_service, populated_store):
        snap = export_service.export_scoped("categories")
        assert len(snap["data"]["categories"]) == 3
        assert snap["data"]["accounts"] == []

    def test_transactions_inclusive_range(self, export_service, populated_store):
        snap = export_service.export_scoped("transactions", {"startDate": JUL_01, "endDate": JUL_10})
        ids = sorted(tx["id"] for tx in snap["data"]["transactions"])
        assert ids == ["tx-rent", "tx-salary"]
        assert snap["metadata"]["totalTransactions"] == 2
        assert snap["data"]["accounts"] == []

    def test_range_excludes_out_of_bounds(self, export_service, populated_store):
        snap = export_service.export_scoped("transactions", {"startDate": JUL_10 + 1, "endDate": AUG_01 - 1})
        assert snap["data"]["transactions"] == []

    def test_unknown_scope(self, export_service):
        with pytest.raises(ValueError):
            export_service.export_scoped("everything")

    def test_read_failure_raises_export_failed(self):
        service = BackupExportService(BrokenStore(), clock=lambda: FIXED_NOW)
        with pytest.raises(ExportFailed):
            service.export_full()
        with pytest.raises(ExportFailed):
            service.export_csv()


class TestExportWithOptions:
    def test_default_is_json_snapshot(self, export_service, populated_store):
        artifact = export_service.export_with_options()
        assert artifact.media_type == "application/json"
        assert artifact.filename == "budget-backup-2024-07-15.json"
        assert artifact.content["metadata"]["totalTransactions"] == 3

    def test_csv(self, export_service, populated_store):
        artifact = export_service.export_with_options({"format": "csv", "dateFormat": "YYYY-MM-DD"})
        assert artifact.media_type == "text/csv"
        assert artifact.filename == "budget-transactions-2024-07-15.csv"
        assert artifact.content.splitlines()[1].startswith("2024-08-01,")

    def test_encrypted_requires_password(self, export_service, populated_store):
        with pytest.raises(PasswordRequired):
            export_service.export_with_options({"encrypted": True})

    def test_encrypted_round_trip(self, export_service, populated_store):
        artifact = export_service.export_with_options({"encrypted": True, "password": "pw", "scope": "accounts"})
        envelope = artifact.content
        assert envelope["encrypted"] is True
        assert artifact.filename.endswith(".json")

        plain = decrypt_envelope(envelope, "pw")
        assert plain == export_service.export_scoped("accounts")


class TestInvalidExportOptions:
    def test_one_ended_date_range(self, export_service):
        with pytest.raises(InvalidExportOptions) as exc_info:
            export_service.export_with_options({"dateRange": {"startDate": JUL_01}})
        assert isinstance(exc_info.value, BackupError)
        fields = [err["field"] for err in exc_info.value.details["errors"]]
        assert any("endDate" in field for field in fields)

    def test_unknown_format(self, export_service):
        with pytest.raises(InvalidExportOptions) as exc_info:
            export_service.export_with_options({"format": "xml"})
        assert exc_info.value.message == "Invalid export options"

    def test_csv_range_without_end(self, export_service):
        with pytest.raises(InvalidExportOptions):
            export_service.export_csv({"startDate": 1})
