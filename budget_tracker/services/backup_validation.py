"""
Snapshot validation.

Two passes, both exhaustive: the structural pass reports every problem with
the version and the eight collections; the record pass (run only when the
structure is sound) reports every record missing a required field. Nothing
here touches the store.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping

from budget_tracker.core.exceptions import BackupValidationError
from budget_tracker.schemas import SUPPORTED_BACKUP_VERSIONS, BackupSnapshot, ImportErrorItem
from budget_tracker.services.backup_entities import ACCOUNTS, CATEGORIES, RESTORE_ORDER, TRANSACTIONS, EntitySpec


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


# (field, check, message)
RecordRule = tuple[str, Callable[[Any], bool], str]

REQUIRED_FIELDS: dict[str, tuple[RecordRule, ...]] = {
    TRANSACTIONS.kind: (
        ("id", _is_present, "Transaction is missing an id"),
        ("account_id", _is_present, "Transaction is missing account_id"),
        ("amount", _is_number, "Transaction amount must be a number"),
    ),
    ACCOUNTS.kind: (
        ("id", _is_present, "Account is missing an id"),
        ("name", _is_present, "Account is missing a name"),
    ),
    CATEGORIES.kind: (
        ("id", _is_present, "Category is missing an id"),
        ("name", _is_present, "Category is missing a name"),
    ),
}


_SCOPES = ("all", "transactions", "accounts", "categories")


def is_supported_version(version: Any) -> bool:
    return isinstance(version, int) and not isinstance(version, bool) and version in SUPPORTED_BACKUP_VERSIONS


def validate_structure(payload: Any) -> list[ImportErrorItem]:
    if not isinstance(payload, Mapping):
        return [ImportErrorItem(entity="backup", id="structure", message="Backup must be a JSON object")]

    errors: list[ImportErrorItem] = []
    version = payload.get("version")
    if not is_supported_version(version):
        errors.append(
            ImportErrorItem(
                entity="backup",
                id="version",
                field="version",
                message=f"Unsupported backup version: {version!r}",
            )
        )

    data = payload.get("data")
    if not isinstance(data, Mapping):
        errors.append(ImportErrorItem(entity="backup", id="data", field="data", message="Missing or invalid: data"))
        return errors

    for spec in RESTORE_ORDER:
        if not isinstance(data.get(spec.wire_key), list):
            errors.append(
                ImportErrorItem(
                    entity="backup",
                    id=spec.wire_key,
                    field=spec.wire_key,
                    message=f"Missing or invalid: {spec.wire_key}",
                )
            )
    return errors


def record_ref(record: Any, index: int) -> str:
    """Identifier used in error items: the record id, else its position."""
    if isinstance(record, Mapping) and _is_present(record.get("id")):
        return str(record["id"])
    return f"#{index}"


def _validate_collection(spec: EntitySpec, records: list[Any]) -> list[ImportErrorItem]:
    errors: list[ImportErrorItem] = []
    rules = REQUIRED_FIELDS.get(spec.kind, ())
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            errors.append(
                ImportErrorItem(entity=spec.label, id=f"#{index}", message=f"{spec.label} record must be an object")
            )
            continue
        for field, check, message in rules:
            if not check(record.get(field)):
                errors.append(
                    ImportErrorItem(entity=spec.label, id=record_ref(record, index), field=field, message=message)
                )
    return errors


def validate_records(payload: Mapping[str, Any]) -> list[ImportErrorItem]:
    data = payload["data"]
    errors: list[ImportErrorItem] = []
    for spec in RESTORE_ORDER:
        errors.extend(_validate_collection(spec, data[spec.wire_key]))
    return errors


def validate_snapshot(payload: Any) -> list[ImportErrorItem]:
    """All validation errors for ``payload``; empty when it can be imported."""
    errors = validate_structure(payload)
    if errors:
        return errors
    return validate_records(payload)


def parse_snapshot(payload: Any) -> BackupSnapshot:
    """Validate and convert to a ``BackupSnapshot``.

    Raises:
        BackupValidationError: carrying every error found.
    """
    errors = validate_snapshot(payload)
    if errors:
        raise BackupValidationError(f"Backup failed validation with {len(errors)} error(s)", errors)
    # metadata, exportedAt and scope are informational and may be absent in older files
    scope = payload.get("scope")
    return BackupSnapshot.model_validate(
        {
            "version": payload["version"],
            "exportedAt": str(payload.get("exportedAt") or ""),
            "scope": scope if scope in _SCOPES else "all",
            "data": {spec.wire_key: list(payload["data"][spec.wire_key]) for spec in RESTORE_ORDER},
        }
    )
