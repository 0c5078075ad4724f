"""
백업 가져오기 서비스

흐름: 요청 형태 판별 -> (암호화 시 복호화) -> 구조/레코드 검증 -> Replace | Merge

- Replace: 8개 테이블 전체 삭제 후 재삽입, 하나의 트랜잭션 (실패 시 전체 롤백)
- Merge: 삭제 없음, 같은 id는 skip, 부모 참조가 없으면 레코드 단위 오류.
  레코드 단위 오류는 savepoint로 격리되어 나머지와 함께 커밋되고,
  잡히지 않은 예외만 바깥 트랜잭션 전체를 롤백한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping

from pydantic import ValidationError

from budget_tracker.core.exceptions import (
    BackupValidationError,
    DecryptionError,
    PasswordRequired,
    RecordError,
    ReferentialError,
    TransactionFailure,
)
from budget_tracker.schemas import (
    BackupSnapshot,
    ImportErrorItem,
    ImportMode,
    ImportOptions,
    ImportRequest,
    ImportResult,
    ImportSummary,
)
from budget_tracker.services import backup_crypto
from budget_tracker.services.backup_entities import (
    CATEGORIES,
    DELETE_ORDER,
    ENTITIES,
    RESTORE_ORDER,
    EntitySpec,
)
from budget_tracker.services.backup_validation import parse_snapshot, record_ref
from budget_tracker.services.entity_store import EntityStore


logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid backup file format"


# ---- Request resolution --------------------------------------------------

def options_errors(exc: ValidationError) -> list[ImportErrorItem]:
    """One ``backup``/``options`` error item per pydantic error."""
    return [
        ImportErrorItem(
            entity="backup",
            id="options",
            field=".".join(str(part) for part in err["loc"]) or None,
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def parse_import_options(raw: ImportOptions | Mapping[str, Any] | None) -> ImportOptions:
    """
    Raises:
        BackupValidationError: unknown mode or malformed options.
    """
    if isinstance(raw, ImportOptions):
        return raw
    try:
        return ImportOptions.model_validate(raw or {})
    except ValidationError as exc:
        raise BackupValidationError("Invalid import options", options_errors(exc)) from exc


def resolve_import_request(body: Any) -> ImportRequest:
    """Turn a raw request body into an ``ImportRequest``.

    ``{data, options}`` is the current form. A bare snapshot or envelope
    (anything carrying ``version`` or ``encrypted``) is the legacy form and
    always imports in replace mode.

    Raises:
        BackupValidationError: the body matches neither form, or its options
            are invalid.
    """
    if isinstance(body, ImportRequest):
        return body
    if isinstance(body, Mapping) and "data" in body and "options" in body:
        options = parse_import_options(body["options"])
        return ImportRequest(shape="options", payload=body["data"], options=options)
    if isinstance(body, Mapping) and ("version" in body or "encrypted" in body):
        return ImportRequest(shape="legacy", payload=body, options=ImportOptions(mode="replace"))
    raise BackupValidationError(
        INVALID_FORMAT_MESSAGE,
        [ImportErrorItem(entity="backup", id="parse", message=INVALID_FORMAT_MESSAGE)],
    )


# ---- Per-record outcome ----------------------------------------------------

@dataclass(frozen=True)
class RecordOutcome:
    """Result of applying one record during a merge."""

    status: Literal["added", "skipped", "failed"]
    error: ImportErrorItem | None = None

    @classmethod
    def added(cls) -> "RecordOutcome":
        return cls("added")

    @classmethod
    def skipped(cls) -> "RecordOutcome":
        return cls("skipped")

    @classmethod
    def failed(cls, exc: RecordError) -> "RecordOutcome":
        return cls(
            "failed",
            ImportErrorItem(entity=exc.entity, id=exc.record_id, field=exc.field, message=exc.message),
        )


def order_parents_first(records: Iterable[dict[str, Any]], parent_field: str = "parent_id") -> list[dict[str, Any]]:
    """Reorder so a record never precedes the parent it names.

    Records whose parent is outside the batch keep their relative order.
    Cycles are appended as-is and left for the store to reject.
    """
    pending = list(records)
    batch_ids = {record.get("id") for record in pending}
    placed: set[Any] = set()
    ordered: list[dict[str, Any]] = []
    while pending:
        remaining = []
        for record in pending:
            parent = record.get(parent_field)
            if parent is None or parent not in batch_ids or parent in placed or parent == record.get("id"):
                ordered.append(record)
                placed.add(record.get("id"))
            else:
                remaining.append(record)
        if len(remaining) == len(pending):
            ordered.extend(remaining)
            break
        pending = remaining
    return ordered


def _records_for(snapshot: BackupSnapshot, spec: EntitySpec) -> list[tuple[int, dict[str, Any]]]:
    """Records paired with their position in the snapshot collection."""
    records = getattr(snapshot.data, spec.kind)
    if spec is not CATEGORIES:
        return list(enumerate(records))
    # 부모 우선 정렬 후에도 에러 참조(#index)는 원래 위치를 가리킨다
    positions = {id(record): index for index, record in enumerate(records)}
    return [(positions[id(record)], record) for record in order_parents_first(records)]


# ---- Strategies ------------------------------------------------------------

class ReplaceStrategy:
    """Wipe all eight tables and load the snapshot, all in one transaction."""

    mode: ImportMode = "replace"

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def run(self, snapshot: BackupSnapshot) -> tuple[ImportSummary, list[ImportErrorItem]]:
        summary = ImportSummary()
        with self.store.atomic():
            for spec in DELETE_ORDER:
                self.store.delete_all(spec)
            for spec in RESTORE_ORDER:
                for index, record in _records_for(snapshot, spec):
                    self.store.insert(spec, record, ref=record_ref(record, index))
                    summary.bump(spec.summary_prefix, "added")
        return summary, []


class MergeStrategy:
    """Additive, id-deduplicated import.

    Existing ids are skipped, never updated. A record that references a
    missing parent, or that the store rejects, is reported and skipped
    while the rest of the batch continues.
    """

    mode: ImportMode = "merge"

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def run(self, snapshot: BackupSnapshot) -> tuple[ImportSummary, list[ImportErrorItem]]:
        summary = ImportSummary()
        errors: list[ImportErrorItem] = []
        with self.store.atomic():
            for spec in RESTORE_ORDER:
                for index, record in _records_for(snapshot, spec):
                    outcome = self.merge_record(spec, record, index)
                    if outcome.error is not None:
                        logger.warning(
                            "Merge rejected %s %s: %s", outcome.error.entity, outcome.error.id, outcome.error.message
                        )
                        errors.append(outcome.error)
                    else:
                        summary.bump(spec.summary_prefix, outcome.status)
        return summary, errors

    def merge_record(self, spec: EntitySpec, record: dict[str, Any], index: int) -> RecordOutcome:
        record_id = record.get("id")
        if self.store.exists(spec, record_id):
            return RecordOutcome.skipped()
        ref = record_ref(record, index)
        try:
            self._check_references(spec, record, ref)
            with self.store.savepoint():
                self.store.insert(spec, record, ref=ref)
        except RecordError as exc:
            return RecordOutcome.failed(exc)
        return RecordOutcome.added()

    def _check_references(self, spec: EntitySpec, record: dict[str, Any], ref: str) -> None:
        for reference in spec.references:
            value = record.get(reference.field)
            if value is None:
                if reference.required:
                    raise ReferentialError(
                        spec.label, ref, f"{spec.label} {ref} has no {reference.field}", field=reference.field
                    )
                continue
            if reference.parent == spec.kind and value == record.get("id"):
                # self-reference: the row satisfies its own foreign key on insert
                continue
            if not self.store.exists(reference.parent, value):
                parent_label = ENTITIES[reference.parent].label
                raise ReferentialError(
                    spec.label,
                    ref,
                    f"Referenced {parent_label} {value} ({reference.field}) does not exist",
                    field=reference.field,
                )


STRATEGIES: dict[str, type[ReplaceStrategy] | type[MergeStrategy]] = {
    "replace": ReplaceStrategy,
    "merge": MergeStrategy,
}


# ---- Service -----------------------------------------------------------------

class BackupImportService:
    """Validates incoming backups and restores them through an ``EntityStore``.

    Expected failures never raise; they come back as an ``ImportResult``
    with ``success=False`` and a populated ``errors`` list.
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def handle_request(self, body: Any) -> ImportResult:
        """Import from a raw request body (current or legacy shape)."""
        try:
            request = resolve_import_request(body)
        except BackupValidationError as exc:
            return self._finish(ImportResult(success=False, mode="replace", errors=list(exc.errors)))
        return self.import_backup(request.payload, request.options)

    def import_backup(
        self,
        payload: Any,
        options: ImportOptions | Mapping[str, Any] | None = None,
    ) -> ImportResult:
        try:
            options = parse_import_options(options)
        except BackupValidationError as exc:
            return self._finish(ImportResult(success=False, mode="replace", errors=list(exc.errors)))

        result = ImportResult(success=False, mode=options.mode)

        try:
            snapshot = parse_snapshot(self._unwrap(payload, options.password))
        except PasswordRequired as exc:
            result.errors.append(ImportErrorItem(entity="backup", id="password", field="password", message=exc.message))
            return self._finish(result)
        except DecryptionError as exc:
            result.errors.append(ImportErrorItem(entity="backup", id="decrypt", message=exc.message))
            return self._finish(result)
        except BackupValidationError as exc:
            result.errors.extend(exc.errors)
            return self._finish(result)

        strategy = STRATEGIES[options.mode](self.store)
        try:
            summary, errors = strategy.run(snapshot)
        except TransactionFailure as exc:
            result.errors.append(_transaction_error(exc))
            return self._finish(result)

        result.summary = summary
        result.errors.extend(errors)
        return self._finish(result)

    def _unwrap(self, payload: Any, password: str | None) -> Any:
        if backup_crypto.is_encrypted_payload(payload):
            return backup_crypto.decrypt_envelope(payload, password)
        return payload

    def _finish(self, result: ImportResult) -> ImportResult:
        result.success = not result.errors
        logger.info(
            "Import (%s) finished: success=%s added=%d skipped=%d errors=%d",
            result.mode,
            result.success,
            result.summary.total_added,
            result.summary.total_skipped,
            len(result.errors),
        )
        return result


def _transaction_error(exc: TransactionFailure) -> ImportErrorItem:
    cause = exc.__cause__
    if isinstance(cause, RecordError):
        return ImportErrorItem(entity=cause.entity, id=cause.record_id, field=cause.field, message=cause.message)
    return ImportErrorItem(entity="backup", id="transaction", message=exc.message)
