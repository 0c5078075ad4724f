"""
백업 내보내기 서비스

책임:
- 전체/범위 지정 스냅샷 생성 (메타데이터는 항상 실제 길이에서 계산)
- 거래 내역 CSV 렌더링
- 비밀번호 기반 암호화 envelope 생성
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from budget_tracker.core.exceptions import ExportFailed, InvalidExportOptions, PasswordRequired
from budget_tracker.schemas import (
    BACKUP_VERSION,
    DEFAULT_DATE_FORMAT,
    BackupCollections,
    BackupMetadata,
    BackupScope,
    BackupSnapshot,
    DateRange,
    ExportOptions,
)
from budget_tracker.services import backup_crypto
from budget_tracker.services.backup_entities import RESTORE_ORDER
from budget_tracker.services.entity_store import EntityStore
from budget_tracker.utils.formatting import format_amount, format_epoch_date


logger = logging.getLogger(__name__)

CSV_HEADER = ("Date", "Description", "Amount", "Type", "Account", "Category", "Notes")
UNKNOWN_ACCOUNT = "Unknown"

# Collections each scope reads; everything else stays an empty list.
_SCOPE_COLLECTIONS: dict[str, tuple[str, ...]] = {
    "all": tuple(spec.kind for spec in RESTORE_ORDER),
    "transactions": ("transactions",),
    "accounts": ("accounts",),
    "categories": ("categories",),
}


@dataclass(frozen=True)
class ExportArtifact:
    """Export output plus the hints a transport layer needs to serve it."""

    content: dict[str, Any] | str
    media_type: str
    filename: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BackupExportService:
    """Builds snapshots and CSV documents from an ``EntityStore``."""

    def __init__(self, store: EntityStore, clock: Callable[[], datetime] | None = None) -> None:
        """
        Args:
            store: 읽기 대상 엔티티 저장소
            clock: 현재 시각 제공자 (테스트에서 고정 시각 주입용)
        """
        self.store = store
        self.clock = clock or _utc_now

    # ---- Snapshots ---------------------------------------------------------

    def export_full(self) -> dict[str, Any]:
        return self.export_scoped("all")

    def export_scoped(
        self,
        scope: BackupScope = "all",
        date_range: DateRange | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Snapshot limited to ``scope``.

        With ``scope="transactions"`` (or ``"all"`` plus a range) only
        transactions dated inside the inclusive range are kept.
        """
        if scope not in _SCOPE_COLLECTIONS:
            raise ValueError(f"Unsupported export scope: {scope}")
        date_range = _coerce_range(date_range)

        collections = self._read(_SCOPE_COLLECTIONS[scope])
        if date_range is not None and "transactions" in collections:
            collections["transactions"] = [
                tx for tx in collections["transactions"] if date_range.contains(tx.get("date"))
            ]

        data = BackupCollections(**collections)
        snapshot = BackupSnapshot(
            version=BACKUP_VERSION,
            exported_at=_iso_timestamp(self.clock()),
            scope=scope,
            data=data,
            metadata=BackupMetadata.from_collections(data),
        )
        meta = snapshot.metadata
        logger.info(
            "Exported %s snapshot: %d accounts, %d transactions, %d goals, %d bills",
            scope,
            meta.total_accounts,
            meta.total_transactions,
            meta.total_goals,
            meta.total_bills,
        )
        return snapshot.to_payload()

    # ---- CSV ---------------------------------------------------------------

    def export_csv(
        self,
        date_range: DateRange | Mapping[str, Any] | None = None,
        date_format: str | None = DEFAULT_DATE_FORMAT,
    ) -> str:
        """Render transactions as CSV, newest first, ids resolved to names."""
        date_range = _coerce_range(date_range)
        collections = self._read(("transactions", "accounts", "categories"))

        account_names = {acc.get("id"): acc.get("name") for acc in collections["accounts"]}
        category_names = {cat.get("id"): cat.get("name") for cat in collections["categories"]}

        transactions = collections["transactions"]
        if date_range is not None:
            transactions = [tx for tx in transactions if date_range.contains(tx.get("date"))]
        transactions = sorted(transactions, key=lambda tx: tx.get("date") or 0, reverse=True)

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for tx in transactions:
            writer.writerow(
                (
                    format_epoch_date(tx.get("date"), date_format),
                    tx.get("description") or "",
                    format_amount(tx.get("amount")),
                    tx.get("type") or "",
                    account_names.get(tx.get("account_id")) or UNKNOWN_ACCOUNT,
                    category_names.get(tx.get("category_id")) or "",
                    tx.get("notes") or "",
                )
            )
        logger.info("Exported %d transactions as CSV", len(transactions))
        return buffer.getvalue()

    # ---- Encryption --------------------------------------------------------

    def encrypt(self, snapshot: Mapping[str, Any], password: str | None) -> dict[str, Any]:
        return backup_crypto.encrypt_snapshot(snapshot, password)

    def decrypt(self, envelope: Mapping[str, Any], password: str | None) -> dict[str, Any]:
        return backup_crypto.decrypt_envelope(envelope, password)

    # ---- Request-level entry point ----------------------------------------

    def export_with_options(self, options: ExportOptions | Mapping[str, Any] | None = None) -> ExportArtifact:
        """Serve an export request: CSV, plain snapshot, or encrypted envelope.

        Raises:
            InvalidExportOptions: options (or their date range) do not parse.
            PasswordRequired: encryption requested without a password.
        """
        if not isinstance(options, ExportOptions):
            options = _validate(ExportOptions, options or {}, "Invalid export options")

        stamp = self.clock().astimezone(timezone.utc).strftime("%Y-%m-%d")

        if options.format == "csv":
            text = self.export_csv(options.date_range, options.date_format)
            return ExportArtifact(text, "text/csv", f"budget-transactions-{stamp}.csv")

        if options.encrypted and not options.password:
            raise PasswordRequired("A password is required for an encrypted export")

        snapshot = self.export_scoped(options.scope, options.date_range)
        if options.encrypted:
            snapshot = self.encrypt(snapshot, options.password)
        return ExportArtifact(snapshot, "application/json", f"budget-backup-{stamp}.json")

    # ---- Internals -----------------------------------------------------------

    def _read(self, kinds: tuple[str, ...]) -> dict[str, list[dict[str, Any]]]:
        try:
            return {kind: self.store.select_all(kind) for kind in kinds}
        except Exception as exc:  # noqa: BLE001
            logger.error("Export failed while reading %s", ", ".join(kinds), exc_info=True)
            raise ExportFailed("Export failed", {"collections": list(kinds)}) from exc


def _coerce_range(value: DateRange | Mapping[str, Any] | None) -> DateRange | None:
    if value is None or isinstance(value, DateRange):
        return value
    return _validate(DateRange, value, "Invalid date range")


def _validate(model: Any, raw: Any, message: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise InvalidExportOptions(message, {"errors": errors}) from exc
