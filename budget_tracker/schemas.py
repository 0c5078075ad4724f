from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


BACKUP_VERSION = 1
SUPPORTED_BACKUP_VERSIONS: frozenset[int] = frozenset({BACKUP_VERSION})
ENVELOPE_ALGORITHM = "aes-256-gcm"

BackupScope = Literal["all", "transactions", "accounts", "categories"]
ImportMode = Literal["replace", "merge"]
ExportFormat = Literal["json", "csv"]

DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")
DEFAULT_DATE_FORMAT = "MM/DD/YYYY"


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Snapshot -----------------------------------------------------------

Record = dict[str, Any]


class BackupCollections(CamelModel):
    accounts: list[Record] = Field(default_factory=list)
    categories: list[Record] = Field(default_factory=list)
    transactions: list[Record] = Field(default_factory=list)
    bills: list[Record] = Field(default_factory=list)
    goals: list[Record] = Field(default_factory=list)
    goal_contributions: list[Record] = Field(default_factory=list)
    budgets: list[Record] = Field(default_factory=list)
    recurring_patterns: list[Record] = Field(default_factory=list)


class BackupMetadata(CamelModel):
    total_accounts: int = 0
    total_transactions: int = 0
    total_goals: int = 0
    total_bills: int = 0

    @classmethod
    def from_collections(cls, data: BackupCollections) -> "BackupMetadata":
        return cls(
            total_accounts=len(data.accounts),
            total_transactions=len(data.transactions),
            total_goals=len(data.goals),
            total_bills=len(data.bills),
        )


class BackupSnapshot(CamelModel):
    """Versioned serialization of the whole dataset (or one scope of it)."""

    version: int = BACKUP_VERSION
    exported_at: str = ""
    scope: BackupScope = "all"
    data: BackupCollections = Field(default_factory=BackupCollections)
    metadata: BackupMetadata = Field(default_factory=BackupMetadata)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class EncryptedEnvelope(CamelModel):
    version: int = BACKUP_VERSION
    encrypted: Literal[True] = True
    algorithm: Literal["aes-256-gcm"] = ENVELOPE_ALGORITHM
    salt: str
    iv: str
    auth_tag: str
    data: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---- Export options -----------------------------------------------------

class DateRange(CamelModel):
    """Inclusive range in epoch milliseconds."""

    start_date: int
    end_date: int

    def contains(self, value: Any) -> bool:
        if value is None:
            return False
        return self.start_date <= value <= self.end_date


class ExportOptions(CamelModel):
    format: ExportFormat = "json"
    scope: BackupScope = "all"
    date_range: Optional[DateRange] = None
    encrypted: bool = False
    password: Optional[str] = None
    # unknown strings are accepted here and fall back when rendering
    date_format: str = DEFAULT_DATE_FORMAT


# ---- Import request / result -------------------------------------------

class ImportOptions(CamelModel):
    mode: ImportMode = "replace"
    password: Optional[str] = None


class ImportRequest(BaseModel):
    """Import body resolved once at the boundary.

    ``shape`` records which wire form arrived: ``options`` for
    ``{data, options}`` and ``legacy`` for a bare snapshot or envelope.
    """

    shape: Literal["options", "legacy"]
    payload: Any
    options: ImportOptions = Field(default_factory=ImportOptions)


class ImportErrorItem(BaseModel):
    entity: str
    id: str
    field: Optional[str] = None
    message: str


class ImportSummary(CamelModel):
    accounts_added: int = 0
    accounts_skipped: int = 0
    categories_added: int = 0
    categories_skipped: int = 0
    transactions_added: int = 0
    transactions_skipped: int = 0
    bills_added: int = 0
    bills_skipped: int = 0
    goals_added: int = 0
    goals_skipped: int = 0
    budgets_added: int = 0
    budgets_skipped: int = 0
    patterns_added: int = 0
    patterns_skipped: int = 0
    contributions_added: int = 0
    contributions_skipped: int = 0

    def bump(self, prefix: str, outcome: Literal["added", "skipped"]) -> None:
        name = f"{prefix}_{outcome}"
        setattr(self, name, getattr(self, name) + 1)

    @property
    def total_added(self) -> int:
        return sum(getattr(self, name) for name in type(self).model_fields if name.endswith("_added"))

    @property
    def total_skipped(self) -> int:
        return sum(getattr(self, name) for name in type(self).model_fields if name.endswith("_skipped"))


class ImportResult(CamelModel):
    success: bool = False
    mode: ImportMode = "replace"
    summary: ImportSummary = Field(default_factory=ImportSummary)
    errors: list[ImportErrorItem] = Field(default_factory=list)

    @property
    def total_added(self) -> int:
        return self.summary.total_added

    @property
    def records_written(self) -> int:
        """Rows this import committed.

        Replace failures reset the summary on rollback, so the added counts
        always reflect what is actually in the store.
        """
        return self.summary.total_added

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        payload["errors"] = [item.model_dump(exclude_none=True) for item in self.errors]
        return payload
