"""Exception hierarchy for the backup/restore engine.

Export-side failures propagate to the caller as exceptions. Import-side
failures are caught by the import service and folded into an
``ImportResult``; the record-level classes carry enough context to become a
result error item directly.
"""

from __future__ import annotations

from typing import Any, Optional


class BackupError(Exception):
    """Base class for every backup engine error.

    Attributes:
        message: Human-readable description.
        details: Optional extra context (never contains secrets).
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ExportFailed(BackupError):
    """Reading the store failed while building an export."""


class InvalidExportOptions(BackupError):
    """Export options could not be parsed (bad format, scope or date range).

    ``details["errors"]`` lists each problem as ``{field, message}``.
    """


class PasswordRequired(BackupError):
    """An encrypted payload or encrypted export was requested without a password."""


class DecryptionError(BackupError):
    """Envelope could not be authenticated or decoded.

    Covers both a wrong password and a tampered/corrupted payload; the two
    cannot be told apart.
    """


# Name used on the import side of the engine.
DecryptionFailed = DecryptionError


class BackupValidationError(BackupError):
    """Payload failed structural or record validation.

    ``errors`` holds every problem found, not only the first.
    """

    def __init__(self, message: str, errors: list[Any]):
        super().__init__(message)
        self.errors = errors


class RecordError(BackupError):
    """A single incoming record could not be applied."""

    def __init__(self, entity: str, record_id: str, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.entity = entity
        self.record_id = record_id
        self.field = field


class ReferentialError(RecordError):
    """Record points at a parent id that does not exist."""


class PersistenceError(RecordError):
    """The store rejected an insert or delete."""


class TransactionFailure(BackupError):
    """An exception escaped an atomic block; the block was rolled back."""
