from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_tracker.core.exceptions import PersistenceError, TransactionFailure
from budget_tracker.services.backup_entities import ENTITIES, EntitySpec


logger = logging.getLogger(__name__)


class EntityStore:
    """Table-level access to the eight backed-up tables.

    Wraps one SQLAlchemy session. Both the export and import services take an
    instance explicitly; nothing here reaches for a global session.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _spec(self, kind: str | EntitySpec) -> EntitySpec:
        if isinstance(kind, EntitySpec):
            return kind
        return ENTITIES[kind]

    def select_all(self, kind: str | EntitySpec) -> list[dict[str, Any]]:
        table = self._spec(kind).table
        rows = self.db.execute(select(table)).mappings().all()
        return [dict(row) for row in rows]

    def exists(self, kind: str | EntitySpec, record_id: Any) -> bool:
        if record_id is None:
            return False
        table = self._spec(kind).table
        stmt = select(table.c.id).where(table.c.id == record_id).limit(1)
        return self.db.execute(stmt).first() is not None

    def insert(self, kind: str | EntitySpec, record: dict[str, Any], ref: str | None = None) -> None:
        """Insert one record, ignoring keys that are not columns of the table.

        Store failures surface as ``PersistenceError`` tagged with ``ref``
        (the caller's name for the record, e.g. ``#3`` when it has no id).
        """
        spec = self._spec(kind)
        table = spec.table
        values = {key: value for key, value in record.items() if key in table.c}
        try:
            self.db.execute(insert(table).values(**values))
        except SQLAlchemyError as exc:
            if ref is None:
                ref = str(record["id"]) if record.get("id") is not None else "?"
            raise PersistenceError(
                spec.label,
                ref,
                f"Failed to insert {spec.label} {ref}: {_db_message(exc)}",
            ) from exc

    def delete_all(self, kind: str | EntitySpec) -> int:
        spec = self._spec(kind)
        try:
            result = self.db.execute(delete(spec.table))
        except SQLAlchemyError as exc:
            raise PersistenceError(
                spec.label, "*", f"Failed to clear {spec.kind}: {_db_message(exc)}"
            ) from exc
        return result.rowcount or 0

    def count(self, kind: str | EntitySpec) -> int:
        table = self._spec(kind).table
        return int(self.db.execute(select(func.count()).select_from(table)).scalar_one())

    @contextmanager
    def atomic(self) -> Iterator["EntityStore"]:
        """Run the block as one transaction.

        Commits when the block finishes; on any escaping exception the whole
        transaction is rolled back and ``TransactionFailure`` is raised.
        """
        try:
            yield self
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            logger.error("Atomic block rolled back: %s", exc, exc_info=True)
            raise TransactionFailure(str(exc)) from exc

    @contextmanager
    def savepoint(self) -> Iterator["EntityStore"]:
        """Nested transaction; an exception undoes only this block."""
        with self.db.begin_nested():
            yield self


def _db_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
