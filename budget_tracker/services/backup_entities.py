"""
Entity registry for backup/restore.

Each of the eight backed-up tables is described once here: its ORM model,
its key inside a snapshot, the prefix used in the import summary, and the
parent references the engine enforces. Replace and merge walk the same
parent-before-child order; replace deletes children first.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic.alias_generators import to_camel

from budget_tracker import models
from budget_tracker.core.database import Base


@dataclass(frozen=True)
class Reference:
    """Soft foreign key: ``field`` on the child points at ``parent`` ids."""

    field: str
    parent: str
    required: bool = False


@dataclass(frozen=True)
class EntitySpec:
    kind: str
    label: str
    summary_prefix: str
    model: type[Base]
    references: tuple[Reference, ...] = ()

    @property
    def table(self):
        return self.model.__table__

    @property
    def wire_key(self) -> str:
        """Key of this collection under ``data`` in a snapshot."""
        return to_camel(self.kind)


ACCOUNTS = EntitySpec("accounts", "account", "accounts", models.Account)
CATEGORIES = EntitySpec(
    "categories",
    "category",
    "categories",
    models.Category,
    (Reference("parent_id", "categories"),),
)
RECURRING_PATTERNS = EntitySpec("recurring_patterns", "recurring_pattern", "patterns", models.RecurringPattern)
TRANSACTIONS = EntitySpec(
    "transactions",
    "transaction",
    "transactions",
    models.Transaction,
    (
        Reference("account_id", "accounts", required=True),
        Reference("category_id", "categories"),
        Reference("recurring_pattern_id", "recurring_patterns"),
    ),
)
BILLS = EntitySpec(
    "bills",
    "bill",
    "bills",
    models.Bill,
    (
        Reference("account_id", "accounts"),
        Reference("category_id", "categories"),
    ),
)
BUDGETS = EntitySpec(
    "budgets",
    "budget",
    "budgets",
    models.Budget,
    (Reference("category_id", "categories", required=True),),
)
GOALS = EntitySpec("goals", "goal", "goals", models.Goal)
GOAL_CONTRIBUTIONS = EntitySpec(
    "goal_contributions",
    "goal_contribution",
    "contributions",
    models.GoalContribution,
    (Reference("goal_id", "goals", required=True),),
)

# Parent-before-child; the order inserts happen in for both import modes.
RESTORE_ORDER: tuple[EntitySpec, ...] = (
    CATEGORIES,
    ACCOUNTS,
    RECURRING_PATTERNS,
    TRANSACTIONS,
    BILLS,
    BUDGETS,
    GOALS,
    GOAL_CONTRIBUTIONS,
)

# Children first so no delete leaves a dangling reference behind.
DELETE_ORDER: tuple[EntitySpec, ...] = (
    GOAL_CONTRIBUTIONS,
    GOALS,
    BUDGETS,
    BILLS,
    TRANSACTIONS,
    RECURRING_PATTERNS,
    CATEGORIES,
    ACCOUNTS,
)

ENTITIES: dict[str, EntitySpec] = {spec.kind: spec for spec in RESTORE_ORDER}
