"""Domain Types — enums and identity types shared across the codebase.

Invariants:
    - ExpenseGroupStatus values are fixed: Open=1, Confirmed=2, Processed=3
    - Every expense group status in the system is one of those three values
    - RepositoryActionStatus is the only vocabulary the store uses to report writes

Design Decisions:
    - IntEnum for status: the integer id is the persisted and wire value
    - str Enum for action status: serializes to JSON without custom encoders
"""

from enum import Enum, IntEnum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ExpenseGroupId = NewType("ExpenseGroupId", int)
ExpenseId = NewType("ExpenseId", int)


# ─── Enums ───────────────────────────────────────────────────────

class ExpenseGroupStatus(IntEnum):
    """Expense group lifecycle — maps to the expense_group_status_id column."""
    OPEN = 1
    CONFIRMED = 2
    PROCESSED = 3

    @property
    def description(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_name(cls, name: str) -> "ExpenseGroupStatus | None":
        """Case-insensitive lookup by name ('open', 'Confirmed', ...)."""
        return cls.__members__.get(name.strip().upper())


class RepositoryActionStatus(str, Enum):
    """Outcome of a store write."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    ERROR = "error"


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_MAX_PAGE_SIZE = 10
EXPENSES_FIELD = "expenses"
