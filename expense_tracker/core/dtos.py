"""Data-Transfer Objects — strongly-typed, ORM-free representations of entities.

Invariants:
    - DTOs are plain dataclasses: no IO, no ORM state, safe to deep-copy
    - ExpenseGroupDTO.expenses is None when the collection was not loaded,
      an empty list when loaded and empty

Design Decisions:
    - Attribute names match ORM column names so the field registry can address both
"""

from dataclasses import dataclass
import datetime
from decimal import Decimal

from expense_tracker.core.domain_types import ExpenseGroupId, ExpenseGroupStatus, ExpenseId


@dataclass
class ExpenseDTO:
    """A single expense line inside a group."""
    id: ExpenseId | None = None
    expense_group_id: ExpenseGroupId | None = None
    description: str = ""
    date: datetime.date | None = None
    amount: Decimal = Decimal("0")


@dataclass
class ExpenseGroupDTO:
    """Expense group with optionally loaded expenses."""
    id: ExpenseGroupId | None = None
    user_id: str | None = None
    title: str = ""
    description: str | None = None
    expense_group_status_id: int = ExpenseGroupStatus.OPEN
    expenses: list[ExpenseDTO] | None = None
