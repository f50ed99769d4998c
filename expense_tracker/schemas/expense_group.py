"""Expense Group Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - Wire names are camelCase; snake_case is accepted too (populate_by_name)
    - ExpenseGroupCreate never carries id, owner or status: the server assigns them
    - ExpenseGroupReplace.expenseGroupStatusId must be a defined status (1, 2 or 3)
    - PatchOperationIn keeps "value" absent (not null) when the client omitted it

Design Decisions:
    - Length and precision limits come from the field registry's constrained types,
      so request bodies and patched values are validated by the same rules
    - Patch operations are only shape-checked here; path and type validation
      belong to the core patch parser, which knows the field registry
"""

import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from expense_tracker.core.domain_types import ExpenseGroupStatus
from expense_tracker.core.dtos import ExpenseDTO
from expense_tracker.core.field_registry import (
    Amount, ExpenseDescription, GroupDescription, OwnerId, Title,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExpenseIn(CamelModel):
    """Expense line supplied with a new expense group."""
    description: ExpenseDescription = ""
    date: datetime.date | None = None
    amount: Amount = Decimal("0")

    def to_dto(self) -> ExpenseDTO:
        return ExpenseDTO(
            description=self.description, date=self.date, amount=self.amount,
        )


class ExpenseGroupCreate(CamelModel):
    """Expense group creation: title is stripped and must not be blank."""
    title: Title
    description: GroupDescription | None = None
    expenses: list[ExpenseIn] = Field(default_factory=list)


class ExpenseGroupReplace(ExpenseGroupCreate):
    """Full replacement of an expense group's scalar fields (PUT)."""
    user_id: OwnerId | None = None
    expense_group_status_id: ExpenseGroupStatus
    expenses: list[ExpenseIn] | None = None


class PatchOperationIn(BaseModel):
    """One raw JSON-patch operation as received on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    op: str
    path: str
    value: Any = None
    from_: str | None = Field(None, alias="from")

    def to_raw(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)
