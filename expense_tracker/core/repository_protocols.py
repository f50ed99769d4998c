"""Boundary Protocols — contract between the core/service layer and the entity store.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Every write reports its outcome as a RepositoryActionResult (never a bare bool)
    - Store failures surface as StoreFailureError; "not found" is a status, not an exception

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; the pure core functions that
      plan around the store are never async themselves
"""

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from expense_tracker.core.domain_types import ExpenseGroupId, RepositoryActionStatus
from expense_tracker.core.dtos import ExpenseGroupDTO
from expense_tracker.core.filters import ExpenseGroupFilter
from expense_tracker.core.pagination import PageRequest

T = TypeVar("T")


@dataclass(frozen=True)
class RepositoryActionResult(Generic[T]):
    """Outcome of a store write plus the entity as stored (when there is one)."""
    status: RepositoryActionStatus
    entity: T | None = None


class ExpenseGroupStore(Protocol):
    """Contract for expense group persistence — implemented by infrastructure."""
    async def count(self, filters: ExpenseGroupFilter) -> int: ...
    async def list_page(
        self, filters: ExpenseGroupFilter, page: PageRequest,
        include_expenses: bool = False,
    ) -> list[ExpenseGroupDTO]: ...
    async def get_by_id(
        self, group_id: ExpenseGroupId, include_expenses: bool = False,
    ) -> ExpenseGroupDTO | None: ...
    async def insert(
        self, group: ExpenseGroupDTO,
    ) -> RepositoryActionResult[ExpenseGroupDTO]: ...
    async def update(
        self, group: ExpenseGroupDTO,
    ) -> RepositoryActionResult[ExpenseGroupDTO]: ...
    async def delete(
        self, group_id: ExpenseGroupId,
    ) -> RepositoryActionResult[ExpenseGroupDTO]: ...
