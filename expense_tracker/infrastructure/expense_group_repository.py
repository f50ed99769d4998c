"""Expense Group Repository — SQLAlchemy implementation of ExpenseGroupStore.

Invariants:
    - Returns DTOs only; ORM entities never leave this module
    - Filters are applied before counting and slicing
    - Ordering always ends with id so OFFSET/LIMIT pages are deterministic
    - IntegrityError on a write → RepositoryActionStatus.ERROR (rolled back)
    - Any other SQLAlchemyError → StoreFailureError (rolled back, details logged only)

Design Decisions:
    - Sort columns come from a static map built from the field registry,
      never from getattr on request input
    - Delete eager-loads expenses so the ORM cascade works on databases without FK enforcement
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from expense_tracker.core.domain_types import ExpenseGroupId, RepositoryActionStatus
from expense_tracker.core.dtos import ExpenseGroupDTO
from expense_tracker.core.errors import StoreFailureError
from expense_tracker.core.field_registry import EXPENSE_GROUP_SCHEMA
from expense_tracker.core.filters import ExpenseGroupFilter
from expense_tracker.core.pagination import PageRequest, SortKey
from expense_tracker.core.repository_protocols import RepositoryActionResult
from expense_tracker.infrastructure.expense_group_factory import (
    apply_to_entity, expense_group_to_dto, new_expense_group,
)
from expense_tracker.models.expense_group import ExpenseGroup

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    spec.attr: getattr(ExpenseGroup, spec.attr)
    for spec in EXPENSE_GROUP_SCHEMA.fields if spec.sortable
}


def _order_by(keys: tuple[SortKey, ...]) -> list:
    clauses = []
    for key in keys:
        column = _SORT_COLUMNS[key.field.attr]
        clauses.append(column.asc() if key.ascending else column.desc())
    if not any(key.field is EXPENSE_GROUP_SCHEMA.id_field for key in keys):
        clauses.append(ExpenseGroup.id.asc())
    return clauses


class SqlExpenseGroupRepository:
    """ExpenseGroupStore backed by an AsyncSession (one per request)."""

    def __init__(self, db: AsyncSession):
        self._db = db

    @asynccontextmanager
    async def _store_operation(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(f"Store {operation} failed: {e}", exc_info=True)
            raise StoreFailureError(operation) from e

    def _filtered(self, filters: ExpenseGroupFilter) -> Select:
        stmt = select(ExpenseGroup)
        if filters.status is not None:
            stmt = stmt.where(ExpenseGroup.expense_group_status_id == int(filters.status))
        if filters.user_id is not None:
            stmt = stmt.where(ExpenseGroup.user_id == filters.user_id)
        return stmt

    async def _load(self, group_id: int, include_expenses: bool) -> ExpenseGroup | None:
        stmt = select(ExpenseGroup).where(ExpenseGroup.id == group_id)
        if include_expenses:
            stmt = stmt.options(selectinload(ExpenseGroup.expenses)).execution_options(
                populate_existing=True,
            )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self, filters: ExpenseGroupFilter) -> int:
        async with self._store_operation("count"):
            stmt = select(func.count()).select_from(self._filtered(filters).subquery())
            result = await self._db.execute(stmt)
            return result.scalar_one()

    async def list_page(
        self, filters: ExpenseGroupFilter, page: PageRequest,
        include_expenses: bool = False,
    ) -> list[ExpenseGroupDTO]:
        async with self._store_operation("list"):
            stmt = (
                self._filtered(filters)
                .order_by(*_order_by(page.sort))
                .offset(page.offset)
                .limit(page.limit)
            )
            if include_expenses:
                stmt = stmt.options(selectinload(ExpenseGroup.expenses))
            result = await self._db.execute(stmt)
            return [expense_group_to_dto(g) for g in result.scalars().all()]

    async def get_by_id(
        self, group_id: ExpenseGroupId, include_expenses: bool = False,
    ) -> ExpenseGroupDTO | None:
        async with self._store_operation("get"):
            entity = await self._load(group_id, include_expenses)
            return expense_group_to_dto(entity) if entity else None

    async def insert(self, group: ExpenseGroupDTO) -> RepositoryActionResult[ExpenseGroupDTO]:
        async with self._store_operation("insert"):
            entity = new_expense_group(group)
            self._db.add(entity)
            try:
                await self._db.commit()
            except IntegrityError as e:
                await self._db.rollback()
                logger.warning(f"Insert rejected by constraint: {e}")
                return RepositoryActionResult(RepositoryActionStatus.ERROR, group)
            logger.info(
                "Expense group created", extra={"expense_group_id": entity.id},
            )
            return RepositoryActionResult(
                RepositoryActionStatus.CREATED, expense_group_to_dto(entity),
            )

    async def update(self, group: ExpenseGroupDTO) -> RepositoryActionResult[ExpenseGroupDTO]:
        async with self._store_operation("update"):
            entity = await self._load(group.id, include_expenses=group.expenses is not None)
            if entity is None:
                return RepositoryActionResult(RepositoryActionStatus.NOT_FOUND, group)
            apply_to_entity(group, entity)
            try:
                await self._db.commit()
            except IntegrityError as e:
                await self._db.rollback()
                logger.warning(
                    f"Update rejected by constraint: {e}",
                    extra={"expense_group_id": group.id},
                )
                return RepositoryActionResult(RepositoryActionStatus.ERROR, group)
            return RepositoryActionResult(
                RepositoryActionStatus.UPDATED, expense_group_to_dto(entity),
            )

    async def delete(self, group_id: ExpenseGroupId) -> RepositoryActionResult[ExpenseGroupDTO]:
        async with self._store_operation("delete"):
            entity = await self._load(group_id, include_expenses=True)
            if entity is None:
                return RepositoryActionResult(RepositoryActionStatus.NOT_FOUND)
            await self._db.delete(entity)
            await self._db.commit()
            logger.info("Expense group deleted", extra={"expense_group_id": group_id})
            return RepositoryActionResult(RepositoryActionStatus.DELETED)
