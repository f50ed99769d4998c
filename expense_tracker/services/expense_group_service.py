"""Expense Group Service — composes the entity store with the shape/patch/paginate core.

Invariants:
    - Filters and paging input are validated before the store is touched
    - Expenses are eager-loaded only when the field list or patch document needs them
    - A patch is parsed fully before loading the target and applied to a copy;
      the store is written only when every operation succeeded
    - New groups always start Open and belong to the caller's user id
    - Store outcomes map to typed errors: NOT_FOUND → ResourceNotFoundError,
      ERROR → ValidationFailureError

Design Decisions:
    - Service returns wire dicts (camelCase) so routes stay declarative
    - Store injected via the ExpenseGroupStore protocol: tests and other backends
      substitute without touching this module
"""

import logging
from typing import Any

from expense_tracker.config import Settings
from expense_tracker.core.domain_types import (
    EXPENSES_FIELD, ExpenseGroupId, ExpenseGroupStatus, RepositoryActionStatus,
)
from expense_tracker.core.dtos import ExpenseGroupDTO
from expense_tracker.core.errors import ResourceNotFoundError, ValidationFailureError
from expense_tracker.core.field_registry import EXPENSE_GROUP_SCHEMA, EXPENSE_SCHEMA
from expense_tracker.core.field_shaper import shape, shape_many, wants_collection
from expense_tracker.core.filters import build_filter
from expense_tracker.core.pagination import (
    LinkBuilder, Page, build_metadata, build_page_request, paginate,
)
from expense_tracker.core.patch_applicator import (
    apply_patch, parse_patch_document, touches_collection,
)
from expense_tracker.core.repository_protocols import (
    ExpenseGroupStore, RepositoryActionResult,
)
from expense_tracker.schemas.expense_group import ExpenseGroupCreate, ExpenseGroupReplace

logger = logging.getLogger(__name__)

_RESOURCE = "ExpenseGroup"


class ExpenseGroupService:
    """Per-request orchestration of expense group use cases."""

    def __init__(self, store: ExpenseGroupStore, settings: Settings):
        self._store = store
        self._settings = settings

    async def list_groups(
        self,
        *,
        fields: str | None = None,
        sort: str | None = None,
        status: str | None = None,
        user_id: str | None = None,
        page: int = 1,
        page_size: int | None = None,
        link_for: LinkBuilder | None = None,
    ) -> Page[dict[str, Any]]:
        filters = build_filter(status, user_id)
        request = build_page_request(
            page, page_size, sort or self._settings.default_sort,
            self._settings.max_page_size, EXPENSE_GROUP_SCHEMA,
        )
        total = await self._store.count(filters)
        groups = await self._store.list_page(
            filters, request, include_expenses=wants_collection(fields, EXPENSES_FIELD),
        )
        metadata = build_metadata(total, request, link_for)
        logger.info(
            f"Listed {len(groups)} expense group(s)",
            extra={"page": request.page, "page_size": request.page_size, "total_count": total},
        )
        return Page(items=shape_many(groups, fields, EXPENSE_GROUP_SCHEMA), metadata=metadata)

    async def get_group(
        self, group_id: ExpenseGroupId, fields: str | None = None,
    ) -> dict[str, Any]:
        group = await self._store.get_by_id(
            group_id, include_expenses=wants_collection(fields, EXPENSES_FIELD),
        )
        if group is None:
            raise ResourceNotFoundError(_RESOURCE, group_id)
        return shape(group, fields, EXPENSE_GROUP_SCHEMA)

    async def create_group(self, body: ExpenseGroupCreate, user_id: str) -> dict[str, Any]:
        group = ExpenseGroupDTO(
            user_id=user_id,
            title=body.title,
            description=body.description,
            expense_group_status_id=ExpenseGroupStatus.OPEN,
            expenses=[e.to_dto() for e in body.expenses],
        )
        result = await self._store.insert(group)
        return self._written(result, RepositoryActionStatus.CREATED, None)

    async def replace_group(
        self, group_id: ExpenseGroupId, body: ExpenseGroupReplace,
    ) -> dict[str, Any]:
        group = ExpenseGroupDTO(
            id=group_id,
            user_id=body.user_id,
            title=body.title,
            description=body.description,
            expense_group_status_id=body.expense_group_status_id,
            expenses=(
                None if body.expenses is None
                else [e.to_dto() for e in body.expenses]
            ),
        )
        result = await self._store.update(group)
        return self._written(result, RepositoryActionStatus.UPDATED, group_id)

    async def patch_group(
        self, group_id: ExpenseGroupId, raw_operations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        operations = parse_patch_document(raw_operations, EXPENSE_GROUP_SCHEMA)
        current = await self._store.get_by_id(
            group_id, include_expenses=touches_collection(operations, EXPENSES_FIELD),
        )
        if current is None:
            raise ResourceNotFoundError(_RESOURCE, group_id)

        patched = apply_patch(current, operations)
        result = await self._store.update(patched)
        logger.info(
            f"Applied {len(operations)} patch operation(s)",
            extra={"expense_group_id": group_id},
        )
        return self._written(result, RepositoryActionStatus.UPDATED, group_id)

    async def delete_group(self, group_id: ExpenseGroupId) -> None:
        result = await self._store.delete(group_id)
        if result.status is RepositoryActionStatus.NOT_FOUND:
            raise ResourceNotFoundError(_RESOURCE, group_id)

    async def list_expenses(
        self,
        group_id: ExpenseGroupId,
        *,
        fields: str | None = None,
        sort: str | None = None,
        page: int = 1,
        page_size: int | None = None,
        link_for: LinkBuilder | None = None,
    ) -> Page[dict[str, Any]]:
        request = build_page_request(
            page, page_size, sort, self._settings.max_page_size, EXPENSE_SCHEMA,
        )
        group = await self._store.get_by_id(group_id, include_expenses=True)
        if group is None:
            raise ResourceNotFoundError(_RESOURCE, group_id)
        result = paginate(group.expenses or [], request, link_for)
        return Page(
            items=shape_many(result.items, fields, EXPENSE_SCHEMA),
            metadata=result.metadata,
        )

    def _written(
        self,
        result: RepositoryActionResult[ExpenseGroupDTO],
        expected: RepositoryActionStatus,
        group_id: ExpenseGroupId | None,
    ) -> dict[str, Any]:
        if result.status is expected:
            return EXPENSE_GROUP_SCHEMA.to_dict(result.entity)
        if result.status is RepositoryActionStatus.NOT_FOUND:
            raise ResourceNotFoundError(_RESOURCE, group_id)
        raise ValidationFailureError(
            f"{_RESOURCE} could not be saved ({result.status.value})",
        )
