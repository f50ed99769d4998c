"""Expense Group Service — verifies orchestration against an in-memory store.

Invariants:
    - Expenses are requested from the store only when fields or patch need them
    - A rejected patch never reaches store.update
    - Store outcomes NOT_FOUND/ERROR map to 404/400 errors
    - StoreFailureError from the store surfaces over HTTP as 500 without details
"""

import copy

import pytest

from expense_tracker.api.dependencies import get_expense_group_service
from expense_tracker.config import Settings
from expense_tracker.core.domain_types import ExpenseGroupStatus, RepositoryActionStatus
from expense_tracker.core.dtos import ExpenseDTO, ExpenseGroupDTO
from expense_tracker.core.errors import (
    ResourceNotFoundError, StoreFailureError, TestFailedError, ValidationFailureError,
)
from expense_tracker.core.pagination import paginate
from expense_tracker.core.repository_protocols import RepositoryActionResult
from expense_tracker.main import app
from expense_tracker.schemas.expense_group import ExpenseGroupCreate
from expense_tracker.services.expense_group_service import ExpenseGroupService


class InMemoryStore:
    """ExpenseGroupStore over a dict, recording expense loading and writes."""

    def __init__(self, groups=(), update_status=RepositoryActionStatus.UPDATED):
        self.groups = {g.id: g for g in groups}
        self.include_expenses_calls: list[bool] = []
        self.updates: list[ExpenseGroupDTO] = []
        self.update_status = update_status

    def _view(self, group, include_expenses):
        view = copy.deepcopy(group)
        if not include_expenses:
            view.expenses = None
        return view

    async def count(self, filters):
        return sum(1 for g in self.groups.values() if filters.matches(g))

    async def list_page(self, filters, page, include_expenses=False):
        self.include_expenses_calls.append(include_expenses)
        matching = [g for g in self.groups.values() if filters.matches(g)]
        window = paginate(matching, page).items
        return [self._view(g, include_expenses) for g in window]

    async def get_by_id(self, group_id, include_expenses=False):
        self.include_expenses_calls.append(include_expenses)
        group = self.groups.get(group_id)
        return self._view(group, include_expenses) if group else None

    async def insert(self, group):
        stored = copy.deepcopy(group)
        stored.id = max(self.groups, default=0) + 1
        self.groups[stored.id] = stored
        return RepositoryActionResult(RepositoryActionStatus.CREATED, stored)

    async def update(self, group):
        self.updates.append(group)
        if group.id not in self.groups:
            return RepositoryActionResult(RepositoryActionStatus.NOT_FOUND, group)
        if self.update_status is RepositoryActionStatus.UPDATED:
            self.groups[group.id] = copy.deepcopy(group)
        return RepositoryActionResult(self.update_status, group)

    async def delete(self, group_id):
        if self.groups.pop(group_id, None) is None:
            return RepositoryActionResult(RepositoryActionStatus.NOT_FOUND)
        return RepositoryActionResult(RepositoryActionStatus.DELETED)


class FailingStore(InMemoryStore):
    async def get_by_id(self, group_id, include_expenses=False):
        raise StoreFailureError("get")


def _groups(n: int) -> list[ExpenseGroupDTO]:
    return [
        ExpenseGroupDTO(
            id=i, user_id="alice", title=f"Group {i}",
            expense_group_status_id=ExpenseGroupStatus.OPEN,
            expenses=[ExpenseDTO(id=i * 10, expense_group_id=i, description="Taxi")],
        )
        for i in range(1, n + 1)
    ]


@pytest.fixture
def settings():
    return Settings(max_page_size=5, default_sort="-id")


async def test_list_uses_default_sort_and_max_page_size(settings):
    service = ExpenseGroupService(InMemoryStore(_groups(7)), settings)
    page = await service.list_groups(fields="title")
    assert [g["id"] for g in page.items] == [7, 6, 5, 4, 3]
    assert page.metadata.page_size == 5
    assert page.metadata.total_pages == 2


async def test_list_loads_expenses_only_when_requested(settings):
    store = InMemoryStore(_groups(2))
    service = ExpenseGroupService(store, settings)
    await service.list_groups(fields="title")
    await service.list_groups(fields="title,expenses")
    assert store.include_expenses_calls == [False, True]


async def test_get_missing_raises_not_found(settings):
    service = ExpenseGroupService(InMemoryStore(), settings)
    with pytest.raises(ResourceNotFoundError):
        await service.get_group(1)


async def test_create_forces_open_status_and_owner(settings):
    store = InMemoryStore()
    service = ExpenseGroupService(store, settings)
    created = await service.create_group(ExpenseGroupCreate(title=" Trip "), "carol")
    assert created["title"] == "Trip"
    assert created["userId"] == "carol"
    assert created["expenseGroupStatusId"] is ExpenseGroupStatus.OPEN


async def test_scalar_patch_does_not_load_expenses(settings):
    store = InMemoryStore(_groups(1))
    service = ExpenseGroupService(store, settings)
    await service.patch_group(1, [{"op": "replace", "path": "/title", "value": "New"}])
    assert store.include_expenses_calls == [False]
    assert store.updates[0].expenses is None


async def test_collection_patch_loads_expenses(settings):
    store = InMemoryStore(_groups(1))
    service = ExpenseGroupService(store, settings)
    result = await service.patch_group(1, [{"op": "remove", "path": "/expenses/0"}])
    assert store.include_expenses_calls == [True]
    assert result["expenses"] == []


async def test_failed_patch_never_updates(settings):
    store = InMemoryStore(_groups(1))
    service = ExpenseGroupService(store, settings)
    with pytest.raises(TestFailedError):
        await service.patch_group(1, [
            {"op": "replace", "path": "/title", "value": "New"},
            {"op": "test", "path": "/title", "value": "Wrong"},
        ])
    assert store.updates == []
    assert store.groups[1].title == "Group 1"


async def test_invalid_patch_rejected_before_loading(settings):
    store = InMemoryStore(_groups(1))
    service = ExpenseGroupService(store, settings)
    with pytest.raises(ValidationFailureError):
        await service.patch_group(1, [{"op": "replace"}])
    assert store.include_expenses_calls == []


async def test_store_error_maps_to_validation_failure(settings):
    store = InMemoryStore(_groups(1), update_status=RepositoryActionStatus.ERROR)
    service = ExpenseGroupService(store, settings)
    with pytest.raises(ValidationFailureError):
        await service.patch_group(1, [{"op": "replace", "path": "/title", "value": "New"}])


async def test_delete_missing_raises_not_found(settings):
    service = ExpenseGroupService(InMemoryStore(), settings)
    with pytest.raises(ResourceNotFoundError):
        await service.delete_group(4)


async def test_store_failure_returns_500_without_details(client, settings):
    app.dependency_overrides[get_expense_group_service] = (
        lambda: ExpenseGroupService(FailingStore(), settings)
    )
    res = await client.get("/api/expensegroups/1")
    assert res.status_code == 500
    error = res.json()["error"]
    assert error["code"] == "STORE_FAILURE"
    assert "get" not in error["message"]
