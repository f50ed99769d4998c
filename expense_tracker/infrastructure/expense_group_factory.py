"""Expense Group Factory — maps between ORM entities and core DTOs.

Invariants:
    - DTOs never hold ORM state; entities are only touched inside infrastructure
    - An unloaded expenses relationship maps to expenses=None (never triggers a lazy load)
    - Syncing expenses keeps rows whose id is still present, creates rows for new
      items and lets delete-orphan remove the rest

Design Decisions:
    - Plain functions over a factory class: no state to hold
    - Duplicate ids in an incoming list (e.g. after a patch 'copy') become new rows
"""

from sqlalchemy import inspect as sa_inspect

from expense_tracker.core.domain_types import EXPENSES_FIELD
from expense_tracker.core.dtos import ExpenseDTO, ExpenseGroupDTO
from expense_tracker.models.expense import Expense
from expense_tracker.models.expense_group import ExpenseGroup


def expense_to_dto(entity: Expense) -> ExpenseDTO:
    return ExpenseDTO(
        id=entity.id,
        expense_group_id=entity.expense_group_id,
        description=entity.description,
        date=entity.date,
        amount=entity.amount,
    )


def expense_group_to_dto(entity: ExpenseGroup) -> ExpenseGroupDTO:
    expenses = None
    if EXPENSES_FIELD not in sa_inspect(entity).unloaded:
        expenses = [expense_to_dto(e) for e in entity.expenses]
    return ExpenseGroupDTO(
        id=entity.id,
        user_id=entity.user_id,
        title=entity.title,
        description=entity.description,
        expense_group_status_id=entity.expense_group_status_id,
        expenses=expenses,
    )


def _fill_expense(entity: Expense, dto: ExpenseDTO) -> Expense:
    entity.description = dto.description
    entity.date = dto.date
    entity.amount = dto.amount
    return entity


def new_expense_group(dto: ExpenseGroupDTO) -> ExpenseGroup:
    """Build a transient entity (expenses included) for insertion."""
    entity = ExpenseGroup(
        user_id=dto.user_id,
        title=dto.title,
        description=dto.description,
        expense_group_status_id=int(dto.expense_group_status_id),
    )
    entity.expenses = [_fill_expense(Expense(), e) for e in dto.expenses or []]
    return entity


def apply_to_entity(dto: ExpenseGroupDTO, entity: ExpenseGroup) -> None:
    """Copy DTO state onto a persistent entity. id is never reassigned."""
    entity.user_id = dto.user_id
    entity.title = dto.title
    entity.description = dto.description
    entity.expense_group_status_id = int(dto.expense_group_status_id)
    if dto.expenses is not None:
        _sync_expenses(entity, dto.expenses)


def _sync_expenses(entity: ExpenseGroup, dtos: list[ExpenseDTO]) -> None:
    existing = {e.id: e for e in entity.expenses}
    claimed: set[int] = set()
    synced = []
    for dto in dtos:
        current = None
        if dto.id is not None and dto.id not in claimed:
            current = existing.get(dto.id)
        if current is None:
            current = Expense()
        else:
            claimed.add(dto.id)
        synced.append(_fill_expense(current, dto))
    entity.expenses = synced
