"""Expense Group Status lookup — the fixed status catalogue clients use for pickers."""

from fastapi import APIRouter

from expense_tracker.core.domain_types import ExpenseGroupStatus

router = APIRouter(prefix="/api/expensegroupstatusses", tags=["expense-group-statuses"])


@router.get("")
async def list_expense_group_statuses():
    return [{"id": s.value, "description": s.description} for s in ExpenseGroupStatus]
